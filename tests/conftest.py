"""
Pytest configuration.

Ensure the repository root is importable so `import pagehooks` works reliably across
platforms and import modes, and provide shared build fixtures.
"""

from __future__ import annotations

import os
import sys
from typing import List

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# pylint: disable=wrong-import-position
from pagehooks import HookPoint, HookRegistry, NullSink, Route, Settings  # noqa: E402

TRACED_POINTS = (
    HookPoint.MODIFY_CUSTOM_PROPS,
    HookPoint.REQUEST,
    HookPoint.DATA,
    HookPoint.STACKS,
    HookPoint.HEAD,
    HookPoint.HTML,
    HookPoint.SHORTCODES,
    HookPoint.COMPILE_HTML,
    HookPoint.REQUEST_COMPLETE,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Build mode settings writing into a temporary directory."""

    return Settings(
        root_dir=str(tmp_path),
        dist_dir=str(tmp_path / "public"),
        context="build",
        build=True,
        origin="https://example.com",
    )


@pytest.fixture
def sink() -> NullSink:
    return NullSink()


@pytest.fixture
def request_data() -> dict:
    return {
        "slug": "ash-flat",
        "route": "cityNursingHomes",
        "type": "build",
        "permalink": "/arkansas/ash-flat-nursing-homes/",
    }


@pytest.fixture
def route() -> Route:
    return Route(
        name="cityNursingHomes",
        template=lambda request: f"<p>{request['slug']}</p>",
        layout=lambda template_html: '<div class="container"></div>',
    )


@pytest.fixture
def routes(route) -> dict:
    return {"cityNursingHomes": route}


def add_tracer(registry: HookRegistry, trace: List[str], points=TRACED_POINTS) -> None:
    """Register a hook on every point in ``points`` that records the point it ran on."""

    for point in points:

        def run(_point=point):
            trace.append(_point.value)

        registry.register_hook(point, f"trace_{point.value}", run, priority=1000)
