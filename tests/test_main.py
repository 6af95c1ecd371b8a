"""Tests for the command line entry point."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from pagehooks.__main__ import main
from pagehooks.exceptions import ConfigurationError
from pagehooks.site import as_descriptor, load_site


def _write_site(tmp_path: Path, extra: str = "") -> Path:
    site = tmp_path / "site.py"
    site.write_text(
        textwrap.dedent(
            f"""
            from pagehooks import Route

            routes = {{"home": Route("home", template=lambda request: "<h1>" + request["slug"] + "</h1>")}}
            all_requests = [{{"route": "home", "slug": "hi", "permalink": "/"}}]
            settings = {{"root_dir": {str(tmp_path)!r}, "origin": "https://example.com"}}
            hooks = [{{"hook_point": "data", "name": "add_title", "run": lambda data: {{"data": {{**data, "t": 1}}}}}}]
            """
        )
        + textwrap.dedent(extra),
        encoding="utf-8",
    )
    return site


def test_build_operation_writes_html(tmp_path) -> None:
    site = _write_site(tmp_path)

    assert main(["build", str(site)]) == 0

    html = (tmp_path / "public" / "index.html").read_text(encoding="utf-8")
    assert html.startswith('<!DOCTYPE html><html lang="en"><head>')
    assert '<body class="home"><h1>hi</h1></body>' in html


def test_build_operation_fails_on_hook_errors(tmp_path) -> None:
    site = _write_site(
        tmp_path,
        """
        def explode():
            raise RuntimeError("explode")

        hooks.append({"hook_point": "request", "name": "explode", "run": explode})
        """,
    )

    assert main(["build", str(site)]) == 1
    assert list((tmp_path / "___ELDER___").glob("build-*.json"))
    assert (tmp_path / "public" / "index.html").exists()


def test_hooks_operation_lists_resolved_order(tmp_path, capsys) -> None:
    site = _write_site(tmp_path, 'settings["hooks"] = {"disable": ["add_meta_charset_to_head"]}\n')

    assert main(["hooks", str(site)]) == 0

    out = capsys.readouterr().out
    assert out.index("add_meta_viewport_to_head") < out.index("add_meta_charset_to_head")
    assert "add_meta_charset_to_head (disabled)" in out
    assert "add_title" in out


def test_duplicate_site_hook_fails(tmp_path) -> None:
    site = _write_site(
        tmp_path,
        'hooks.append({"hook_point": "compile_html", "name": "compile_html", "run": lambda: None})\n',
    )
    assert main(["build", str(site)]) == 1


def test_site_without_routes_is_rejected(tmp_path) -> None:
    site = tmp_path / "empty_site.py"
    site.write_text("all_requests = []\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_site(site)
    assert main(["build", str(site)]) == 1


def test_as_descriptor_requires_name() -> None:
    with pytest.raises(ConfigurationError):
        as_descriptor({"hook_point": "data", "run": lambda: None})
