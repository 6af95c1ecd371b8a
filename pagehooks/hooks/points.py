"""Hook points and the context keys each point may patch."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Union


class HookPoint(Enum):
    """Extension points of the build, in the order a page reaches them."""

    BOOTSTRAP = "bootstrap"
    ALL_REQUESTS = "all_requests"
    MODIFY_CUSTOM_PROPS = "modify_custom_props"
    REQUEST = "request"
    DATA = "data"
    STACKS = "stacks"
    HEAD = "head"
    HTML = "html"
    SHORTCODES = "shortcodes"
    COMPILE_HTML = "compile_html"
    REQUEST_COMPLETE = "request_complete"
    ERROR = "error"
    BUILD_COMPLETE = "build_complete"


HookPointLike = Union[str, HookPoint]

STACK_KEYS: FrozenSet[str] = frozenset(
    {"head_stack", "css_stack", "before_hydrate_stack", "custom_js_stack", "footer_stack"}
)

MUTABLE_KEYS: Dict[HookPoint, FrozenSet[str]] = {
    HookPoint.BOOTSTRAP: frozenset({"errors", "helpers", "data", "query", "routes"}),
    HookPoint.ALL_REQUESTS: frozenset({"errors", "all_requests"}),
    HookPoint.MODIFY_CUSTOM_PROPS: frozenset({"custom_props"}),
    HookPoint.REQUEST: frozenset({"errors", "helpers", "data", "request", "route"}),
    HookPoint.DATA: frozenset({"errors", "data"}) | STACK_KEYS,
    HookPoint.STACKS: frozenset({"errors"}) | STACK_KEYS,
    HookPoint.HEAD: frozenset({"errors", "head_string", "footer_string"}),
    HookPoint.HTML: frozenset({"errors", "route_html"}),
    HookPoint.SHORTCODES: frozenset(
        {"errors", "route_html", "head_stack", "css_stack", "custom_js_stack", "footer_stack"}
    ),
    HookPoint.COMPILE_HTML: frozenset({"errors", "html_string"}),
    HookPoint.REQUEST_COMPLETE: frozenset({"errors"}),
    HookPoint.ERROR: frozenset(),
    HookPoint.BUILD_COMPLETE: frozenset(),
}


def as_hook_point(value: HookPointLike) -> HookPoint:
    """Return the :class:`HookPoint` for an enum member or its string value."""

    if isinstance(value, HookPoint):
        return value
    try:
        return HookPoint(str(value))
    except ValueError as exc:
        valid = ", ".join(point.value for point in HookPoint)
        raise ValueError(f"Unknown hook point '{value}'. Expected one of: {valid}") from exc


def mutable_keys(hook_point: HookPointLike) -> FrozenSet[str]:
    """Return the context keys a hook on ``hook_point`` may return in its patch."""
    return MUTABLE_KEYS[as_hook_point(hook_point)]
