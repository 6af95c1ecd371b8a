"""The mutable per-request state threaded through every hook point."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pagehooks.config import Settings
from pagehooks.perf import TimingEntry
from pagehooks.stack import StackItem


@dataclass
class BuildContext:
    """State of one request (or of the build itself for build level hook points).

    Hooks only ever see :meth:`snapshot` copies; :meth:`apply_patch` is the single
    place the context changes.
    """

    settings: Settings = field(default_factory=Settings)
    query: Any = None
    helpers: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    route: Any = None
    routes: Dict[str, Any] = field(default_factory=dict)
    request: Dict[str, Any] = field(default_factory=dict)
    all_requests: List[Dict[str, Any]] = field(default_factory=list)
    shortcodes: List[Any] = field(default_factory=list)
    errors: List[BaseException] = field(default_factory=list)
    custom_props: Dict[str, Any] = field(default_factory=dict)
    head_stack: List[StackItem] = field(default_factory=list)
    css_stack: List[StackItem] = field(default_factory=list)
    before_hydrate_stack: List[StackItem] = field(default_factory=list)
    custom_js_stack: List[StackItem] = field(default_factory=list)
    footer_stack: List[StackItem] = field(default_factory=list)
    timings: List[TimingEntry] = field(default_factory=list)
    route_html: str = ""
    layout_html: str = ""
    head_string: str = ""
    footer_string: str = ""
    html_string: str = ""

    @classmethod
    def keys(cls) -> FrozenSet[str]:
        return frozenset(f.name for f in fields(cls))

    @property
    def permalink(self) -> Optional[str]:
        return self.request.get("permalink") if isinstance(self.request, Mapping) else None

    def snapshot(self) -> Dict[str, Any]:
        """Return the values hooks receive. Lists and dicts are shallow copies."""

        values: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, list):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            values[f.name] = value
        return values

    def apply_patch(self, patch: Mapping[str, Any]) -> None:
        """Replace every top-level key present in ``patch``; other keys stay untouched.

        Stack items given as plain mappings are stored as :class:`StackItem`.
        """

        for key, value in patch.items():
            if key.endswith("_stack"):
                value = [StackItem.coerce(item) for item in value]
            setattr(self, key, value)

    def add_error(self, error: BaseException) -> None:
        self.errors = [*self.errors, error]
