"""Shortcode expansion for route html.

A shortcode is written ``{{name key="value" /}}`` or ``{{name}}content{{/name}}``.
Its ``run`` callable returns either the replacement html or a mapping with
``html`` and any of ``css``, ``js`` and ``head``, which are appended to the
matching stacks.
"""

from __future__ import annotations

import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from pagehooks.hooks.executor import call_with_values
from pagehooks.stack import StackItem

ATTRIBUTE_RE = re.compile(r"""([A-Za-z_][\w-]*)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"']+)))?""")

# shortcode output key -> stack it is appended to
OUTPUT_STACKS = {"css": "css_stack", "js": "custom_js_stack", "head": "head_stack"}


@dataclass(frozen=True)
class Shortcode:
    """A named shortcode and the callable that renders it."""

    shortcode: str
    run: Callable[..., Any]
    description: str = ""
    priority: int = 50


@dataclass
class ShortcodeParser:
    """Expands shortcodes in html, collecting stack contributions as it goes."""

    shortcodes: List[Shortcode]
    values: Dict[str, Any] = field(default_factory=dict)
    head_stack: List[StackItem] = field(default_factory=list)
    css_stack: List[StackItem] = field(default_factory=list)
    custom_js_stack: List[StackItem] = field(default_factory=list)
    open_pattern: str = "{{"
    close_pattern: str = "}}"

    def __post_init__(self):
        self._by_name = {s.shortcode: s for s in self.shortcodes}
        open_re = re.escape(self.open_pattern)
        close_re = re.escape(self.close_pattern)
        self._tag = re.compile(
            rf"{open_re}\s*(?P<name>[A-Za-z][\w-]*)(?P<attrs>(?:(?!{close_re}).)*?)\s*(?P<self>/)?\s*{close_re}",
            re.S,
        )

    def _closing_tag(self, name: str) -> str:
        return f"{self.open_pattern}/{name}{self.close_pattern}"

    async def parse(self, html: str) -> str:
        """Return ``html`` with every known shortcode replaced."""

        if not self._by_name or not html:
            return html

        out: List[str] = []
        pos = 0
        while True:
            match = self._tag.search(html, pos)
            if match is None:
                out.append(html[pos:])
                break

            name = match.group("name")
            shortcode = self._by_name.get(name)
            if shortcode is None:
                out.append(html[pos : match.end()])
                pos = match.end()
                continue

            out.append(html[pos : match.start()])
            content, pos = self._content(html, match)
            if content:
                content = await self.parse(content)
            out.append(await self._render(shortcode, parse_attributes(match.group("attrs")), content))

        return "".join(out)

    def _content(self, html: str, match: "re.Match[str]") -> Tuple[str, int]:
        if match.group("self"):
            return "", match.end()
        closing = self._closing_tag(match.group("name"))
        end = html.find(closing, match.end())
        if end == -1:
            # unclosed tags behave like self-closing ones
            return "", match.end()
        return html[match.end() : end], end + len(closing)

    async def _render(self, shortcode: Shortcode, props: Dict[str, Any], content: str) -> str:
        values = dict(self.values)
        values.update(props=props, content=content)
        result = call_with_values(shortcode.run, values, f"shortcode.{shortcode.shortcode}")
        if inspect.isawaitable(result):
            result = await result

        if result is None:
            return ""
        if isinstance(result, Mapping):
            for key, stack_name in OUTPUT_STACKS.items():
                if result.get(key):
                    getattr(self, stack_name).append(
                        StackItem(
                            source=f"shortcode.{shortcode.shortcode}",
                            string=str(result[key]),
                            priority=shortcode.priority,
                        )
                    )
            return str(result.get("html") or "")
        return str(result)


def parse_attributes(raw: Optional[str]) -> Dict[str, Any]:
    """Parse ``key="value" key2='v' flag`` into a dict; bare flags become ``True``."""

    props: Dict[str, Any] = {}
    for match in ATTRIBUTE_RE.finditer(raw or ""):
        key, double, single, bare = match.groups()
        if double is None and single is None and bare is None:
            props[key] = True
        else:
            props[key] = next(v for v in (double, single, bare) if v is not None)
    return props

