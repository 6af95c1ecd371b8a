"""The lifecycle runner that turns one request into an html document."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from pagehooks.config import Settings
from pagehooks.context import BuildContext
from pagehooks.diagnostics import DiagnosticsSink, LoggingSink
from pagehooks.exceptions import HookExecutionError
from pagehooks.hooks import STACK_KEYS, HookDescriptor, HookPoint, HookRegistry, HookRunner, call_with_values
from pagehooks.log_manager import log
from pagehooks.perf import Perf
from pagehooks.stack import render_stack

PHASES = (
    HookPoint.REQUEST,
    HookPoint.DATA,
    HookPoint.STACKS,
    HookPoint.HEAD,
    HookPoint.HTML,
    HookPoint.REQUEST_COMPLETE,
)


def _passthrough_layout(template_html: str = "", **_: Any) -> str:
    return template_html


@dataclass
class Route:
    """A route as handed over by the route discovery collaborator.

    ``template`` renders the route's own html and ``layout`` wraps it; both are
    called with the context values their signatures ask for and may be async.
    ``layout`` additionally receives ``template_html``. ``hooks`` run only for
    pages of this route, next to the registry's hooks.
    """

    name: str
    template: Callable[..., Any]
    layout: Callable[..., Any] = _passthrough_layout
    description: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)
    hooks: List[HookDescriptor] = field(default_factory=list)


class Page:
    """Drives one request's :class:`BuildContext` through the fixed lifecycle phases.

    Use :meth:`create` to construct a page, which also runs the
    ``modify_custom_props`` hook point. ``build()`` runs every remaining phase and
    ``html()`` runs up to and including the html phase; no phase ever runs twice.
    Hook failures are recorded in ``context.errors`` and never raised.
    """

    def __init__(
        self,
        request: Mapping[str, Any],
        settings: Settings,
        registry: HookRegistry,
        *,
        route: Optional[Route] = None,
        routes: Optional[Mapping[str, Route]] = None,
        all_requests: Optional[Sequence[Mapping[str, Any]]] = None,
        query: Any = None,
        helpers: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        shortcodes: Optional[Sequence[Any]] = None,
        custom_props: Optional[Mapping[str, Any]] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ):
        routes = dict(routes or {})
        if route is None:
            route = routes.get(request.get("route"))
        if route is None:
            raise ValueError(f"No route '{request.get('route')}' for request '{request.get('permalink')}'")

        self.context = BuildContext(
            settings=settings,
            query=query,
            helpers=dict(helpers or {}),
            data=dict(data or {}),
            route=route,
            routes=routes,
            request=dict(request),
            all_requests=list(all_requests or []),
            shortcodes=list(shortcodes or []),
            custom_props=dict(custom_props or {}),
        )
        self.perf = Perf(self.context.timings)
        self.perf.start("page")
        self.diagnostics = diagnostics or LoggingSink()
        if route.hooks:
            registry = registry.extended(route.hooks)
        self.registry = registry
        self.runner = HookRunner(registry, self.context, self.perf, self.diagnostics)
        self.completed: List[HookPoint] = []
        self._custom_props_done = False

    @classmethod
    async def create(cls, request: Mapping[str, Any], settings: Settings, registry: HookRegistry, **kwargs) -> "Page":
        """Construct a page and run ``modify_custom_props`` before any phase."""

        page = cls(request, settings, registry, **kwargs)
        await page._modify_custom_props()
        return page

    @property
    def permalink(self) -> Optional[str]:
        return self.context.permalink

    @property
    def errors(self) -> List[BaseException]:
        return self.context.errors

    @property
    def timings(self):
        return self.context.timings

    @property
    def state(self) -> str:
        """Name of the last completed phase, ``constructed`` or ``done``."""
        if not self.completed:
            return "constructed"
        if self.completed[-1] is HookPoint.REQUEST_COMPLETE:
            return "done"
        return self.completed[-1].value

    async def build(self) -> str:
        """Run every phase that has not run yet and return the html string."""

        await self._run_until(HookPoint.REQUEST_COMPLETE)
        return self.context.html_string

    async def html(self) -> str:
        """Return the html document, running phases up to the html phase if needed."""

        if HookPoint.HTML not in self.completed:
            await self._run_until(HookPoint.HTML)
        return self.context.html_string

    async def _modify_custom_props(self) -> None:
        if self._custom_props_done:
            return
        self._custom_props_done = True
        await self.runner.run(HookPoint.MODIFY_CUSTOM_PROPS)

    async def _run_until(self, last: HookPoint) -> None:
        await self._modify_custom_props()
        for phase in PHASES[: PHASES.index(last) + 1]:
            if phase not in self.completed:
                await self._run_phase(phase)

    async def _run_phase(self, phase: HookPoint) -> None:
        self.perf.start(phase.value)
        if phase is HookPoint.HEAD:
            self._render_strings()
            await self.runner.run(phase)
        elif phase is HookPoint.HTML:
            await self._html_phase()
        elif phase is HookPoint.REQUEST_COMPLETE:
            # total page time is final before request_complete hooks report it
            self.perf.end("page")
            await self.runner.run(phase)
        else:
            await self.runner.run(phase)
        self.perf.end(phase.value)
        self.completed.append(phase)

    async def _html_phase(self) -> None:
        ctx = self.context
        ctx.route_html = await self._render_route("template", ctx.route.template)
        await self.runner.run(HookPoint.HTML)

        stacks_before = {key: list(getattr(ctx, key)) for key in STACK_KEYS}
        await self.runner.run(HookPoint.SHORTCODES)
        added = {key: _added_items(stacks_before[key], getattr(ctx, key)) for key in STACK_KEYS}
        if any(added.values()):
            # head hooks may have patched the strings already, so only append
            head, footer = _stack_strings(added)
            ctx.head_string += head
            ctx.footer_string += footer

        ctx.layout_html = await self._render_route("layout", ctx.route.layout, template_html=ctx.route_html)
        await self.runner.run(HookPoint.COMPILE_HTML)

    async def _render_route(self, part: str, func: Callable[..., Any], **extra: Any) -> str:
        values = self.context.snapshot()
        values.update(extra)
        try:
            result = call_with_values(func, values, f"route.{part}")
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:  # pylint: disable=broad-except
            await self.runner.record_error(
                HookExecutionError(HookPoint.HTML.value, f"route.{part}", exc, self.permalink), HookPoint.HTML
            )
            return ""
        return "" if result is None else str(result)

    def _render_strings(self) -> None:
        ctx = self.context
        if ctx.settings.debug.stacks:
            for key in sorted(STACK_KEYS):
                log.info("%s %s: %s", self.permalink, key, getattr(ctx, key))

        ctx.head_string, ctx.footer_string = _stack_strings({key: getattr(ctx, key) for key in STACK_KEYS})


def _stack_strings(stacks: Mapping[str, Sequence[Any]]) -> Tuple[str, str]:
    """Render stacks into the head string (head, then css) and the footer string."""

    head = render_stack(stacks.get("head_stack", []))
    css = render_stack(stacks.get("css_stack", []))
    if css:
        head += f'<style data-name="css_stack">{css}</style>'
    footer = "".join(
        render_stack(stacks.get(key, [])) for key in ("before_hydrate_stack", "custom_js_stack", "footer_stack")
    )
    return head, footer


def _added_items(before: List[Any], after: List[Any]) -> List[Any]:
    if after[: len(before)] == before:
        return after[len(before) :]
    return [item for item in after if item not in before]
