"""Execution utilities for running registered hooks against a build context."""

from __future__ import annotations

import inspect
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

from pagehooks.context import BuildContext
from pagehooks.diagnostics import DiagnosticsSink, LoggingSink
from pagehooks.exceptions import HookExecutionError, HookPatchError
from pagehooks.hooks.points import STACK_KEYS, HookPoint, HookPointLike, as_hook_point, mutable_keys
from pagehooks.hooks.registry import HookDescriptor, HookRegistry, HookSignatureSummary, summarise_signature
from pagehooks.log_manager import LogManager
from pagehooks.perf import Perf
from pagehooks.stack import StackItem

log = LogManager().get_logger(__name__)

STRING_KEYS = frozenset({"route_html", "layout_html", "head_string", "footer_string", "html_string"})
MAPPING_KEYS = frozenset({"helpers", "data", "request", "routes", "custom_props"})


class HookRunner:
    """Runs the hooks of one hook point sequentially against a :class:`BuildContext`.

    Each hook is awaited before the next starts and its patch is merged straight
    away, so later hooks observe earlier patches. A hook that raises, or returns a
    patch it is not allowed to return, is recorded in ``context.errors`` and the
    ``error`` hook point runs before the remaining hooks continue.
    """

    def __init__(
        self,
        registry: HookRegistry,
        context: BuildContext,
        perf: Optional[Perf] = None,
        diagnostics: Optional[DiagnosticsSink] = None,
    ):
        self.registry = registry
        self.context = context
        self.perf = perf or Perf(context.timings)
        self.diagnostics = diagnostics or LoggingSink()

    @property
    def disabled(self):
        return self.context.settings.hooks.disable

    async def run(self, hook_point: HookPointLike) -> None:
        """Execute all hooks resolved for ``hook_point``."""

        point = as_hook_point(hook_point)
        hooks = self.registry.resolve(point, self.disabled)
        if not hooks:
            log.debug("No hooks found for '%s'", point.value)
            return

        log.debug("Executing %d hooks for '%s'", len(hooks), point.value)
        for descriptor in hooks:
            await self._run_one(descriptor)

    async def _run_one(self, descriptor: HookDescriptor) -> None:
        point = descriptor.hook_point
        timer = f"hook.{point.value}.{descriptor.name}"
        if self.context.settings.debug.hooks:
            log.info("Running hook '%s' on '%s' (priority %d)", descriptor.name, point.value, descriptor.priority)

        self.perf.start(timer)
        try:
            result = invoke_hook(descriptor, self._hook_values())
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:  # pylint: disable=broad-except
            self.perf.end(timer)
            await self.record_error(
                HookExecutionError(point.value, descriptor.name, exc, self.context.permalink), point
            )
            return
        self.perf.end(timer)

        if result is None:
            return

        patch_error = check_patch(descriptor, result, self.context)
        if patch_error is not None:
            await self.record_error(patch_error, point)
            return

        self.context.apply_patch(result)

    def _hook_values(self) -> Dict[str, Any]:
        values = self.context.snapshot()
        values["diagnostics"] = self.diagnostics
        return values

    async def record_error(self, error: Exception, point: HookPoint) -> None:
        """Append ``error`` to the context and run the error hook point."""
        log.debug("Recorded hook error on '%s': %s", point.value, error)
        self.context.add_error(error)
        if point is HookPoint.ERROR:
            # error hooks failing must not re-enter the error hook point
            log.error("Error hook failed: %s", error)
            return
        await self.run(HookPoint.ERROR)




def check_patch(descriptor: HookDescriptor, patch: Any, context: BuildContext) -> Optional[Exception]:
    """Return the error a patch should be rejected with, or ``None`` if it may be merged.

    Never raises: a patch that cannot even be inspected is reported as a
    :class:`HookExecutionError` of the hook that returned it.
    """

    point = descriptor.hook_point.value
    try:
        if not isinstance(patch, Mapping):
            raise TypeError(f"Hook must return a mapping or None, got {type(patch).__name__}")

        rejected = set(patch) - mutable_keys(descriptor.hook_point)
        if rejected:
            return HookPatchError(point, descriptor.name, rejected)

        invalid = sorted(key for key, value in patch.items() if not _valid_value(key, value))
        if invalid:
            return HookPatchError(point, descriptor.name, invalid, reason="set to invalid values")

        if "errors" in patch and not _appends_to(context.errors, patch["errors"]):
            return HookPatchError(point, descriptor.name, ["errors"], reason="may only append to")
    except Exception as exc:  # pylint: disable=broad-except
        return HookExecutionError(point, descriptor.name, exc, context.permalink)
    return None


def _valid_value(key: str, value: Any) -> bool:
    if key == "errors":
        return isinstance(value, list) and all(isinstance(e, BaseException) for e in value)
    if key in STACK_KEYS:
        return isinstance(value, list) and all(_coercible(item) for item in value)
    if key in STRING_KEYS:
        return isinstance(value, str)
    if key in MAPPING_KEYS:
        return isinstance(value, Mapping)
    if key == "all_requests":
        return isinstance(value, list) and all(isinstance(r, Mapping) for r in value)
    if key == "route":
        return callable(getattr(value, "template", None)) and callable(getattr(value, "layout", None))
    return True


def _coercible(item: Any) -> bool:
    if isinstance(item, StackItem):
        return True
    if not isinstance(item, Mapping):
        return False
    try:
        StackItem.coerce(item)
    except (TypeError, ValueError):
        return False
    return True


def _appends_to(current: list, new_errors: list) -> bool:
    return len(new_errors) >= len(current) and all(a is b for a, b in zip(new_errors, current))


def invoke_hook(descriptor: HookDescriptor, values: Dict[str, Any]) -> Any:
    """Invoke a hook using the calling convention captured at registration."""

    return bind_and_call(descriptor.run, descriptor.signature_summary, values, descriptor.name)


def call_with_values(func: Callable[..., Any], values: Mapping[str, Any], name: Optional[str] = None) -> Any:
    """Call any callable (route template, layout, shortcode) the way hooks are called."""

    return bind_and_call(func, summarise_signature(func), values, name or getattr(func, "__name__", repr(func)))


def bind_and_call(
    run: Callable[..., Any], summary: Optional[HookSignatureSummary], values: Mapping[str, Any], name: str
) -> Any:
    """Bind ``values`` to the parameters of ``run`` by name and invoke it.

    A parameter called ``context`` or a ``**kwargs`` parameter receives every
    value. Without an inspectable signature the whole mapping is passed as the
    only argument.
    """

    if summary is None:
        return run(values)
    args, kwargs = _bind(summary, values, name)
    return run(*args, **kwargs)


def _bind(summary: HookSignatureSummary, values: Mapping[str, Any], name: str):
    positional_kinds = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    args: list[Any] = []
    kwargs: Dict[str, Any] = {}
    remaining: Dict[str, Any] = dict(values)

    for parameter, value in _parameter_values(summary, values, remaining, name):
        if parameter.kind is inspect.Parameter.VAR_KEYWORD:
            kwargs.update(value)
        elif parameter.kind in positional_kinds:
            args.append(value)
        else:
            kwargs[parameter.name] = value
    return args, kwargs


def _parameter_values(
    summary: HookSignatureSummary, values: Mapping[str, Any], remaining: Dict[str, Any], name: str
) -> Iterator[tuple]:
    for parameter in summary.signature.parameters.values():
        if parameter is summary.context_parameter:
            remaining.pop(parameter.name, None)
            yield parameter, dict(values)
        elif parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            continue
        elif parameter.kind is inspect.Parameter.VAR_KEYWORD:
            # names bound to earlier parameters are not passed twice
            yield parameter, dict(remaining)
            remaining.clear()
        elif parameter.name in remaining:
            yield parameter, remaining.pop(parameter.name)
        elif parameter.default is not inspect.Parameter.empty:
            yield parameter, parameter.default
        else:
            raise TypeError(f"Missing required context value '{parameter.name}' for '{name}'")
