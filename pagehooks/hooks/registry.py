"""Registry primitives for registering and resolving lifecycle hooks."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from pagehooks.exceptions import DuplicateHookNameError
from pagehooks.hooks.points import HookPoint, HookPointLike, as_hook_point
from pagehooks.log_manager import LogManager

log = LogManager().get_logger(__name__)


class HookPriority(Enum):
    """Named priority levels. Lower values run first."""

    CRITICAL = 1
    HIGH = 10
    NORMAL = 50
    LOW = 100


PriorityLike = Union[int, HookPriority]


@dataclass(frozen=True)
class HookSignatureSummary:
    """Pre-computed information about how to invoke a hook."""

    signature: inspect.Signature
    context_parameter: Optional[inspect.Parameter]


@dataclass(frozen=True)
class HookDescriptor:
    """A named, prioritised unit of extension logic bound to one hook point."""

    hook_point: HookPoint
    name: str
    run: Callable[..., object]
    priority: int = HookPriority.NORMAL.value
    description: str = ""
    signature_summary: Optional[HookSignatureSummary] = field(default=None, compare=False, repr=False)

    @classmethod
    def create(
        cls,
        hook_point: HookPointLike,
        name: str,
        run: Callable[..., object],
        priority: PriorityLike = HookPriority.NORMAL,
        description: str = "",
    ) -> "HookDescriptor":
        """Build a descriptor, normalising the hook point and capturing the signature."""

        if not name:
            raise ValueError("Hook name cannot be empty")
        if not callable(run):
            raise TypeError(f"Hook '{name}' run must be callable")

        summary = summarise_signature(run)
        return cls(
            hook_point=as_hook_point(hook_point),
            name=name,
            run=run,
            priority=_priority_value(priority),
            description=description,
            signature_summary=summary,
        )


class HookRegistry:
    """Holds registered hooks and resolves their execution order per hook point.

    One registry is built per configuration and handed to every page, so nothing is
    shared between builds unless the caller shares the instance.
    """

    def __init__(self, descriptors: Iterable[HookDescriptor] = ()):
        self._hooks: Dict[HookPoint, List[HookDescriptor]] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    def __len__(self) -> int:
        return sum(len(hooks) for hooks in self._hooks.values())

    def __contains__(self, item: Tuple[HookPointLike, str]) -> bool:
        hook_point, name = item
        return any(d.name == name for d in self._hooks.get(as_hook_point(hook_point), []))

    def register(self, descriptor: HookDescriptor) -> HookDescriptor:
        """
        Register a hook descriptor.

        Raises:
            DuplicateHookNameError: if the name is already taken on that hook point
        """
        hook_list = self._hooks.setdefault(descriptor.hook_point, [])

        for existing in hook_list:
            if existing.name == descriptor.name:
                raise DuplicateHookNameError(descriptor.hook_point.value, descriptor.name)

        # Kept in registration order; resolve() sorts with a stable sort.
        hook_list.append(descriptor)
        log.debug(
            "Registered hook '%s' for '%s' with priority %d",
            descriptor.name,
            descriptor.hook_point.value,
            descriptor.priority,
        )
        return descriptor

    def register_hook(
        self,
        hook_point: HookPointLike,
        name: str,
        run: Callable[..., object],
        priority: PriorityLike = HookPriority.NORMAL,
        description: str = "",
    ) -> HookDescriptor:
        """
        Register a hook function.

        Args:
            hook_point: Hook point the function runs at
            name: Name, unique within the hook point
            run: Function to execute
            priority: Execution priority, lower runs first
            description: Description of the hook
        """
        return self.register(HookDescriptor.create(hook_point, name, run, priority, description))

    def hook(
        self,
        hook_point: HookPointLike,
        name: Optional[str] = None,
        priority: PriorityLike = HookPriority.NORMAL,
        description: str = "",
    ):
        """
        Decorator for registering hooks.

        The hook name defaults to the function name and the description to the first
        docstring line.
        """

        def decorator(func: Callable[..., object]):
            self.register_hook(
                hook_point=hook_point,
                name=name or func.__name__,
                run=func,
                priority=priority,
                description=description
                or (func.__doc__.strip().splitlines()[0] if func.__doc__ else ""),
            )
            return func

        return decorator

    def resolve(self, hook_point: HookPointLike, disabled_names: Iterable[str] = ()) -> List[HookDescriptor]:
        """
        Return the hooks to run for ``hook_point``.

        Disabled names are removed, then the remaining hooks are sorted by ascending
        priority; equal priorities keep registration order.
        """
        disabled = set(disabled_names)
        hooks = [d for d in self._hooks.get(as_hook_point(hook_point), []) if d.name not in disabled]
        return sorted(hooks, key=lambda d: d.priority)

    def unregister(self, hook_point: HookPointLike, name: str) -> bool:
        """
        Unregister a hook by name.

        Returns:
            True if hook was unregistered, False if not found
        """
        point = as_hook_point(hook_point)
        hook_list = self._hooks.get(point, [])
        for i, descriptor in enumerate(hook_list):
            if descriptor.name == name:
                hook_list.pop(i)
                log.debug("Unregistered hook '%s' for '%s'", name, point.value)
                return True
        return False

    def list_hooks(self, hook_point: Optional[HookPointLike] = None) -> Dict[str, List[HookDescriptor]]:
        """Return resolved hooks keyed by hook point value, optionally for one point only."""

        points = [as_hook_point(hook_point)] if hook_point else list(HookPoint)
        return {point.value: self.resolve(point) for point in points if self._hooks.get(point)}

    def extended(self, descriptors: Iterable[HookDescriptor]) -> "HookRegistry":
        """Return a new registry holding these hooks plus ``descriptors``; ``self`` is unchanged."""

        registry = HookRegistry(d for hooks in self._hooks.values() for d in hooks)
        for descriptor in descriptors:
            registry.register(descriptor)
        return registry

    def clear(self, hook_point: Optional[HookPointLike] = None) -> None:
        """Clear all hooks or the hooks of one hook point."""

        if hook_point:
            self._hooks.pop(as_hook_point(hook_point), None)
        else:
            self._hooks.clear()


def _priority_value(priority: PriorityLike) -> int:
    if isinstance(priority, HookPriority):
        return priority.value
    if isinstance(priority, bool) or not isinstance(priority, int):
        raise TypeError(f"Hook priority must be an int or HookPriority, got {priority!r}")
    return priority


def summarise_signature(func: Callable[..., object]) -> Optional[HookSignatureSummary]:
    """Capture how ``func`` wants its values, or ``None`` if it cannot be inspected."""

    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return None

    context_parameter = signature.parameters.get("context")
    return HookSignatureSummary(signature=signature, context_parameter=context_parameter)
