"""Exceptions raised by the page build pipeline."""

from __future__ import annotations

from typing import Iterable, Optional


class PageHooksError(Exception):
    """Base exception for page build errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Return a JSON friendly representation used by the build error report."""
        return {"type": type(self).__name__, "message": self.message, "details": self.details}


class HookExecutionError(PageHooksError):
    """Exception recorded when a hook's run function raises."""

    def __init__(
        self,
        hook_point: str,
        hook_name: str,
        original: BaseException,
        permalink: Optional[str] = None,
    ):
        super().__init__(
            f"Hook '{hook_name}' on '{hook_point}' failed: {original}",
            {
                "hook_point": hook_point,
                "hook_name": hook_name,
                "permalink": permalink,
                "error": repr(original),
            },
        )
        self.hook_point = hook_point
        self.hook_name = hook_name
        self.original = original
        self.permalink = permalink


class HookPatchError(PageHooksError):
    """Exception recorded when a hook returns keys it may not patch."""

    def __init__(self, hook_point: str, hook_name: str, keys: Iterable[str], reason: str = "cannot patch"):
        rejected = sorted(keys)
        super().__init__(
            f"Hook '{hook_name}' on '{hook_point}' returned keys it {reason}: {', '.join(rejected)}",
            {"hook_point": hook_point, "hook_name": hook_name, "keys": rejected},
        )
        self.hook_point = hook_point
        self.hook_name = hook_name
        self.keys = rejected


class DuplicateHookNameError(PageHooksError):
    """Exception raised when a hook name is registered twice for one hook point."""

    def __init__(self, hook_point: str, name: str):
        super().__init__(
            f"Hook '{name}' is already registered for '{hook_point}'",
            {"hook_point": hook_point, "name": name},
        )
        self.hook_point = hook_point
        self.name = name


class ConfigurationError(PageHooksError):
    """Exception raised for configuration errors."""

    pass


def error_to_dict(error: BaseException) -> dict:
    """Serialise any recorded error for the build report."""

    if isinstance(error, PageHooksError):
        return error.to_dict()
    return {"type": type(error).__name__, "message": str(error), "details": {}}


__all__ = [
    "PageHooksError",
    "HookExecutionError",
    "HookPatchError",
    "DuplicateHookNameError",
    "ConfigurationError",
    "error_to_dict",
]
