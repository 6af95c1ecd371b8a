"""
Simple registry for function-based CLI operations.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict


@dataclass(slots=True)
class OperationMetadata:
    """Metadata describing a registered operation."""

    func: Callable[..., Any]
    desc: str


REGISTRY: Dict[str, OperationMetadata] = {}


def register(name: str | None = None, *, desc: str | None = None):
    """
    Decorator to register a function as a CLI operation.

    - name: operation name to expose; defaults to function.__name__
    - desc: one-line description for help text
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        op_name = name or func.__name__
        REGISTRY[op_name] = OperationMetadata(
            func=func,
            desc=desc or (func.__doc__.strip().splitlines()[0] if func.__doc__ else "operation"),
        )
        return func

    return decorator


def get_registered_operations() -> Dict[str, OperationMetadata]:
    """Return a copy of the operation registry."""
    return dict(REGISTRY)
