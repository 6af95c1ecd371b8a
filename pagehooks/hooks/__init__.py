"""
Hook system for the page build lifecycle.
"""

from pagehooks.hooks.executor import HookRunner, call_with_values, check_patch, invoke_hook
from pagehooks.hooks.points import MUTABLE_KEYS, STACK_KEYS, HookPoint, as_hook_point, mutable_keys
from pagehooks.hooks.registry import HookDescriptor, HookPriority, HookRegistry

__all__ = [
    # Enums
    "HookPoint",
    "HookPriority",
    # Registry
    "HookDescriptor",
    "HookRegistry",
    # Patch rules
    "MUTABLE_KEYS",
    "STACK_KEYS",
    "as_hook_point",
    "mutable_keys",
    # Execution
    "HookRunner",
    "call_with_values",
    "check_patch",
    "invoke_hook",
]
