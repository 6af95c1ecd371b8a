"""
Hook driven page build pipeline.
"""

from pagehooks.build import Build, BuildResult
from pagehooks.config import DebugSettings, HookSettings, Settings, get_settings
from pagehooks.context import BuildContext
from pagehooks.default_hooks import default_registry
from pagehooks.diagnostics import DiagnosticsSink, LoggingSink, NullSink
from pagehooks.exceptions import (
    ConfigurationError,
    DuplicateHookNameError,
    HookExecutionError,
    HookPatchError,
    PageHooksError,
)
from pagehooks.hooks import HookDescriptor, HookPoint, HookPriority, HookRegistry
from pagehooks.page import Page, Route
from pagehooks.shortcodes import Shortcode
from pagehooks.stack import ContentStack, StackItem

__all__ = [
    "Build",
    "BuildResult",
    "BuildContext",
    "ContentStack",
    "StackItem",
    "DebugSettings",
    "HookSettings",
    "Settings",
    "get_settings",
    "default_registry",
    "DiagnosticsSink",
    "LoggingSink",
    "NullSink",
    "ConfigurationError",
    "DuplicateHookNameError",
    "HookExecutionError",
    "HookPatchError",
    "PageHooksError",
    "HookDescriptor",
    "HookPoint",
    "HookPriority",
    "HookRegistry",
    "Page",
    "Route",
    "Shortcode",
]
