"""Loading of site modules for the command line.

A site module is a Python file that exposes ``routes`` (route name to
:class:`~pagehooks.page.Route`) and ``all_requests``, and optionally ``hooks``,
``shortcodes``, ``helpers``, ``data``, ``query`` and ``settings`` (a mapping of
setting overrides).
"""

from __future__ import annotations

import importlib.util
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pagehooks.default_hooks import default_registry
from pagehooks.exceptions import ConfigurationError
from pagehooks.hooks import HookDescriptor, HookRegistry
from pagehooks.log_manager import log
from pagehooks.profiler import func_time


@dataclass
class Site:
    """The collaborators a site module provides."""

    path: Path
    routes: Dict[str, Any]
    all_requests: List[Mapping[str, Any]]
    hooks: List[Any] = field(default_factory=list)
    shortcodes: List[Any] = field(default_factory=list)
    helpers: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    query: Any = None
    settings: Dict[str, Any] = field(default_factory=dict)

    def registry(self) -> HookRegistry:
        """Return the built-in hooks plus the site's own hooks."""

        registry = default_registry()
        for item in self.hooks:
            registry.register(as_descriptor(item))
        return registry


def as_descriptor(item: Any) -> HookDescriptor:
    """Accept a :class:`HookDescriptor` or a mapping with the same keys."""

    if isinstance(item, HookDescriptor):
        return item
    if isinstance(item, Mapping):
        try:
            return HookDescriptor.create(
                item["hook_point"],
                item["name"],
                item["run"],
                item.get("priority", 50),
                item.get("description", ""),
            )
        except KeyError as exc:
            raise ConfigurationError(f"Hook definition is missing {exc}", {"hook": dict(item)}) from exc
    raise ConfigurationError(f"Unsupported hook definition: {item!r}")


@func_time
def load_site(site_path: str | os.PathLike[str], module_name: Optional[str] = None) -> Site:
    """
    Import a site module from a file path.

    Raises:
        ConfigurationError: If the file cannot be imported or lacks ``routes``/``all_requests``
    """
    path = Path(site_path).resolve()
    module_name = module_name or f"pagehooks_site_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Cannot import site module: {path}", {"path": str(path)})

    mod = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(mod)
    except (ImportError, OSError, SyntaxError) as exc:
        raise ConfigurationError(f"Failed to import site module: {path}", {"error": str(exc)}) from exc

    missing = [name for name in ("routes", "all_requests") if not hasattr(mod, name)]
    if missing:
        raise ConfigurationError(f"Site module {path} does not define: {', '.join(missing)}", {"path": str(path)})

    site = Site(
        path=path,
        routes=dict(mod.routes),
        all_requests=list(mod.all_requests),
        hooks=list(getattr(mod, "hooks", [])),
        shortcodes=list(getattr(mod, "shortcodes", [])),
        helpers=dict(getattr(mod, "helpers", {})),
        data=dict(getattr(mod, "data", {})),
        query=getattr(mod, "query", None),
        settings=dict(getattr(mod, "settings", {})),
    )
    log.debug("Loaded site %s: %d routes, %d requests", path, len(site.routes), len(site.all_requests))
    return site
