"""Settings model and loading for the page build pipeline."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import toml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pagehooks.exceptions import ConfigurationError
from pagehooks.log_manager import log
from pagehooks.profiler import func_time

CONTEXTS = ("build", "server", "unknown")


class DebugSettings(BaseModel):
    """Flags gating diagnostic output. None of them changes produced artifacts."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    stacks: bool = Field(False, description="Log every stack before it is rendered")
    hooks: bool = Field(False, description="Log every hook invocation")
    performance: bool = Field(False, description="Report hook and build timing tables")
    build: bool = Field(False, description="Log build coordinator progress")


class HookSettings(BaseModel):
    """Hook selection settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    disable: List[str] = Field(default_factory=list, description="Hook names excluded from every resolution")


class Settings(BaseModel):
    """Resolved settings shared read-only by every page of a build."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    root_dir: str = Field(".", description="Project root; other paths resolve against it")
    src_dir: str = Field("src", description="Source directory")
    dist_dir: str = Field("public", description="Directory build artifacts are written to")
    origin: str = Field("", description="Fully qualified site origin, e.g. https://example.com")
    context: str = Field("unknown", description="Invocation context: build, server or unknown")
    build: bool = Field(False, description="True when running a static build")
    server: bool = Field(False, description="True when serving requests")
    worker: bool = Field(False, description="Run pages through the worker pool")
    number_of_workers: int = Field(-1, description="Worker pool size, -1 uses the CPU count")
    debug: DebugSettings = Field(default_factory=DebugSettings)
    hooks: HookSettings = Field(default_factory=HookSettings)
    plugins: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("context")
    @classmethod
    def validate_context(cls, v: str) -> str:
        """Validate context name."""
        if v not in CONTEXTS:
            raise ValueError(f"context must be one of {list(CONTEXTS)}, got: {v}")
        return v

    @field_validator("number_of_workers")
    @classmethod
    def validate_number_of_workers(cls, v: int) -> int:
        """Allow -1 (auto) or a positive worker count."""
        if v == 0 or v < -1:
            raise ValueError("number_of_workers must be -1 or a positive integer")
        return v

    def worker_count(self) -> int:
        """Return the effective worker pool size."""
        if self.number_of_workers == -1:
            return os.cpu_count() or 1
        return self.number_of_workers


def deep_merge(*layers: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge mappings left to right; nested mappings merge, everything else is replaced."""

    merged: Dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
                merged[key] = deep_merge(merged[key], value)
            elif isinstance(value, Mapping):
                merged[key] = deep_merge(value)
            else:
                merged[key] = value
    return merged


def load_config_file(config_file: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load a TOML settings file.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    path = Path(config_file)
    try:
        data = toml.load(path)
    except (OSError, toml.TomlDecodeError) as exc:
        raise ConfigurationError(f"Failed to load config file: {path}", {"path": str(path), "error": str(exc)}) from exc
    log.debug("Loaded settings from '%s'", path)
    return data


@func_time
def get_settings(
    options: Optional[Mapping[str, Any]] = None,
    config_file: Optional[str | os.PathLike[str]] = None,
) -> Settings:
    """
    Build :class:`Settings` from an optional TOML file and explicit options.

    Explicit options win over the file, the file wins over defaults. ``build`` and
    ``server`` are only honoured when ``context`` matches them, and ``worker`` is only
    taken from the explicit options.

    Raises:
        ConfigurationError: On unreadable files or invalid values
    """
    options = dict(options or {})
    loaded = load_config_file(config_file) if config_file else {}
    merged = deep_merge(loaded, options)

    context = options.get("context", "unknown")
    root_dir = Path(merged.get("root_dir", ".")).resolve()
    merged["root_dir"] = str(root_dir)
    merged["src_dir"] = str((root_dir / merged.get("src_dir", "src")).resolve())
    merged["dist_dir"] = str((root_dir / merged.get("dist_dir", "public")).resolve())
    merged["context"] = context
    merged["build"] = context == "build" and bool(merged.get("build", True))
    merged["server"] = context == "server" and bool(merged.get("server", True))
    merged["worker"] = bool(options.get("worker", False))

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(
            "Invalid settings",
            {"errors": exc.errors(include_url=False), "config_file": str(config_file) if config_file else None},
        ) from exc

    if not settings.origin:
        log.warning(
            "Remember to set a valid 'origin' in your settings. It should be a fully qualified domain "
            "and plugins frequently depend on it."
        )
    return settings
