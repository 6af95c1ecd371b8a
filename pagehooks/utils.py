"""Utility helpers shared across the project."""

from __future__ import annotations

import json
import os
import time
from importlib import metadata
from pathlib import Path
from typing import Any, Union

PathLike = Union[str, os.PathLike[str]]


def path_from_root(*parts: PathLike) -> str:
    """Join ``parts`` to the current working directory and return the path as ``str``.

    ``path_from_root`` behaves like :class:`pathlib.Path`'s ``joinpath`` which means that if
    any argument is an absolute path it will replace the accumulated result.
    """

    cwd = Path.cwd()
    if not parts:
        return str(cwd)

    joined = cwd.joinpath(*(Path(p) for p in parts))
    return str(joined)


def get_filename(prefix: str, suffix: str, directory: PathLike) -> str:
    """Return an absolute filename constructed from ``prefix`` and ``suffix``.

    The filename is generated under ``directory`` (relative to the current working directory)
    and suffixed with a timestamp so repeated calls do not collide.
    """

    target_dir = Path(path_from_root(directory))
    target_dir.mkdir(parents=True, exist_ok=True)

    timestamp = time.strftime("%Y%m%d_%H%M%S")
    return str(target_dir / f"{prefix}{timestamp}{suffix}")


def write_text(path: PathLike, content: str) -> Path:
    """Write ``content`` to ``path`` creating parent directories as needed."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    # newline="" keeps the written bytes identical to the string
    with target.open("w", encoding="utf-8", newline="") as handle:
        handle.write(content)
    return target


def write_json(path: PathLike, payload: Any) -> Path:
    """Serialise ``payload`` as indented JSON, stringifying unknown values."""

    return write_text(path, json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def epoch_millis() -> int:
    """Return the current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def get_version() -> str:
    """
    Retrieves the installed package version.

    Returns:
        str: The project version, or "0.0.0-dev" if the package is not installed.
    """
    try:
        return metadata.version("pagehooks")
    except metadata.PackageNotFoundError:
        return "0.0.0-dev"
