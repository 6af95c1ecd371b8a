"""Runtime profiling helpers used by the CLI entry points."""

from __future__ import annotations

import builtins
import cProfile
import io
import pstats
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, TypeVar, cast

from pagehooks.log_manager import log
from pagehooks.utils import path_from_root

CPROFILE_PATH = Path(path_from_root(".cache", "cprofile"))
PROFILE_DUMP_NAME = "profile_dump"

F = TypeVar("F", bound=Callable[..., Any])


def func_time(func: F) -> F:
    """Decorator to measure function execution time."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            duration = time.perf_counter() - start
            log.debug("%s took %f seconds", func.__name__, duration)

    return cast(F, wrapper)


def func_cprofile(func: F) -> F:
    """Decorator that profiles ``func`` with cProfile when ``builtins.ENABLE_CPROFILE`` is set."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        if not getattr(builtins, "ENABLE_CPROFILE", False):
            return func(*args, **kwargs)

        profile = cProfile.Profile()
        profile.enable()
        try:
            return func(*args, **kwargs)
        finally:
            profile.disable()
            _dump_profile(profile, func.__name__)

    return cast(F, wrapper)


def _dump_profile(profile: cProfile.Profile, name: str) -> None:
    try:
        CPROFILE_PATH.mkdir(parents=True, exist_ok=True)
        stream = io.StringIO()
        stats = pstats.Stats(profile, stream=stream)
        stats.sort_stats("cumulative").print_stats(30)
        log.debug("cProfile stats for %s:\n%s", name, stream.getvalue())
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        dump_path = CPROFILE_PATH / f"{PROFILE_DUMP_NAME}_{name}_{timestamp}.prof"
        profile.dump_stats(dump_path)
        log.info("cProfile dump written to %s", dump_path)
    except OSError as exc:
        log.exception("fail to write cProfile stats: %s", exc)
