"""Per page timing collection and build level timing summaries."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class TimingEntry:
    """A finished timer. ``start``/``end``/``duration`` are milliseconds."""

    name: str
    start: float
    end: float
    duration: float

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def _now_ms() -> float:
    return time.perf_counter() * 1000


class Perf:
    """Named timers that append a :class:`TimingEntry` to ``timings`` when they end.

    ``timings`` is usually the ``timings`` list of a build context, so finished
    timers show up to hooks that read the context later.
    """

    def __init__(self, timings: Optional[List[TimingEntry]] = None, prefix: str = ""):
        self.timings: List[TimingEntry] = timings if timings is not None else []
        self.prefix = prefix
        self._running: Dict[str, float] = {}

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def start(self, name: str) -> None:
        self._running[self._key(name)] = _now_ms()

    def end(self, name: str) -> Optional[TimingEntry]:
        """Stop timer ``name``. Ending a timer that never started is a no-op."""

        key = self._key(name)
        started = self._running.pop(key, None)
        if started is None:
            return None
        finished = _now_ms()
        entry = TimingEntry(name=key, start=started, end=finished, duration=finished - started)
        self.timings.append(entry)
        return entry

    def find(self, name: str) -> Optional[TimingEntry]:
        """Return the most recent entry called ``name``."""

        key = self._key(name)
        for entry in reversed(self.timings):
            if entry.name == key:
                return entry
        return None


def parse_build_perf(timings: Iterable[TimingEntry]) -> Dict[str, Dict[str, float]]:
    """
    Summarise build timings by name.

    Returns:
        Mapping of timing name to ``count``, ``mean``, ``min``, ``max`` and ``total``
        milliseconds, ordered by descending mean.
    """
    grouped: Dict[str, List[float]] = {}
    for entry in timings:
        grouped.setdefault(entry.name, []).append(entry.duration)

    summary = {
        name: {
            "count": len(durations),
            "mean": round(sum(durations) / len(durations), 3),
            "min": round(min(durations), 3),
            "max": round(max(durations), 3),
            "total": round(sum(durations), 3),
        }
        for name, durations in grouped.items()
    }
    return dict(sorted(summary.items(), key=lambda item: item[1]["mean"], reverse=True))
