"""Diagnostics sinks receive the pipeline's human facing output.

The built-in hooks never print directly; they report through the sink injected
into the page or build, so tests can run silently with :class:`NullSink`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Sequence

from pagehooks.log_manager import log
from pagehooks.perf import TimingEntry


class DiagnosticsSink(ABC):
    """Base class for diagnostic output destinations."""

    @abstractmethod
    def report_errors(self, permalink: Optional[str], errors: Sequence[BaseException]) -> None:
        """Receive the errors recorded so far for a request."""

    @abstractmethod
    def report_request_time(self, permalink: Optional[str], duration_ms: float) -> None:
        """Receive the total generation time of one request."""

    @abstractmethod
    def report_timing_table(self, permalink: Optional[str], timings: Sequence[TimingEntry]) -> None:
        """Receive a request's timings, already sorted by ascending duration."""

    @abstractmethod
    def report_build_perf(self, summary: Dict[str, Dict[str, float]]) -> None:
        """Receive the per timing-name statistics of a whole build."""

    @abstractmethod
    def report_build_errors_written(self, path: Path, count: int) -> None:
        """Receive the location of the build error report."""


class LoggingSink(DiagnosticsSink):
    """Sink that writes everything through the pipeline logger."""

    def report_errors(self, permalink, errors):
        for error in errors:
            log.error("%s: %s", permalink, error)

    def report_request_time(self, permalink, duration_ms):
        log.info("%sms: \t %s", round(duration_ms, 1), permalink)

    def report_timing_table(self, permalink, timings):
        width = max((len(t.name) for t in timings), default=4)
        lines = [f"{'name':<{width}}  ms"]
        lines.extend(f"{t.name:<{width}}  {t.duration:.3f}" for t in timings)
        log.info("Timings for %s:\n%s", permalink, "\n".join(lines))

    def report_build_perf(self, summary):
        width = max((len(name) for name in summary), default=4)
        lines = [f"{'name':<{width}}  {'count':>6}  {'mean':>10}  {'max':>10}"]
        lines.extend(
            f"{name:<{width}}  {stats['count']:>6}  {stats['mean']:>10.3f}  {stats['max']:>10.3f}"
            for name, stats in summary.items()
        )
        log.info("Build timings:\n%s", "\n".join(lines))

    def report_build_errors_written(self, path, count):
        log.warning("Writing details on the %d build errors to: %s", count, path)


class NullSink(DiagnosticsSink):
    """Sink that discards all output."""

    def report_errors(self, permalink, errors):
        pass

    def report_request_time(self, permalink, duration_ms):
        pass

    def report_timing_table(self, permalink, timings):
        pass

    def report_build_perf(self, summary):
        pass

    def report_build_errors_written(self, path, count):
        pass
