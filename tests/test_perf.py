"""
Tests for timing collection and profiling helpers.
"""

# pylint: disable=import-outside-toplevel

import builtins
from unittest.mock import patch

from pagehooks.perf import Perf, TimingEntry, parse_build_perf
from pagehooks.profiler import func_cprofile, func_time


class TestPerf:
    """Test cases for the Perf timer collection."""

    def test_start_end_appends_entry(self):
        timings = []
        perf = Perf(timings, prefix="build.")
        perf.start("total")
        entry = perf.end("total")

        assert timings == [entry]
        assert entry.name == "build.total"
        assert entry.end >= entry.start
        assert entry.duration == entry.end - entry.start
        assert perf.find("total") is entry

    def test_end_without_start_is_noop(self):
        perf = Perf()
        assert perf.end("never") is None
        assert perf.timings == []

    def test_parse_build_perf_groups_by_name(self):
        timings = [
            TimingEntry("page", 0, 10, 10),
            TimingEntry("page", 0, 30, 30),
            TimingEntry("hook.data.x", 0, 1, 1),
        ]
        summary = parse_build_perf(timings)

        assert list(summary) == ["page", "hook.data.x"]
        assert summary["page"] == {"count": 2, "mean": 20.0, "min": 10.0, "max": 30.0, "total": 40.0}


class TestProfiler:
    """Test cases for profiler decorators."""

    def test_func_time_returns_result(self):
        @func_time
        def work():
            return "result"

        assert work() == "result"

    def test_func_cprofile_disabled_by_default(self):
        @func_cprofile
        def work():
            return "result"

        with patch("pagehooks.profiler.cProfile.Profile") as profile:
            assert work() == "result"
            profile.assert_not_called()

    def test_func_cprofile_survives_stats_failure(self, tmp_path):
        @func_cprofile
        def work():
            return "result"

        with patch.object(builtins, "ENABLE_CPROFILE", True, create=True), patch(
            "pagehooks.profiler.CPROFILE_PATH", tmp_path
        ), patch("pagehooks.profiler.pstats.Stats", side_effect=OSError("Test error")):
            assert work() == "result"
