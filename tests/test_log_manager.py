"""
Tests for log_manager module.
"""

# pylint: disable=protected-access

import logging
from pathlib import Path

from pagehooks.diagnostics import LoggingSink
from pagehooks.log_manager import LOG_FORMAT, LOGGER_NAME, ColoredFormatter, LogManager, log
from pagehooks.perf import TimingEntry


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("test", level, __file__, 42, msg, (), None, func="test_function")


class TestColoredFormatter:
    """Test cases for ColoredFormatter class."""

    def test_info_is_green(self):
        result = ColoredFormatter(LOG_FORMAT).format(_record(logging.INFO, "Test message"))
        assert result.startswith("\033[32m")
        assert result.endswith("\033[0m")
        assert "Test message" in result

    def test_unknown_level_has_no_color(self):
        record = _record(logging.INFO, "plain")
        record.levelname = "CUSTOM"
        assert ColoredFormatter("%(message)s").format(record) == "plain\033[0m"


class TestLogManager:
    """Test cases for LogManager singleton."""

    def test_singleton(self):
        assert LogManager() is LogManager()
        assert LogManager().get_logger() is log

    def test_logging_config_has_console_and_file(self):
        config = LogManager._build_logging_config(Path("x.log"))
        assert list(config["loggers"]) == [LOGGER_NAME]
        assert config["loggers"][LOGGER_NAME]["handlers"] == ["console", "file"]
        assert config["handlers"]["file"]["filename"] == "x.log"

    def test_module_loggers_live_below_the_pipeline_logger(self):
        executor_log = LogManager().get_logger("pagehooks.hooks.executor")
        assert executor_log is logging.getLogger("pagehooks.hooks.executor")
        assert LogManager().get_logger("build") is logging.getLogger("pagehooks.build")
        assert not executor_log.handlers
        assert executor_log.isEnabledFor(logging.INFO)

    def test_set_console_level(self):
        manager = LogManager()
        manager.set_console_level("DEBUG")
        try:
            consoles = [
                h
                for h in log.handlers
                if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
            ]
            assert consoles and all(h.level == logging.DEBUG for h in consoles)
        finally:
            manager.set_console_level("INFO")


class TestLoggingSink:
    """The logging sink formats diagnostics through the pipeline logger."""

    def test_request_time_line(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            LoggingSink().report_request_time("/about/", 12.345)
        assert "12.3ms: \t /about/" in caplog.text

    def test_timing_table_and_build_perf(self, caplog):
        sink = LoggingSink()
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            sink.report_timing_table("/", [TimingEntry("hook.data.a", 0, 1, 1), TimingEntry("page", 0, 5, 5)])
            sink.report_build_perf({"page": {"count": 2, "mean": 3.0, "min": 1.0, "max": 5.0, "total": 6.0}})
        assert "hook.data.a" in caplog.text
        assert "Build timings" in caplog.text
