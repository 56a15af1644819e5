# logger_utils.py - for logging messages and performance metrics, timestamps etc

import logging
import time
from typing import Optional

# Root logger name for the whole package; core modules log under it via __name__
LOGGER_NAME = "smart_form_predictor"
LOG_FORMAT = "[%(asctime)s] %(levelname)-7s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger = logging.getLogger(LOGGER_NAME)
_logger.addHandler(logging.NullHandler())


class Log:
    """Lightweight facade over the package logger for messages and metrics."""

    @staticmethod
    def configure(path: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
        """
        Attach a handler to the package logger.
        Writes to `path` when given, else to stderr. Calling twice does not
        duplicate handlers.
        """
        for h in list(_logger.handlers):
            if not isinstance(h, logging.NullHandler):
                _logger.removeHandler(h)
        handler = logging.FileHandler(path, encoding="utf-8") if path else logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        _logger.addHandler(handler)
        _logger.setLevel(level)
        return _logger

    @staticmethod
    def write(msg: str, level: int = logging.INFO):
        """
        Log a message at the given level.
        Each entry is written as: [YYYY-MM-DD HH:MM:SS] LEVEL | message
        """
        _logger.log(level, msg)

    @staticmethod
    def warning(msg: str):
        _logger.warning(msg)

    @staticmethod
    def metric(tag, value, unit=""):
        """
        Record a metric (like timing, counts, or performance stats).
        Example: orchestrator.learn done: 0.003s
        """
        _logger.debug(f"{tag}: {value}{unit}")

    @staticmethod
    def time_block(label):
        """
        Helper for measuring execution time of a code block.
        To use:
            with Log.time_block("learn"):
                do_some_work()
        It automatically logs how long the block took.
        """
        return _Timer(label)


class _Timer:
    """Context manager used internally to measure time for a code block."""
    def __init__(self, label):
        self.label = label
        self.start = time.perf_counter()
        self.elapsed = 0.0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        """When exiting the 'with' block, calculate how long it took and record it as a metric."""
        self.elapsed = round(time.perf_counter() - self.start, 6)
        Log.metric(f"{self.label} done", self.elapsed, "s")
