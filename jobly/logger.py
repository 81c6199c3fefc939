"""
Structured logging for jobly.

Wraps the standard logging module with console/file outputs and keeps
per-operation counters so store health can be inspected at runtime.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json

from .env import Settings


class StructuredLogger:
    """
    Logger with console and optional file output.
    Tracks query and repository operation metrics.
    """

    def __init__(
        self,
        name: str = "jobly",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = False,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.metrics = {
            "queries_executed": 0,
            "rows_returned": 0,
            "operations": {},
            "errors_by_type": {},
        }

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"jobly_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message, stacklevel=3)

    # Metric tracking methods

    def record_query(self, rows: int):
        """Count one store round-trip and the rows it produced."""
        self.metrics["queries_executed"] += 1
        self.metrics["rows_returned"] += rows

    def record_operation(self, operation: str):
        """Record a repository operation call."""
        stats = self.metrics["operations"].setdefault(
            operation, {"calls": 0, "failures": 0}
        )
        stats["calls"] += 1

    def record_failure(self, operation: str, error_type: str):
        """Record a failed repository operation."""
        stats = self.metrics["operations"].setdefault(
            operation, {"calls": 0, "failures": 0}
        )
        stats["failures"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def get_metrics(self) -> dict:
        """Return a snapshot of current metrics with failure rates."""
        metrics_copy = json.loads(json.dumps(self.metrics))
        for stats in metrics_copy["operations"].values():
            if stats["calls"] > 0:
                stats["failure_rate"] = round(stats["failures"] / stats["calls"], 3)
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Store Metrics ===")
        self.info(f"Queries: {metrics['queries_executed']} ({metrics['rows_returned']} rows)")

        if metrics["operations"]:
            self.info("Operations:")
            for operation, stats in metrics["operations"].items():
                rate = stats.get("failure_rate", 0) * 100
                self.info(f"  {operation}: {stats['calls']} calls, {stats['failures']} failed ({rate:.1f}%)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "jobly",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Level and log directory default to the JOBLY_LOG_LEVEL / JOBLY_LOG_DIR
    settings; a file handler is added only when a log directory is set.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        settings = Settings.from_env()
        if settings.log_dir is not None:
            kwargs.setdefault("log_dir", settings.log_dir)
            kwargs.setdefault("enable_file", True)
        _global_logger = StructuredLogger(
            name=name, level=level or settings.log_level, **kwargs
        )

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
