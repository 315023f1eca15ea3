"""
Logging Framework for the Table One generator

This module provides logging infrastructure with:
- Multiple output targets (file, console)
- Configurable log levels and formats
- Automatic log rotation
- Performance tracking

Usage:
    from logger import get_logger

    logger = get_logger(__name__)
    logger.info("Table generation started")
    logger.warning("Empty stratum")

    # Performance tracking
    with logger.track_time("summarize"):
        stats = summarize(spec, column, partition)
"""

import logging
import logging.handlers
import sys
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import ClassVar, Dict, Optional

from config import CONFIG


class PerformanceLogger:
    """
    Track and log performance metrics.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.timings: Dict[str, list] = {}
        self._lock = threading.Lock()

    @contextmanager
    def track_time(self, operation: str, log_level: str = "DEBUG"):
        """
        Context manager that measures and logs the elapsed time of a named operation.

        If CONFIG['logging.log_performance'] is falsy, the context yields without measuring or logging. When enabled, the elapsed time is appended to self.timings[operation] and a message is emitted on the wrapped logger at the requested log level.
        """
        if not CONFIG.get('logging.log_performance'):
            yield
            return

        start_time = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start_time

            with self._lock:
                self.timings.setdefault(operation, []).append(elapsed)

            log_method = getattr(self.logger, log_level.lower(), self.logger.debug)
            log_method(f"{operation} completed in {elapsed:.3f}s")


class LoggerFactory:
    """
    Factory for creating and managing loggers.
    """

    _loggers: ClassVar[Dict[str, 'Logger']] = {}
    _perf_logger: Optional[PerformanceLogger] = None
    _configured = False
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def configure(cls) -> None:
        """
        Perform one-time configuration of the logging system using values from CONFIG.

        Sets up the `tableone` package logger and its enabled handlers (file/console). If CONFIG disables logging, logging is globally disabled. On error it prints a warning to stderr and marks configuration as complete to avoid repeated attempts.
        """
        if cls._configured:
            return

        try:
            if not CONFIG.get('logging.enabled'):
                logging.disable(logging.CRITICAL)
                cls._configured = True
                return

            log_level = CONFIG.get('logging.level', 'INFO')
            formatter = logging.Formatter(
                CONFIG.get('logging.format'), datefmt=CONFIG.get('logging.date_format')
            )

            # Library code attaches to its own logger tree, never the root logger
            base_logger = logging.getLogger('tableone')
            numeric_level = getattr(logging, log_level.upper(), None)
            if numeric_level is None:
                print(f"[WARNING] Invalid log level '{log_level}', defaulting to INFO", file=sys.stderr)
                numeric_level = logging.INFO
            base_logger.setLevel(numeric_level)

            if base_logger.handlers:
                base_logger.handlers.clear()

            if CONFIG.get('logging.file_enabled'):
                cls._setup_file_logging(base_logger, formatter)

            if CONFIG.get('logging.console_enabled'):
                cls._setup_console_logging(base_logger, formatter)

            cls._configured = True

        except Exception as e:
            print(f"[WARNING] Logging configuration failed: {e}", file=sys.stderr)
            cls._configured = True

    @classmethod
    def _setup_file_logging(cls, base_logger: logging.Logger, formatter: logging.Formatter) -> None:
        """
        Configure rotating file logging from 'logging.log_dir', 'logging.log_file',
        'logging.max_log_size' and 'logging.backup_count'.
        """
        try:
            log_dir = Path(CONFIG.get('logging.log_dir', 'logs'))
            log_dir.mkdir(exist_ok=True, parents=True)

            handler = logging.handlers.RotatingFileHandler(
                log_dir / CONFIG.get('logging.log_file', 'tableone.log'),
                maxBytes=CONFIG.get('logging.max_log_size', 10485760),
                backupCount=CONFIG.get('logging.backup_count', 5),
            )
            handler.setFormatter(formatter)
            base_logger.addHandler(handler)

        except Exception as e:
            print(f"[WARNING] Failed to setup file logging: {e}", file=sys.stderr)

    @classmethod
    def _setup_console_logging(cls, base_logger: logging.Logger, formatter: logging.Formatter) -> None:
        try:
            console_handler = logging.StreamHandler(sys.stdout)
            console_level = CONFIG.get('logging.console_level', 'INFO')
            console_handler.setLevel(getattr(logging, console_level.upper(), logging.INFO))
            console_handler.setFormatter(formatter)
            base_logger.addHandler(console_handler)

        except Exception as e:
            print(f"[WARNING] Failed to setup console logging: {e}", file=sys.stderr)

    @classmethod
    def get_logger(cls, name: str) -> 'Logger':
        """
        Retrieve a cached Logger by name, configuring the logging system on first use if necessary.
        """
        if not cls._configured:
            cls.configure()

        with cls._lock:
            if name not in cls._loggers:
                cls._loggers[name] = Logger(logging.getLogger(name))
            return cls._loggers[name]

    @classmethod
    def get_performance_logger(cls) -> PerformanceLogger:
        if cls._perf_logger is None:
            cls._perf_logger = PerformanceLogger(logging.getLogger('tableone.performance'))
        return cls._perf_logger


class Logger:
    """
    Wrapper around standard logger with additional features.
    """

    def __init__(self, standard_logger: logging.Logger):
        self._logger = standard_logger
        self._perf_logger = LoggerFactory.get_performance_logger()

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args, **kwargs) -> None:
        """Log debug message."""
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        """Log info message."""
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        """
        Log a message with ERROR severity; keyword arguments (e.g. `exc_info`) go to the underlying logger.
        """
        self._logger.error(msg, *args, **kwargs)

    def log_operation(self, operation: str, status: str = "started", **details) -> None:
        """
        Log an operation event with optional details.

        Builds a single-line message containing the operation name in brackets, an uppercase status, and any key=value pairs provided in `details`. Uses the ERROR level when `status` is "failed" (case-insensitive) and INFO level for other statuses.
        """
        msg_parts = [f"[{operation}]"]

        if status:
            msg_parts.append(status.upper())

        if details:
            msg_parts.append(" | ".join(f"{k}={v}" for k, v in details.items()))

        msg = " ".join(msg_parts)

        if status.lower() == "failed":
            self.error(msg)
        else:
            self.info(msg)

    def log_data_summary(self, df_name: str, shape: tuple, dtypes: Dict[str, str]) -> None:
        """
        Log a concise summary of a DataFrame's size and column type composition.

        Emitted only when CONFIG['logging.log_data_operations'] is truthy.
        """
        if CONFIG.get('logging.log_data_operations'):
            self.info(
                f"{df_name}: shape={shape}, "
                f"numeric={sum(1 for t in dtypes.values() if 'int' in t.lower() or 'float' in t.lower())}, "
                f"object={sum(1 for t in dtypes.values() if 'object' in t)}"
            )

    def log_analysis(self, analysis_type: str, strata: str, n_vars: int, n_samples: int) -> None:
        """
        Log the analysis type, stratifying variable, number of summarized variables and sample count.

        Emitted only when `logging.log_analysis_operations` is enabled.
        """
        if CONFIG.get('logging.log_analysis_operations'):
            self.info(
                f"{analysis_type}: strata='{strata}', "
                f"variables={n_vars}, n={n_samples}"
            )

    @contextmanager
    def track_time(self, operation: str, log_level: str = "DEBUG"):
        with self._perf_logger.track_time(operation, log_level):
            yield


# Convenience function
def get_logger(name: str) -> Logger:
    """
    Obtain a configured logger for the given name.

    Parameters:
        name (str): The logger name, typically `__name__`.

    Returns:
        Logger: A Logger instance configured according to the module's logging settings.
    """
    return LoggerFactory.get_logger(name)
