"""Logging configuration for netdash.

Provides structured logging with file rotation and optional debug output.
All components should use this logging system instead of print(); the
full-screen UI owns the terminal, so console output is off while it runs.

Usage:
    from config.logging_config import setup_logging, get_logger

    # Initialize at app startup
    setup_logging(data_dir=Path.home() / ".netdash", console_output=False)

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("Poll completed")
"""
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Sequence

from config.constants import STORAGE

ROOT_LOGGER_NAME = 'netdash'

# Module-level logger cache
_loggers: dict = {}
_initialized: bool = False
_root_logger: Optional[logging.Logger] = None


class NetDashFormatter(logging.Formatter):
    """Formatter with color support for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    def __init__(self, use_colors: bool = True):
        self.use_colors = use_colors
        super().__init__(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors and sys.stderr.isatty():
            color = self.COLORS.get(record.levelname, '')
            reset = self.COLORS['RESET']
            record.levelname = f"{color}{record.levelname}{reset}"
        return super().format(record)


def setup_logging(
    data_dir: Optional[Path] = None,
    debug: bool = False,
    console_output: bool = False,
    log_to_file: bool = True
) -> logging.Logger:
    """Initialize the logging system.

    Should be called once at application startup. Subsequent calls
    will reconfigure the existing logger.

    Args:
        data_dir: Directory for log files. Defaults to ~/.netdash/
        debug: Enable debug-level logging.
        console_output: Also log to stderr. Leave off while the TUI is running.
        log_to_file: Write logs to file with rotation.

    Returns:
        The root logger for the application.
    """
    global _initialized, _root_logger

    if data_dir is None:
        data_dir = Path.home() / STORAGE.DATA_DIR_NAME

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    root_logger.propagate = False

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()

    if log_to_file:
        data_dir.mkdir(parents=True, exist_ok=True)
        log_file = data_dir / STORAGE.LOG_FILE
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=STORAGE.LOG_MAX_BYTES,
            backupCount=STORAGE.LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
        console_handler.setFormatter(NetDashFormatter(use_colors=True))
        root_logger.addHandler(console_handler)

    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    root_logger.info(
        f"Logging initialized - level={'DEBUG' if debug else 'INFO'}, "
        f"file={log_to_file}, console={console_output}"
    )

    _initialized = True
    _root_logger = root_logger

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Returns a child logger of the root 'netdash' logger.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        A logger instance.

    Example:
        >>> logger = get_logger("monitor.parser")
        >>> logger.name
        'netdash.monitor.parser'
    """
    # Keep last 2 parts at most, e.g. "monitor.parser"
    short_name = '.'.join(name.split('.')[-2:])

    if short_name not in _loggers:
        _loggers[short_name] = logging.getLogger(f'{ROOT_LOGGER_NAME}.{short_name}')

    return _loggers[short_name]


def log_exception(logger: logging.Logger, message: str, exc: Exception) -> None:
    """Log an exception with full traceback and context.

    Args:
        logger: The logger to use.
        message: Descriptive message about what was happening.
        exc: The exception that was caught.
    """
    logger.error(
        f"{message}: {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra={'exception_type': type(exc).__name__}
    )


def log_subprocess_call(
    logger: logging.Logger,
    command: Sequence[str],
    returncode: Optional[int],
    duration_ms: float,
    success: bool
) -> None:
    """Log a subprocess call with timing information.

    Args:
        logger: The logger to use.
        command: The command that was run (already redacted).
        returncode: Exit code of the process, None if it was killed.
        duration_ms: How long the command took in milliseconds.
        success: Whether the command succeeded.
    """
    level = logging.DEBUG if success else logging.WARNING
    shown = ' '.join(command[:6])
    logger.log(
        level,
        f"Subprocess: {shown}{' ...' if len(command) > 6 else ''} "
        f"-> rc={returncode}, {duration_ms:.1f}ms"
    )


class LogContext:
    """Context manager for logging operation duration.

    Example:
        >>> with LogContext(logger, "Wi-Fi poll"):
        ...     poll_wifi()
        # Logs: "Wi-Fi poll completed in 123ms"
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time: Optional[datetime] = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.log(self.level, f"{self.operation} starting...")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = (datetime.now() - self.start_time).total_seconds() * 1000

        if exc_type:
            self.logger.warning(
                f"{self.operation} failed after {duration:.0f}ms: {exc_val}"
            )
        else:
            self.logger.log(
                self.level,
                f"{self.operation} completed in {duration:.0f}ms"
            )

        return False  # Don't suppress exceptions
