"""
SkyChecker Logging Configuration

Centralized logging for the visibility engine:
- Console output plus optional rotating log file
- Per-service log levels (horizons, iss, weather, ...)
- Correlation IDs so every line of one planning cycle can be grepped together
- Helpers for logging exceptions and timing fetches

Usage:
    from skychecker.logging_config import setup_logging, get_logger, log_timing
    from skychecker.logging_config import correlation_context

    setup_logging(log_level="INFO", log_file="~/.skychecker/skychecker.log")
    logger = get_logger(__name__)

    with correlation_context(prefix="cycle"):
        with log_timing(logger, "horizons batch", warn_threshold_sec=30.0):
            await provider.fetch_all_ephemeris(objects, location, window)
"""

import logging
import sys
import time
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Generator, Optional

ROOT_LOGGER_NAME = "skychecker"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s"
PLAIN_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 5 * 1024 * 1024  # 5MB
LOG_BACKUP_COUNT = 3

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _level(name: str) -> int:
    return LOG_LEVELS.get(name.upper(), logging.INFO)


# =============================================================================
# Correlation IDs
# =============================================================================

_correlation_id: ContextVar[Optional[str]] = ContextVar("skychecker_correlation_id", default=None)


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the correlation ID of the current context.

    Stored in a ContextVar, so concurrent fetch tasks spawned inside a
    planning cycle inherit the cycle's ID.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get() or "-"
        return True


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id.get()


def new_correlation_id(prefix: str = "sc") -> str:
    """Build a short unique ID such as ``cycle-1a2b3c4d``."""
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@contextmanager
def correlation_context(
    correlation_id: Optional[str] = None,
    prefix: str = "sc",
) -> Generator[str, None, None]:
    """Bind a correlation ID for the duration of the block.

    Args:
        correlation_id: ID to bind, or None to generate one
        prefix: Prefix for generated IDs

    Yields:
        The bound correlation ID.
    """
    cid = correlation_id or new_correlation_id(prefix)
    token = _correlation_id.set(cid)
    try:
        yield cid
    finally:
        _correlation_id.reset(token)


# =============================================================================
# Setup
# =============================================================================


def setup_logging(
    log_level: str = DEFAULT_LOG_LEVEL,
    log_file: Optional[str | Path] = None,
    enable_correlation: bool = True,
) -> logging.Logger:
    """Configure the ``skychecker`` logger tree.

    Safe to call more than once; previous handlers are replaced.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Optional log file path, rotated at MAX_LOG_BYTES
        enable_correlation: Include the correlation ID column

    Returns:
        The configured root ``skychecker`` logger.
    """
    level = _level(log_level)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.handlers.clear()
    root.filters.clear()

    # Handler-level filter: records from child loggers skip the root logger's own filters
    correlation_filter = CorrelationIdFilter() if enable_correlation else None
    formatter = logging.Formatter(LOG_FORMAT if enable_correlation else PLAIN_LOG_FORMAT, DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    if correlation_filter:
        console.addFilter(correlation_filter)
    root.addHandler(console)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        if correlation_filter:
            file_handler.addFilter(correlation_filter)
        root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``skychecker`` namespace.

    Module names from the ``services`` package are nested as
    ``skychecker.services.<...>`` so set_service_level() can reach them.
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_service_level(service_name: str, level: str) -> None:
    """Override the level of one service, e.g. ``set_service_level("ephemeris", "DEBUG")``."""
    logging.getLogger(f"{ROOT_LOGGER_NAME}.services.{service_name}").setLevel(_level(level))


# =============================================================================
# Helpers
# =============================================================================


def log_exception(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    level: int = logging.ERROR,
    include_traceback: bool = False,
) -> None:
    """Log an exception as ``message: [Type] text``, optionally with traceback."""
    exc_type = type(exc).__name__
    extra = {"exception_type": exc_type, "exception_message": str(exc)}
    text = f"{message}: [{exc_type}] {exc}"
    if include_traceback:
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        extra["traceback"] = tb
        text = f"{text}\n{tb}"
    logger.log(level, text, extra=extra)


@contextmanager
def log_timing(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    warn_threshold_sec: Optional[float] = None,
) -> Generator[None, None, None]:
    """Log how long the block took; WARNING when over ``warn_threshold_sec``."""
    start = time.perf_counter()
    logger.log(level, f"{operation} started")
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        extra = {"operation": operation, "elapsed_seconds": round(elapsed, 3)}
        if warn_threshold_sec is not None and elapsed > warn_threshold_sec:
            logger.warning(
                f"{operation} took {elapsed:.3f}s (over {warn_threshold_sec}s)",
                extra=extra,
            )
        else:
            logger.log(level, f"{operation} took {elapsed:.3f}s", extra=extra)
