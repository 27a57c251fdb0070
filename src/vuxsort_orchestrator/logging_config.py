"""
Logging configuration for the orchestration engine.

Handlers live on one namespace logger, ``vuxsort.orchestration``. Component
loggers (``vuxsort.orchestration.coordinator`` and so on) carry no handlers
of their own and propagate to it, so one call reconfigures every component.
"""

import logging
import os
import sys
import threading
from typing import IO, List, Optional, Tuple

LOGGER_NAMESPACE = "vuxsort.orchestration"
LOG_FORMAT = "%(asctime)s [%(levelname)8s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_lock = threading.Lock()
_installed: List[logging.Handler] = []
_configured = False


def configure_from_environment() -> Tuple[str, Optional[str]]:
    """Read logging level and file overrides from the environment."""
    log_level = os.environ.get("VUXSORT_LOG_LEVEL", "INFO")
    log_file = os.environ.get("VUXSORT_LOG_FILE")
    return log_level, log_file


def configure_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Configure the namespace logger shared by all components.

    Calling again replaces the handlers installed by the previous call, so
    level and destination can be changed at runtime.

    Args:
        level: Logging level name (default: ``VUXSORT_LOG_LEVEL`` or INFO)
        log_file: Optional file to log to in addition to the stream
            (default: ``VUXSORT_LOG_FILE``)
        stream: Console stream (default: stderr)

    Returns:
        The namespace logger

    Example:
        >>> configure_logging("DEBUG")
        >>> get_logger("coordinator").debug("Phase started")
    """
    global _configured

    env_level, env_file = configure_from_environment()
    level = level or env_level
    log_file = log_file or env_file

    root = logging.getLogger(LOGGER_NAMESPACE)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    with _lock:
        for handler in _installed:
            root.removeHandler(handler)
            handler.close()
        _installed.clear()

        for handler in handlers:
            handler.setFormatter(formatter)
            root.addHandler(handler)
            _installed.append(handler)

        root.setLevel(getattr(logging, level.upper(), logging.INFO))
        # Stop at the namespace so host applications don't print twice
        root.propagate = False
        _configured = True

    return root


def get_logger(component: str) -> logging.Logger:
    """Component logger; configures the namespace from the environment on first use."""
    if not _configured:
        configure_logging()
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{component}")
