"""Logging setup for hosts that embed the assistant runtime.

The runtime itself only emits records through module loggers under the
``assistant_runtime`` namespace. Hosts that have no logging configuration
of their own can call :func:`setup_logging` once at start-up.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Mapping

__all__ = ["setup_logging", "resolve_log_level", "get_log_path"]

LOG_FILE_NAME = "assistant_runtime.log"
LOG_DIR_ENV = "ASSISTANT_RUNTIME_LOG_DIR"
DEBUG_ENV = "OPENAI_ASSISTANT_DEBUG"

_DEFAULT_LOG_DIR = Path.home() / ".assistant_runtime" / "logs"
# HTTP transport loggers repeat every request at DEBUG; keep them at WARNING.
_TRANSPORT_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "openai")
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_LOG_PATH: Path | None = None


def resolve_log_level(environ: Mapping[str, str] | None = None) -> int:
    """``DEBUG`` when the assistant debug flag is set in the environment, else ``INFO``."""
    env = os.environ if environ is None else environ
    flag = (env.get(DEBUG_ENV) or "").strip().lower()
    return logging.DEBUG if flag in _TRUE_VALUES else logging.INFO


def setup_logging(
    level: int | None = None,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Attach a rotating file handler (and optionally stderr) to the root logger.

    Args:
        level: Root level; defaults to :func:`resolve_log_level`.
        log_dir: Directory for ``assistant_runtime.log``. Falls back to
            ``$ASSISTANT_RUNTIME_LOG_DIR`` and then ``~/.assistant_runtime/logs``.
        console: Also log to stderr.
        max_bytes: Size at which the log file rotates.
        backup_count: Number of rotated files kept.
        force: Reconfigure even if logging was already set up here.

    Returns:
        Path of the active log file.
    """
    global _LOG_PATH
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    if level is None:
        level = resolve_log_level()
    directory = Path(log_dir or os.environ.get(LOG_DIR_ENV) or _DEFAULT_LOG_DIR).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / LOG_FILE_NAME

    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    transport_level = max(level, logging.WARNING)
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    _LOG_PATH = log_path
    return log_path


def get_log_path() -> Path | None:
    """Log file configured by :func:`setup_logging`, if any."""
    return _LOG_PATH
