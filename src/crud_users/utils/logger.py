"""Structured logging setup.

Every log call goes through structlog and ends up in two places:
- <log_dir>/app.log, one JSON object per line:
  {"timestamp": ..., "level": ..., "message": ..., "context": {...}}
- stdout, rendered by structlog's ConsoleRenderer

Usage:
    import structlog
    from crud_users.utils.logger import configure_logging

    configure_logging(config.logging)
    logger = structlog.get_logger(__name__)
    logger.info("user_created", uuid=user_uuid)
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import suppress
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict

from crud_users.config.app_config import LoggingConfig

# Handlers installed by configure_logging, replaced on reconfiguration
_installed_handlers: list[logging.Handler] = []


def ensure_log_dir(log_dir: str | Path) -> Path:
    """Create the log directory if needed.

    Permissions are loosened to 0o777 on a best-effort basis so that
    sidecar containers can read and rotate the file.

    Returns:
        The directory path

    Raises:
        OSError: If the directory cannot be created
    """
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    with suppress(OSError):
        os.chmod(path, 0o777)

    return path


def _to_json_record(
    logger: Any, method_name: str, event_dict: EventDict
) -> EventDict:
    """Reshape a structlog event into the app.log record layout."""
    timestamp = event_dict.pop("timestamp", None) or datetime.now(timezone.utc).isoformat()
    level = str(event_dict.pop("level", method_name)).upper()
    message = event_dict.pop("event", "")

    return {
        "timestamp": timestamp,
        "level": level,
        "message": str(message),
        "context": dict(event_dict),
    }


def _shared_processors() -> list[Any]:
    return [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _build_file_handler(log_file: Path) -> logging.Handler:
    # delay=True: the file is opened on the first record
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                _to_json_record,
                structlog.processors.JSONRenderer(),
            ],
        )
    )
    return handler


def _build_console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=False),
            ],
        )
    )
    return handler


def configure_logging(config: LoggingConfig) -> Path | None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once: handlers from a previous call are closed
    and replaced.

    Args:
        config: Logging settings (directory and level)

    Returns:
        Path of the JSON log file, or None if only console logging is active
    """
    root = logging.getLogger()

    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    log_file: Path | None = config.log_file
    dir_error: OSError | None = None
    try:
        ensure_log_dir(config.log_dir)
    except OSError as e:
        dir_error = e
        log_file = None

    if log_file is not None:
        _installed_handlers.append(_build_file_handler(log_file))
    _installed_handlers.append(_build_console_handler())

    for handler in _installed_handlers:
        root.addHandler(handler)
    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    if dir_error is not None:
        structlog.get_logger(__name__).warning(
            "log_dir_unavailable", log_dir=str(config.log_dir), error=str(dir_error)
        )

    return log_file
