"""Logging setup for a running server.

Library code only creates named loggers (``aerossr.server``,
``aerossr.bundler``, ...). Handlers are attached here, by ``App.run()`` and
the CLI, never at import time.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from aerossr.config import AppConfig

_ROOT_LOGGER = "aerossr"
_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came in via ``extra``
_RECORD_FIELDS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with ``extra`` fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_FIELDS and not key.startswith("_"):
                data[key] = value
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def make_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    return logging.Formatter(_TEXT_FORMAT)


def configure_logging(config: AppConfig) -> logging.Logger:
    """Attach handlers to the ``aerossr`` logger according to *config*.

    Safe to call more than once: handlers added by an earlier call are
    closed and replaced. Returns the configured logger.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_aerossr", False):
            logger.removeHandler(handler)
            handler.close()

    level = logging.getLevelNamesMapping().get(config.log_level.upper(), logging.INFO)
    logger.setLevel(level)
    formatter = make_formatter(config.log_format)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    log_path = config.log_path
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._aerossr = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
