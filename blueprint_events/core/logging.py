"""Structured JSON logging for blueprint_events."""

import json
import logging
from collections.abc import Mapping, MutableMapping
from datetime import UTC, datetime
from typing import Any

# Dynamically derive standard LogRecord attributes at module import time
# This ensures future Python additions (like taskName) are automatically handled
_STANDARD_LOGRECORD_KEYS: frozenset[str] = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()
) | {"message", "asctime"}

_EVENT_FIELDS = ("event_id", "binding_id", "blueprint_id", "node_id", "execution_id")

MANAGER_LOGGER_NAME = "blueprint_events.manager"
NODE_LOGGER_NAME = "blueprint_events.node"


class JSONFormatter(logging.Formatter):
    """JSON formatter with UTC ISO8601 timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for field in _EVENT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        for key, value in vars(record).items():
            if key not in _STANDARD_LOGRECORD_KEYS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        try:
            return json.dumps(log_data, default=str)
        except (TypeError, ValueError):
            return str(log_data)


def _setup_json_handler(logger: logging.Logger, level: int) -> None:
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def configure_manager_logger(level: int = logging.INFO) -> logging.Logger:
    """Configure and return the event manager logger with JSON formatting."""
    logger = logging.getLogger(MANAGER_LOGGER_NAME)
    _setup_json_handler(logger, level)
    return logger


def get_logger(name: str = "blueprint_events", level: int = logging.INFO) -> logging.Logger:
    """Get a logger with JSON formatting.

    Args:
        name: The logger name. Defaults to "blueprint_events".
        level: The logging level to set. Defaults to logging.INFO.
    """
    logger = logging.getLogger(name)
    _setup_json_handler(logger, level)
    return logger


def safe_fields(fields: Mapping[str, Any] | None) -> dict[str, Any]:
    """Rename keys that would clash with LogRecord attributes."""
    if not fields:
        return {}
    return {
        (f"field_{key}" if key in _STANDARD_LOGRECORD_KEYS else key): value
        for key, value in fields.items()
    }


class NodeLogger(logging.LoggerAdapter):
    """Levelled logger handed to nodes during execution.

    Every record carries the adapter's bound fields (at least ``node_id``)
    merged with the call's own ``extra`` mapping.
    """

    def __init__(self, logger: logging.Logger | None = None, **fields: Any) -> None:
        super().__init__(logger or logging.getLogger(NODE_LOGGER_NAME), safe_fields(fields))

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        merged = dict(self.extra or {})
        merged.update(safe_fields(kwargs.get("extra")))
        kwargs["extra"] = merged
        return msg, kwargs

    def opts(self, **fields: Any) -> "NodeLogger":
        """Return a child logger with additional bound fields."""
        bound = dict(self.extra or {})
        bound.update(fields)
        return NodeLogger(self.logger, **bound)

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self.extra or {})
