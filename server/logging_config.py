"""
Logging setup for the Golf room server.

Two output formats share the same per-record context (connection, player,
room):
- JSONFormatter: one JSON object per line, used when ENVIRONMENT=production
- DevelopmentFormatter: colored single-line output for local runs

Handlers attach context through ContextLogger.with_context(); the gateway
sets connection_id_var once per socket so every line logged while serving
that socket carries it.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

connection_id_var: ContextVar[Optional[str]] = ContextVar("connection_id", default=None)

CONTEXT_FIELDS = ("connection_id", "player_id", "room_code")

# Short labels used by the development format
_DEV_LABELS = {"connection_id": "conn", "player_id": "player", "room_code": "room"}


def record_context(record: logging.LogRecord) -> dict[str, str]:
    """Context fields present on a record, with the socket's connection ID as fallback."""
    context = {}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if name == "connection_id":
            value = connection_id_var.get() or value
        if value:
            context[name] = str(value)
    return context


class JSONFormatter(logging.Formatter):
    """Machine-readable log lines for production."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }

        if record.levelno >= logging.ERROR:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Colored, human-readable lines: time, level, logger, [context] - message."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        level = f"{color}{record.levelname:8}{self.RESET}" if color else f"{record.levelname:8}"
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]

        context = record_context(record)
        if "connection_id" in context:
            context["connection_id"] = context["connection_id"][:8]
        tags = ", ".join(f"{_DEV_LABELS[k]}={v}" for k, v in context.items())
        where = f"{record.name} [{tags}]" if tags else record.name

        line = f"{timestamp} {level} {where} - {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", environment: str = "development") -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level name; unknown names fall back to INFO.
        environment: "production" selects JSON output.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if environment == "production" else DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for noisy in ("uvicorn.access", "websockets", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging configured: level={level}, environment={environment}")


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that stamps room/player context on every record.

    Usage:
        logger = get_logger(__name__)
        logger.with_context(room_code="K7QX2", player_id="p_123").info("Player joined")
    """

    def __init__(self, logger: logging.Logger, extra: Optional[dict] = None):
        super().__init__(logger, extra or {})

    def with_context(self, **kwargs) -> "ContextLogger":
        """Return a new adapter with kwargs merged into the context."""
        return ContextLogger(self.logger, {**self.extra, **kwargs})

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """Context-aware logger for a module."""
    return ContextLogger(logging.getLogger(name))
