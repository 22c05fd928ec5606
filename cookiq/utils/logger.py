"""Logging for CookIQ.

Pipeline stages log through the module-level ``logger``; failures attach their
error kind (and the provider status when there is one) via ``extra`` so a run
can be filtered by failure class without parsing messages:

    logger.error("Recipe generation failed", extra={"error_kind": e.kind})

Configured via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Output goes to stderr; stdout belongs to rendered recipes and --debug JSON.
"""

import json
import logging
import os
import sys
from typing import Any, Optional


# Record attributes promoted into the output when callers pass them in ``extra``
CONTEXT_FIELDS = ("error_kind", "status", "recipe_set_id")


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str)


class RichTextFormatter(logging.Formatter):
    """Colored single-line text with an emoji per level, for the terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
        "RESET": "\033[0m",
    }

    ICONS = {
        "DEBUG": "🔍",
        "INFO": "ℹ️",
        "WARNING": "⚠️",
        "ERROR": "❌",
        "CRITICAL": "🔥",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format as ``<icon> <time> <LEVEL> <logger> <message> [key=value ...]``.

        Context fields from ``extra`` are appended in brackets; a traceback,
        when present, follows on the next lines.
        """
        level = record.levelname
        color = self.COLORS.get(level, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]

        line = (
            f"{self.ICONS.get(level, '')} {self.formatTime(record, '%Y-%m-%d %H:%M:%S')} "
            f"{level:<8} {record.name:<16} {record.getMessage()}"
        )
        context = _context(record)
        if context:
            line += " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"

        message = f"{color}{line}{reset}"
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        return message


def get_logger(name: str, level: Optional[str] = None, log_type: Optional[str] = None) -> logging.Logger:
    """Return a logger with a single stderr handler.

    Args:
        name: Logger name.
        level: Level name; falls back to LOG_LEVEL, then INFO for unknown names.
        log_type: "json" or "text"; falls back to LOG_TYPE.

    Returns:
        The configured logger. A logger that already has handlers is returned
        unchanged.
    """
    logger_instance = logging.getLogger(name)
    if logger_instance.handlers:
        return logger_instance

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, None)
    if not isinstance(log_level, int):
        log_level = logging.INFO
    log_type = (log_type or os.getenv("LOG_TYPE", "text")).lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if log_type == "json" else RichTextFormatter())

    logger_instance.setLevel(log_level)
    logger_instance.addHandler(handler)
    logger_instance.propagate = False
    return logger_instance


logger = get_logger("cookiq")

# Connection-pool chatter from the HTTP client
logging.getLogger("aiohttp").setLevel(logging.WARNING)
