"""Logging for Recipe Matcher.

One stdout logger, "recipe_matcher", shared by every module. Records may carry
resolution context through extra=: "source" (the external service a message
is about) and "provenance" (the strategy that produced the records). Both
formatters render that context when present.

Environment:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)
"""

import json
import logging
import os
import sys
from typing import Any

CONTEXT_FIELDS = ("source", "provenance")


def context_of(record: logging.LogRecord) -> dict[str, Any]:
    """Resolution context attached to record, in CONTEXT_FIELDS order."""
    return {name: getattr(record, name) for name in CONTEXT_FIELDS if getattr(record, name, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **context_of(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


class RichTextFormatter(logging.Formatter):
    """Human-readable lines, colored by level when writing to a terminal.

    Context fields are appended as "[source=gemini provenance=generated]".
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def __init__(self, color: bool = False) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        line = f"{timestamp} {record.levelname:<8} {record.name:<16} {record.getMessage()}"

        context = context_of(record)
        if context:
            line += " [" + " ".join(f"{name}={value}" for name, value in context.items()) + "]"
        if self.color and record.levelno in self.LEVEL_COLORS:
            line = f"{self.LEVEL_COLORS[record.levelno]}{line}\033[0m"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching a stdout handler on first use."""
    logger_instance = logging.getLogger(name)
    if logger_instance.handlers:
        return logger_instance

    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    logger_instance.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if os.getenv("LOG_TYPE", "text").lower() == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(RichTextFormatter(color=sys.stdout.isatty() and "NO_COLOR" not in os.environ))
    logger_instance.addHandler(handler)

    return logger_instance


logger = get_logger("recipe_matcher")

# Client libraries log every request at INFO
logging.getLogger("google.genai").setLevel(logging.WARNING)
logging.getLogger("aiohttp").setLevel(logging.WARNING)
