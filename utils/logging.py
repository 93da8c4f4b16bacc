"""
Logging Setup

Console logging for the service, colored for humans or one JSON object per
line for log shippers (LOG_JSON=true).

Usage:
    from utils.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Extracted 2 new value(s)", extra={"strategy": "fallback"})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from config.settings import settings


# Record attributes copied into JSON output when a call passes them in `extra`
STRUCTURED_FIELDS = ("session", "state", "strategy", "service", "details")

QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "asyncio", "google", "langchain")


# =============================================================================
# Formatters
# =============================================================================

class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname:8}{self.RESET}"
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for key in STRUCTURED_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


# =============================================================================
# Setup
# =============================================================================

def setup_logging(level: Optional[str] = None, json_format: Optional[bool] = None) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Level name; defaults to settings.LOG_LEVEL, or DEBUG in debug mode.
        json_format: Emit JSON lines; defaults to settings.LOG_JSON.
    """
    if level is None:
        level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL
    if json_format is None:
        json_format = settings.LOG_JSON

    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ColoredFormatter(
            fmt="%(asctime)s │ %(levelname)s │ %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        ))

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__."""
    return logging.getLogger(name)


# =============================================================================
# Structured helpers
# =============================================================================

def log_api_call(
    service: str,
    endpoint: str,
    success: bool,
    duration_ms: Optional[float] = None,
    error: Optional[str] = None
) -> None:
    """One line per outbound call to Gemini or ElevenLabs; failures at WARNING."""
    logger = get_logger("api")

    parts = [f"{'✅' if success else '❌'} {service}", endpoint]
    if duration_ms is not None:
        parts.append(f"{duration_ms:.0f}ms")
    if error:
        parts.append(f"error: {error}")

    level = logging.INFO if success else logging.WARNING
    logger.log(level, " | ".join(parts), extra={"service": service})


def log_transition(
    session: str,
    old_state: str,
    new_state: str,
    reason: Optional[str] = None
) -> None:
    """One line per conversation state change."""
    logger = get_logger("conversation")

    message = f"🔁 {session} | {old_state} → {new_state}"
    if reason:
        message += f" | {reason}"
    logger.info(message, extra={"session": session, "state": new_state})
