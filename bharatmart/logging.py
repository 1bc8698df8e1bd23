import logging
import json
import os
import uuid
from contextvars import ContextVar
from typing import Any, Dict


SENSITIVE_KEYS = {
    "phone",
    "house_no",
    "lat",
    "lng",
    "delivery_instructions",
}

_session_id: ContextVar[str] = ContextVar("session_id", default="n/a")


def new_session_id() -> str:
    """Start a new logging session (one per CLI invocation)."""
    sid = uuid.uuid4().hex
    _session_id.set(sid)
    return sid


def current_session_id() -> str:
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        try:
            record.session_id = current_session_id()
        except Exception:
            record.session_id = "n/a"
        return True


def _mask_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: ("[REDACTED]" if key in SENSITIVE_KEYS else value)
        for key, value in data.items()
    }


class MaskingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        env = os.getenv("APP_ENV", "development").lower()
        if isinstance(record.msg, dict):
            if not (record.levelno == logging.DEBUG and env != "production"):
                record.msg = _mask_dict(record.msg)
        if isinstance(record.args, dict):
            if not (record.levelno == logging.DEBUG and env != "production"):
                record.args = _mask_dict(record.args)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        base = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "session_id": getattr(record, "session_id", "n/a"),
        }
        if isinstance(record.msg, dict):
            base.update(record.msg)
            message = None
        else:
            message = record.getMessage()
        if message:
            base["message"] = message
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, default=str, ensure_ascii=False)


def configure_logging(config) -> logging.Handler:
    datefmt = "%Y-%m-%dT%H:%M:%S%z"
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(datefmt=datefmt))
    handler.addFilter(SessionIdFilter())
    handler.addFilter(MaskingFilter())

    level_name = os.getenv("LOG_LEVEL")
    if level_name:
        level = getattr(logging, level_name.upper(), logging.INFO)
    else:
        level = logging.DEBUG if getattr(config, "DEBUG", False) else logging.WARNING

    logger = logging.getLogger("bharatmart")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return handler
