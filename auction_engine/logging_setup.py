"""Structured JSON logging tagged with the session under analysis."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED = set(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {"message", "asctime", "session"}

SESSION_CONTEXT: ContextVar[Optional[Dict[str, str]]] = ContextVar("auction_session", default=None)


@contextmanager
def session_scope(session_date: Optional[str], selected_time: Optional[str] = None) -> Iterator[None]:
    """Tag every record logged inside the block with the session being analysed."""

    tag = {key: value for key, value in (("date", session_date), ("selected_time", selected_time)) if value}
    token = SESSION_CONTEXT.set(tag or None)
    try:
        yield
    finally:
        SESSION_CONTEXT.reset(token)


class SessionContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.session = SESSION_CONTEXT.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; ``extra`` fields are nested under ``extra``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        session = getattr(record, "session", None)
        if session:
            payload["session"] = session
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        extra = {key: value for key, value in vars(record).items() if key not in _RESERVED and not key.startswith("_")}
        if extra:
            payload["extra"] = extra
        return json.dumps(payload, default=str, separators=(",", ":"))


_CONFIGURED = False


def setup_logging(level: int | str | None = None) -> None:
    """Install the JSON handler on the root logger once.

    ``level`` defaults to ``AUCTION_LOG_LEVEL`` from the engine settings.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return
    if level is None:
        from .config import get_settings

        level = get_settings().log_level

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(SessionContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)
    logging.captureWarnings(True)
    _CONFIGURED = True


__all__ = ["SESSION_CONTEXT", "JsonFormatter", "SessionContextFilter", "session_scope", "setup_logging"]
