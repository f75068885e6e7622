"""JSON log lines on stdout, tagged with the id of the request being served."""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Final

_HANDLER_NAME: Final[str] = "smena-json"

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

# Attributes present on every LogRecord; anything else came in through `extra=`.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = _request_id.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and value is not None
        )
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info).replace("\n", " | ")

        return json.dumps(entry, ensure_ascii=True, separators=(",", ":"), default=str)


def configure_logging(level_name: str) -> None:
    """
    Route the root logger through a single JSON handler.

    Repeated calls are no-ops, so ``create_app`` can be invoked many times in
    one process. Unknown level names fall back to INFO.
    """
    root = logging.getLogger()
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JsonLogFormatter())

    root.handlers.clear()
    root.addHandler(handler)
    level = logging.getLevelName(level_name.strip().upper())
    root.setLevel(level if isinstance(level, int) else logging.INFO)

    # Statement echo is controlled by DEBUG through the engine instead.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def bind_request_id(request_id: str) -> Token[str | None]:
    return _request_id.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _request_id.reset(token)


__all__ = ["JsonLogFormatter", "bind_request_id", "configure_logging", "reset_request_id"]
