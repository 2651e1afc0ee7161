"""Structured logging configuration for Common Ground.

JSON lines in production, a human-readable format locally. Every record
logged while a WebSocket is being served carries the room id and
participant id of that connection.

Environment Variables:
    LOG_FORMAT: Set to "json" for JSON output, anything else for human-readable.
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to INFO.
    ACCESS_LOG_LEVEL: Level for uvicorn's per-request access log. Defaults to WARNING.
"""

import copy
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from pythonjsonlogger import jsonlogger

_room_id: ContextVar[str | None] = ContextVar("room_id", default=None)
_participant_id: ContextVar[str | None] = ContextVar("participant_id", default=None)


def get_room_id() -> str | None:
    return _room_id.get()


def set_room_id(room_id: str | None) -> None:
    _room_id.set(room_id)


def get_participant_id() -> str | None:
    return _participant_id.get()


def set_participant_id(participant_id: str | None) -> None:
    _participant_id.set(participant_id)


@contextmanager
def connection_context(room_id: str, participant_id: str) -> Iterator[None]:
    """Tag every record logged inside the block with a room and participant."""
    room_token = _room_id.set(room_id)
    participant_token = _participant_id.set(participant_id)
    try:
        yield
    finally:
        _participant_id.reset(participant_token)
        _room_id.reset(room_token)


class ContextAwareJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that adds room and participant fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["message"] = record.getMessage()

        room_id = get_room_id()
        if room_id:
            log_record["room_id"] = room_id
        participant_id = get_participant_id()
        if participant_id:
            log_record["participant"] = participant_id


class ContextAwareFormatter(logging.Formatter):
    """Human-readable formatter that prefixes ``[room:xxxxxxxx] [participant]``."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = ""
        room_id = get_room_id()
        if room_id:
            prefix += f"[room:{room_id[:8]}] "
        participant_id = get_participant_id()
        if participant_id:
            prefix += f"[{participant_id[:8]}] "
        if not prefix:
            return super().format(record)

        # Work on a copy so other handlers see the original message
        record = copy.copy(record)
        record.msg = prefix + record.getMessage()
        record.args = ()
        return super().format(record)


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Install a single stdout handler on the root logger.

    Call once at startup. Arguments override LOG_LEVEL and LOG_FORMAT.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    fmt = (log_format or os.getenv("LOG_FORMAT", "")).lower()
    numeric_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if fmt == "json":
        handler.setFormatter(
            ContextAwareJsonFormatter(
                fmt="%(timestamp)s %(level)s %(logger)s %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
    else:
        handler.setFormatter(
            ContextAwareFormatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(handler)

    access_level = os.getenv("ACCESS_LOG_LEVEL", "WARNING").upper()
    logging.getLogger("uvicorn.access").setLevel(getattr(logging, access_level, logging.WARNING))

    logging.getLogger(__name__).info(
        "Logging configured. Format: %s, Level: %s",
        "json" if fmt == "json" else "human-readable",
        level_name,
    )
