from __future__ import annotations

from typing import Protocol, runtime_checkable

from loguru import logger


@runtime_checkable
class EventSink(Protocol):
    def emit(self, session_id: str, event_type: str, payload: dict) -> None: ...


class NullEventSink:
    def emit(self, session_id: str, event_type: str, payload: dict) -> None:
        return


class LogEventSink:
    def __init__(self, log=None):
        self._log = log or logger

    def emit(self, session_id: str, event_type: str, payload: dict) -> None:
        self._log.bind(session_id=session_id).debug(f"event {event_type}: {payload}")


def safe_emit(events: EventSink, session_id: str, event_type: str, payload: dict, log=None) -> None:
    """Emit without letting a broken sink fail the caller."""
    try:
        events.emit(session_id, event_type, payload)
    except Exception as ex:
        (log or logger).warning(f"Event sink failed for {event_type}: {ex}")
