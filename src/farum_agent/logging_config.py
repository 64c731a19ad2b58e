import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

# Fields every component binds; defaults keep the formats valid for unbound records.
_BOUND_DEFAULTS = {"component": "-", "session_id": "-", "request_id": ""}

_CONSOLE_FORMAT = (
    "<level>{level:<8}</level> | <cyan>{extra[component]}</cyan> "
    "<dim>[{extra[session_id]}]</dim> - <level>{message}</level>"
)
_FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[component]} | "
    "session={extra[session_id]} | {name}:{function}:{line} - {message}"
)


@runtime_checkable
class LogConsumer(Protocol):
    def register(self, level: str) -> int: ...
    def describe(self, level: str) -> str: ...


class ConsoleLogConsumer:
    def register(self, level: str) -> int:
        return logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)

    def describe(self, level: str) -> str:
        return f"console (stderr, {level})"


class JsonLogConsumer:
    """One JSON object per record on stdout, bound fields included."""

    def register(self, level: str) -> int:
        return logger.add(sys.stdout, level=level, serialize=True)

    def describe(self, level: str) -> str:
        return f"json (stdout, {level})"


@dataclass
class FileLogConsumer:
    path: str = "farum.log"
    rotation: str = "10 MB"
    retention: int = 3

    def register(self, level: str) -> int:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        return logger.add(
            self.path,
            level=level,
            format=_FILE_FORMAT,
            rotation=self.rotation,
            retention=self.retention,
        )

    def describe(self, level: str) -> str:
        return f"file ({self.path}, {level})"


_CONSUMERS_BY_TYPE: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "json": JsonLogConsumer,
    "file": FileLogConsumer,
}


def _build_consumer(entry: dict[str, Any]) -> LogConsumer | None:
    cls = _CONSUMERS_BY_TYPE.get(entry.get("type", ""))
    if cls is None:
        return None
    options = {key: value for key, value in entry.items() if key not in ("type", "level")}
    return cls(**options)


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
) -> list[str]:
    """Replace every loguru sink with the configured consumers.

    The terminal front end owns stdin/stdout, so without ``LogConsumers`` only
    a rotating ``farum.log`` is written. Each entry may override ``level``.
    Returns one human-readable description per registered sink.
    """
    logger.remove()
    logger.configure(extra=dict(_BOUND_DEFAULTS))

    if consumers is None:
        consumers = [{"type": "file"}]

    descriptions: list[str] = []
    for entry in consumers:
        consumer = _build_consumer(entry)
        if consumer is None:
            logger.warning(f"Skipping log consumer with unknown type {entry.get('type')!r}")
            continue
        sink_level = entry.get("level", level)
        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))
    return descriptions
