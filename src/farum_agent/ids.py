from __future__ import annotations

import threading
import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


class IdGenerator:
    """Time-derived identifiers of the form ``YYYYMMDDHHMMSS.nnnnnnnnn``.

    Values are strictly increasing within the process: when two calls land on
    the same nanosecond the second one is bumped forward by one.
    """

    def __init__(self, clock_ns=time.time_ns):
        self._clock_ns = clock_ns
        self._last_ns = 0
        self._lock = threading.Lock()

    def next_ns(self) -> int:
        with self._lock:
            now = self._clock_ns()
            if now <= self._last_ns:
                now = self._last_ns + 1
            self._last_ns = now
            return now

    def new_id(self) -> str:
        return format_ns(self.next_ns())


def format_ns(epoch_ns: int) -> str:
    seconds, nanos = divmod(epoch_ns, 1_000_000_000)
    stamp = datetime.fromtimestamp(seconds, UTC).strftime("%Y%m%d%H%M%S")
    return f"{stamp}.{nanos:09d}"
