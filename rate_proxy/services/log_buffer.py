from __future__ import annotations

import threading
from collections import deque
from datetime import datetime, timezone

from rate_proxy.schemas.quote import LogEntry


class LogBuffer:
    def __init__(self, capacity: int = 50, *, echo: bool = True) -> None:
        self.capacity = capacity
        self.echo = echo
        self._lock = threading.Lock()
        self._entries: deque[LogEntry] = deque(maxlen=capacity)

    def append(self, message: str) -> LogEntry:
        entry = LogEntry(ts=datetime.now(timezone.utc), message=message)
        with self._lock:
            self._entries.append(entry)
        if self.echo:
            print(entry.render(), flush=True)
        return entry

    def read_all(self) -> list[LogEntry]:
        with self._lock:
            return list(self._entries)

    def lines(self) -> list[str]:
        return [entry.render() for entry in self.read_all()]
