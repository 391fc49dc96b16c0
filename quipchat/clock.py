from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Optional


class Clock:
    """Wall clock used for message ids, display timestamps and history keys."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_id = 0

    def now(self) -> datetime:
        return datetime.now()

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def next_id(self) -> int:
        # creation timestamp, bumped when two messages land in the same millisecond
        with self._lock:
            self._last_id = max(self.now_ms(), self._last_id + 1)
            return self._last_id

    def time_string(self) -> str:
        return self.now().strftime("%H:%M:%S")

    def datetime_string(self) -> str:
        return self.now().strftime("%Y-%m-%d %H:%M:%S")


def iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Ticker:
    """Refreshes ``current_time`` once per interval until stopped."""

    def __init__(self, clock: Clock, interval: float = 1.0) -> None:
        self.clock = clock
        self.interval = interval
        self.current_time = clock.datetime_string()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="quipchat-ticker", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.current_time = self.clock.datetime_string()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval * 2)
            self._thread = None
