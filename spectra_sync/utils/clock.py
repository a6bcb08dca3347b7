import threading
import time


class SystemClock:
    """Authoritative server time in epoch milliseconds.

    Never hands out a value lower than one it already returned, even if the
    wall clock steps backwards.
    """

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        current = time.time_ns() // 1_000_000
        with self._lock:
            if current < self._last:
                current = self._last
            self._last = current
        return current


class ManualClock:

    def __init__(self, start_ms: int = 0) -> None:
        self._now = start_ms

    def now_ms(self) -> int:
        return self._now

    def set(self, ms: int) -> None:
        if ms < self._now:
            raise ValueError("clock cannot move backwards")
        self._now = ms

    def advance(self, ms: int = 0, seconds: float = 0, hours: float = 0) -> int:
        self._now += ms + int(seconds * 1000) + int(hours * 3_600_000)
        return self._now
