"""Rate limiting for outgoing price-source requests."""

import threading
import time
from collections import deque


class RateLimiter:
    """Sliding-window limiter shared by the fetch worker threads."""

    def __init__(self, calls_per_minute: int = 60, window_seconds: float = 60.0):
        self.calls_per_minute = calls_per_minute
        self.window_seconds = window_seconds
        self._timestamps: deque[float] = deque()
        self._lock = threading.Lock()

    def wait(self) -> None:
        """Block until a request is allowed."""
        while True:
            with self._lock:
                now = time.monotonic()
                while self._timestamps and now - self._timestamps[0] > self.window_seconds:
                    self._timestamps.popleft()
                if len(self._timestamps) < self.calls_per_minute:
                    self._timestamps.append(now)
                    return
                sleep_time = self.window_seconds - (now - self._timestamps[0])
            time.sleep(max(sleep_time, 0.01))
