"""Rate limiting utilities to respect upstream API limits."""

import threading
import time
from collections import deque
from typing import Callable


class RateLimiter:
    """Sliding-window limiter shared by every caller of one upstream API."""

    def __init__(
        self,
        calls_per_minute: int = 30,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.calls_per_minute = calls_per_minute
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()
        self._lock = threading.Lock()

    def wait(self) -> None:
        """Block until a request is allowed.

        Sleeping happens under the lock: the per-minute budget is shared by
        the whole process, so every caller queues behind the one waiting.
        This is upstream throttling, separate from the per-request retry
        backoff in PriceFetcher.
        """
        with self._lock:
            now = self._clock()
            # Remove timestamps older than 60 seconds
            while self._timestamps and now - self._timestamps[0] > 60:
                self._timestamps.popleft()
            if len(self._timestamps) >= self.calls_per_minute:
                sleep_time = 60 - (now - self._timestamps[0])
                if sleep_time > 0:
                    self._sleep(sleep_time)
                self._timestamps.popleft()
            self._timestamps.append(self._clock())
