"""In-process sliding window limiter.

Exact within one process; state is neither shared between instances nor kept
across restarts.
"""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable

from hotline.limiters.base import RateLimiter
from hotline.models import Admission

logger = logging.getLogger(__name__)


class _Window:
    """Accepted-request timestamps for one identity."""

    __slots__ = ("lock", "stamps", "retired")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.stamps: deque[float] = deque()
        self.retired = False

    def prune(self, cutoff: float) -> None:
        """Drop stamps older than ``cutoff``; one exactly at the cutoff still counts."""
        while self.stamps and self.stamps[0] < cutoff:
            self.stamps.popleft()


class SlidingWindowLimiter(RateLimiter):
    def __init__(
        self,
        max_requests: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1 or window <= 0:
            raise ValueError("max_requests and window must be positive")
        self._max = max_requests
        self._window = window
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._registry_lock = threading.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._windows)

    def _get_window(self, identity: str) -> _Window:
        with self._registry_lock:
            window = self._windows.get(identity)
            if window is None:
                window = self._windows[identity] = _Window()
            return window

    def check(self, identity: str) -> Admission:
        """Prune, check and append as one step under the identity's lock."""
        now = self._clock()
        self._maybe_sweep(now)
        cutoff = now - self._window
        while True:
            window = self._get_window(identity)
            with window.lock:
                # Swept between lookup and lock; fetch the replacement.
                if window.retired:
                    continue
                window.prune(cutoff)
                if len(window.stamps) >= self._max:
                    retry_after = window.stamps[0] + self._window - now
                    return Admission(allowed=False, remaining=0, retry_after=max(retry_after, 0.0))
                window.stamps.append(now)
                return Admission(allowed=True, remaining=self._max - len(window.stamps))

    async def admit(self, identity: str) -> Admission:
        return self.check(identity)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self._window:
            return
        self._last_sweep = now
        self.sweep(now)

    def sweep(self, now: float | None = None) -> int:
        """Drop identities with no timestamps left in the window. Returns how many were dropped."""
        now = self._clock() if now is None else now
        cutoff = now - self._window
        dropped = 0
        with self._registry_lock:
            for identity, window in list(self._windows.items()):
                with window.lock:
                    window.prune(cutoff)
                    if not window.stamps:
                        window.retired = True
                        del self._windows[identity]
                        dropped += 1
        if dropped:
            logger.debug("Swept %d idle rate limit records", dropped)
        return dropped
