# wellchat/rate_limit.py
from __future__ import annotations
import enum
import logging
import threading
from typing import Dict, List

from wellchat.config import RATE_LIMIT_WINDOW_MS, RATE_LIMIT_MAX_REQUESTS

logger = logging.getLogger(__name__)

SWEEP_EVERY = 256


class Admission(str, enum.Enum):
    ADMITTED = "admitted"
    THROTTLED = "throttled"


class RateLimiter:
    """Sliding-window limiter keyed by an opaque identity string.

    Every check records its timestamp, including throttled ones, so a user who keeps
    sending while throttled keeps pushing the window back.
    """

    def __init__(self, window_ms: int = RATE_LIMIT_WINDOW_MS, max_requests: int = RATE_LIMIT_MAX_REQUESTS):
        self.window_ms = window_ms
        self.max_requests = max_requests
        self._timestamps: Dict[str, List[int]] = {}
        self._lock = threading.Lock()
        self._checks = 0

    def check_admission(self, identity: str, now: int) -> Admission:
        with self._lock:
            recent = self._prune(self._timestamps.get(identity, []), now)
            self._timestamps[identity] = recent + [now]
            self._checks += 1
            if self._checks % SWEEP_EVERY == 0:
                self._sweep(now)
        if len(recent) >= self.max_requests:
            logger.info("Throttling identity=%s recent=%d", identity, len(recent))
            return Admission.THROTTLED
        return Admission.ADMITTED

    def tracked_identities(self) -> int:
        with self._lock:
            return len(self._timestamps)

    def sweep(self, now: int) -> int:
        """Drop identities with no timestamp inside the window. Returns how many were evicted."""
        with self._lock:
            return self._sweep(now)

    def reset(self):
        with self._lock:
            self._timestamps.clear()
            self._checks = 0

    def _prune(self, timestamps: List[int], now: int) -> List[int]:
        return [ts for ts in timestamps if now - ts < self.window_ms]

    def _sweep(self, now: int) -> int:
        stale = [k for k, v in self._timestamps.items() if not self._prune(v, now)]
        for k in stale:
            del self._timestamps[k]
        if stale:
            logger.debug("Evicted %d idle identities from rate limiter", len(stale))
        return len(stale)
