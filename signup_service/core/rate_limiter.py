"""
Per-address request limits for the public API.

Two sliding windows guard the service:
- general: every /api request counts
- registration: only POST /api/register counts, on top of the general one

Counters live in process memory on ``app.state`` and are gone after a
restart.

Usage:
    limiter = SlidingWindowRateLimiter("registration", max_requests=5, window_seconds=3600)
    if not limiter.is_allowed_sync(client_ip):
        retry_after = limiter.get_wait_time(client_ip)
"""

import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional

from signup_service.core.config import Settings

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Allows at most ``max_requests`` per address within any
    ``window_seconds`` span. Only accepted requests are recorded, so a
    client that keeps hammering a closed window does not push it further out.

    ``clock`` returns epoch seconds and can be swapped out in tests.
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: float,
        cleanup_interval: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.cleanup_interval = cleanup_interval
        self._clock = clock

        # address -> timestamps of accepted requests, oldest first
        self._windows: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._cleanup_task: Optional[asyncio.Task] = None

        logger.info(f"Rate limiter '{name}': {max_requests} requests per {window_seconds:g}s")

    def _expire(self, timestamps: Deque[float], now: float) -> None:
        horizon = now - self.window_seconds
        while timestamps and timestamps[0] <= horizon:
            timestamps.popleft()

    def is_allowed_sync(self, key: str) -> bool:
        """Record a request from ``key`` and say whether it may proceed."""
        with self._lock:
            now = self._clock()
            timestamps = self._windows.setdefault(key, deque())
            self._expire(timestamps, now)

            if len(timestamps) >= self.max_requests:
                logger.debug(f"'{self.name}' window full for {key} ({len(timestamps)}/{self.max_requests})")
                return False

            timestamps.append(now)
            return True

    def get_wait_time(self, key: str) -> float:
        """Seconds until ``key`` may send again; 0.0 if it may send now."""
        with self._lock:
            timestamps = self._windows.get(key)
            if not timestamps:
                return 0.0
            now = self._clock()
            self._expire(timestamps, now)
            if len(timestamps) < self.max_requests:
                return 0.0
            return max(0.0, timestamps[0] + self.window_seconds - now)

    async def start_cleanup_task(self):
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._run_cleanup())

    async def stop_cleanup_task(self):
        task, self._cleanup_task = self._cleanup_task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run_cleanup(self):
        while True:
            await asyncio.sleep(self.cleanup_interval)
            try:
                self._cleanup_expired()
            except Exception as e:
                logger.error(f"Rate limiter '{self.name}' cleanup failed: {e}")

    def _cleanup_expired(self):
        """Drop addresses whose window has emptied."""
        with self._lock:
            now = self._clock()
            idle = []
            for key, timestamps in self._windows.items():
                self._expire(timestamps, now)
                if not timestamps:
                    idle.append(key)
            for key in idle:
                del self._windows[key]

        if idle:
            logger.debug(f"Rate limiter '{self.name}' dropped {len(idle)} idle addresses")


@dataclass
class RequestRateLimiters:
    """The two per-address limiters the API enforces."""

    general: SlidingWindowRateLimiter
    registration: SlidingWindowRateLimiter

    @classmethod
    def from_settings(cls, settings: Settings) -> "RequestRateLimiters":
        return cls(
            general=SlidingWindowRateLimiter(
                name="general",
                max_requests=settings.RATE_LIMIT_GENERAL_MAX,
                window_seconds=settings.RATE_LIMIT_GENERAL_WINDOW_SECONDS,
            ),
            registration=SlidingWindowRateLimiter(
                name="registration",
                max_requests=settings.RATE_LIMIT_REGISTER_MAX,
                window_seconds=settings.RATE_LIMIT_REGISTER_WINDOW_SECONDS,
            ),
        )

    async def start(self):
        await self.general.start_cleanup_task()
        await self.registration.start_cleanup_task()

    async def stop(self):
        await self.general.stop_cleanup_task()
        await self.registration.stop_cleanup_task()
