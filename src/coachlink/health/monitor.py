import asyncio
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from coachlink.config import settings

logger = logging.getLogger("health")


@dataclass
class MonitorSnapshot:
    window_requests: int
    window_errors: int
    error_rate: float
    total_requests: int
    total_errors: int


class RequestMonitor:
    """Rolling window of (timestamp, is_error) samples plus lifetime totals."""

    def __init__(self, window_seconds: int = 60, clock: Callable[[], float] = time.time):
        self.window_seconds = window_seconds
        self._clock = clock
        self._samples: Deque[Tuple[float, bool]] = deque()
        self._lock = threading.Lock()
        self.total_requests = 0
        self.total_errors = 0

    def record(self, is_error: bool) -> None:
        with self._lock:
            self._samples.append((self._clock(), is_error))
            self.total_requests += 1
            if is_error:
                self.total_errors += 1

    def prune(self) -> int:
        """Drop samples older than the window. Returns how many were dropped."""
        cutoff = self._clock() - self.window_seconds
        removed = 0
        with self._lock:
            while self._samples and self._samples[0][0] < cutoff:
                self._samples.popleft()
                removed += 1
        return removed

    def snapshot(self) -> MonitorSnapshot:
        cutoff = self._clock() - self.window_seconds
        with self._lock:
            recent = [is_error for ts, is_error in self._samples if ts >= cutoff]
            total_requests, total_errors = self.total_requests, self.total_errors
        errors = sum(1 for is_error in recent if is_error)
        return MonitorSnapshot(
            window_requests=len(recent),
            window_errors=errors,
            error_rate=(errors / len(recent)) * 100 if recent else 0.0,
            total_requests=total_requests,
            total_errors=total_errors,
        )

    def __len__(self) -> int:
        return len(self._samples)


monitor = RequestMonitor(window_seconds=settings.HEALTH_WINDOW_SECONDS)


class RequestMonitorMiddleware(BaseHTTPMiddleware):
    """Feeds every request into a RequestMonitor; 4xx/5xx and exceptions count as errors."""

    def __init__(self, app, monitor: RequestMonitor = monitor):
        super().__init__(app)
        self.monitor = monitor

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception:
            self.monitor.record(is_error=True)
            raise
        self.monitor.record(is_error=response.status_code >= 400)
        return response


async def prune_periodically(monitor: RequestMonitor, interval_seconds: float) -> None:
    """Prune the monitor's window forever; cancelled on application shutdown."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = monitor.prune()
        if removed:
            logger.debug(f"Pruned {removed} request samples")
