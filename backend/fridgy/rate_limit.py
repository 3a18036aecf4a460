"""
In-memory fixed-window rate limiting keyed by client IP.

Counters live in process memory only; a multi-worker deployment gets one
independent window per worker.
"""
import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import HTTPException, Request, Response

from fridgy.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class _WindowRecord:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int

    @property
    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_after),
        }


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        sweep_interval: float = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._records: dict[str, _WindowRecord] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def hit(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and report whether it is within the limit."""
        with self._lock:
            now = self._clock()
            if now - self._last_sweep >= self.sweep_interval:
                self._sweep_locked(now)

            record = self._records.get(key)
            if record is None:
                record = _WindowRecord(count=0, reset_at=now + self.window_seconds)
                self._records[key] = record

            if now > record.reset_at:
                record.count = 0
                record.reset_at = now + self.window_seconds

            record.count += 1

            return RateLimitResult(
                allowed=record.count <= self.max_requests,
                limit=self.max_requests,
                remaining=max(0, self.max_requests - record.count),
                reset_after=math.ceil(record.reset_at - now),
            )

    def sweep(self) -> int:
        """Drop expired windows. Returns how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, record in self._records.items() if now > record.reset_at]
        for key in expired:
            del self._records[key]
        self._last_sweep = now
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()
            self._last_sweep = self._clock()

    def __len__(self) -> int:
        return len(self._records)


analyze_rate_limiter = FixedWindowRateLimiter(
    max_requests=settings.RATE_LIMIT_MAX,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    sweep_interval=settings.RATE_LIMIT_SWEEP_SECONDS,
)


def client_ip(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"
    return "unknown"


def enforce_rate_limit(request: Request, response: Response) -> RateLimitResult:
    """FastAPI dependency guarding the analysis endpoint."""
    ip = client_ip(request)
    result = analyze_rate_limiter.hit(ip)
    if not result.allowed:
        logger.warning("Rate limit exceeded for IP %s", ip)
        raise HTTPException(
            status_code=429,
            detail="Too many requests. Please try again later.",
            headers=result.headers,
        )
    response.headers.update(result.headers)
    return result
