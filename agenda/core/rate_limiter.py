"""Fixed-window limits on booking writes.

Counters live in Redis so every API worker shares them. When Redis cannot be
reached the limiter keeps counting in process memory instead of failing the
request.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Protocol

import redis

from agenda.core.config import settings

logger = logging.getLogger(__name__)


class WindowCounter(Protocol):
    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Count one hit; return (hits in the current window, seconds until it resets)."""

    def clear(self) -> None: ...


@dataclass
class _Window:
    count: int
    resets_at: float


class LocalWindowCounter:
    def __init__(self) -> None:
        self._windows: dict[str, _Window] = {}
        self._guard = threading.Lock()

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        now = time.monotonic()
        with self._guard:
            window = self._windows.get(key)
            if window is None or now >= window.resets_at:
                window = _Window(count=0, resets_at=now + window_seconds)
                self._windows[key] = window
            window.count += 1
            return window.count, max(1, math.ceil(window.resets_at - now))

    def clear(self) -> None:
        with self._guard:
            self._windows.clear()


class RedisWindowCounter:
    def __init__(self, redis_url: str, prefix: str = "agenda:rl") -> None:
        self._client = redis.Redis.from_url(redis_url, socket_connect_timeout=0.2, socket_timeout=0.2)
        self._prefix = prefix

    def hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        redis_key = f"{self._prefix}:{key}"
        pipe = self._client.pipeline()
        # SET NX opens the window with its TTL; later hits only increment.
        pipe.set(redis_key, 0, ex=window_seconds, nx=True)
        pipe.incr(redis_key)
        pipe.ttl(redis_key)
        _, count, ttl = pipe.execute()
        return int(count), max(1, int(ttl))

    def clear(self) -> None:
        keys = list(self._client.scan_iter(match=f"{self._prefix}:*"))
        if keys:
            self._client.delete(*keys)


class RateLimiter:
    def __init__(self, counter: WindowCounter, fallback: LocalWindowCounter | None = None) -> None:
        self._counter = counter
        self._fallback = fallback

    def allow(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int]:
        """Record one hit for ``key``; return (allowed, retry_after_seconds)."""
        count, resets_in = self._hit(key, window_seconds)
        if count > limit:
            return False, resets_in
        return True, 0

    def reset(self) -> None:
        try:
            self._counter.clear()
        except redis.RedisError as exc:
            logger.warning("rate_limiter_reset_failed error=%s", exc)
        if self._fallback is not None:
            self._fallback.clear()

    def _hit(self, key: str, window_seconds: int) -> tuple[int, int]:
        if self._fallback is None:
            return self._counter.hit(key, window_seconds)
        try:
            return self._counter.hit(key, window_seconds)
        except redis.RedisError as exc:
            logger.warning("rate_limiter_fallback key=%s error=%s", key, exc)
            return self._fallback.hit(key, window_seconds)


def booking_write_key(tenant_id: int, client_host: str) -> str:
    return f"bookings:{tenant_id}:{client_host}"


def _build_rate_limiter() -> RateLimiter:
    if settings.rate_limit_backend.strip().lower() == "redis":
        return RateLimiter(RedisWindowCounter(settings.rate_limit_redis_url), fallback=LocalWindowCounter())
    return RateLimiter(LocalWindowCounter())


rate_limiter = _build_rate_limiter()
