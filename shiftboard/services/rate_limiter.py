"""Fixed-window request admission.

Buckets live in process memory only. The bucket map is split into shards,
each guarded by its own lock, so callers hashing to different shards never
contend and the increment-and-compare for one key is atomic.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
import logging
import math
import threading
import time

from shiftboard.config import Settings, settings as default_settings
from shiftboard.exceptions import RateLimitedError


logger = logging.getLogger(__name__)


@dataclass
class RateLimitBucket:
    """Counter for one caller key within the current window."""
    window_start: float
    window_seconds: float
    count: int = 0

    def expired(self, now: float) -> bool:
        return now - self.window_start >= self.window_seconds

    def remaining(self, now: float) -> float:
        """Seconds left in the window, clamped to [0, window_seconds]."""
        left = self.window_seconds - (now - self.window_start)
        return min(max(left, 0.0), self.window_seconds)


@dataclass(frozen=True)
class RateLimitDecision:
    admitted: bool
    count: int
    limit: int
    retry_after: float


class _Shard:
    def __init__(self):
        self.lock = threading.Lock()
        self.buckets: Dict[str, RateLimitBucket] = {}


class RateLimiter:
    """Sharded fixed-window counter store."""

    def __init__(
        self,
        shards: int = 16,
        max_buckets: Optional[int] = 10000,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize rate limiter.

        Args:
            shards: Number of independently locked bucket maps
            max_buckets: Total bucket count above which a shard sweeps expired buckets
            clock: Monotonic clock in seconds
        """
        if shards < 1:
            raise ValueError("shards must be at least 1")
        self._shards: List[_Shard] = [_Shard() for _ in range(shards)]
        self._shard_cap = None if max_buckets is None else max(1, max_buckets // shards)
        self.clock = clock

    def _shard_for(self, key: str) -> _Shard:
        return self._shards[hash(key) % len(self._shards)]

    def check_and_increment(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        """
        Count one request for ``key`` and decide whether to admit it.

        A missing or elapsed bucket restarts at the current time with a zero
        count before the increment. The request is admitted while the count
        stays within ``limit``.
        """
        shard = self._shard_for(key)
        with shard.lock:
            now = self.clock()
            bucket = shard.buckets.get(key)
            if bucket is None or bucket.expired(now):
                if bucket is None and self._shard_cap is not None and len(shard.buckets) >= self._shard_cap:
                    self._sweep_shard(shard, now)
                bucket = RateLimitBucket(window_start=now, window_seconds=window_seconds)
                shard.buckets[key] = bucket
            bucket.count += 1
            admitted = bucket.count <= limit
            retry_after = 0.0 if admitted else bucket.remaining(now)
            return RateLimitDecision(admitted, bucket.count, limit, retry_after)

    def _sweep_shard(self, shard: _Shard, now: float) -> int:
        expired = [key for key, bucket in shard.buckets.items() if bucket.expired(now)]
        for key in expired:
            del shard.buckets[key]
        return len(expired)

    def sweep_expired(self) -> int:
        """Drop every bucket whose window has elapsed. Returns how many were dropped."""
        removed = 0
        for shard in self._shards:
            with shard.lock:
                removed += self._sweep_shard(shard, self.clock())
        if removed:
            logger.debug(f"Swept {removed} expired rate limit buckets")
        return removed

    def bucket_count(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.buckets)
        return total

    def reset(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.buckets.clear()


class AdmissionController:
    """Applies per route class limits from settings in front of the services."""

    def __init__(self, limiter: RateLimiter, config: Optional[Settings] = None):
        self.limiter = limiter
        self.config = config or default_settings

    def admit(self, route_class: str, caller_key: str) -> Optional[RateLimitDecision]:
        """
        Admit one request or raise.

        Args:
            route_class: One of general, sensitive, admin, login
            caller_key: Actor ID or client address

        Returns:
            The decision, or None when rate limiting is disabled

        Raises:
            RateLimitedError: If the caller exceeded the class limit
        """
        if not self.config.rate_limit_enabled:
            return None

        limit, window = self.config.rate_limit_for(route_class)
        decision = self.limiter.check_and_increment(f"{route_class}:{caller_key}", limit, window)
        if not decision.admitted:
            retry_after = max(1, math.ceil(decision.retry_after))
            logger.warning(f"Rate limit exceeded for {route_class}:{caller_key} ({decision.count}/{limit})")
            raise RateLimitedError(route_class, limit, window, retry_after)
        return decision


def build_rate_limiter(config: Optional[Settings] = None) -> RateLimiter:
    """Construct the process-wide limiter from settings."""
    config = config or default_settings
    return RateLimiter(shards=config.rate_limit_shards, max_buckets=config.rate_limit_max_buckets)
