"""Per-client rate limiting using a token bucket algorithm."""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple

import structlog
from cachetools import TTLCache

logger = structlog.get_logger(__name__)

# Idle buckets are forgotten after this many seconds
BUCKET_IDLE_TTL = 600
MAX_TRACKED_CLIENTS = 10_000


@dataclass
class TokenBucket:
    """Token bucket for rate limiting.

    Attributes:
        capacity: Maximum number of tokens (burst capacity)
        refill_rate: Tokens added per second
        tokens: Current token count
        last_refill: Timestamp of last refill
    """

    capacity: int
    refill_rate: float
    tokens: float = field(default=0.0)
    last_refill: float = field(default_factory=time.monotonic)

    def __post_init__(self) -> None:
        """Initialize tokens to capacity if not set."""
        if self.tokens == 0.0:
            self.tokens = float(self.capacity)


class RateLimiter:
    """Token bucket rate limiter keyed by client identifier (usually the IP).

    Example:
        limiter = RateLimiter(rpm=30)
        allowed, retry_after = limiter.check_rate_limit("203.0.113.7")
        if not allowed:
            # Return 429 with Retry-After header
            pass
    """

    def __init__(
        self,
        rpm: int = 30,
        burst_capacity: int = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize rate limiter.

        Args:
            rpm: Sustained requests per minute per client
            burst_capacity: Maximum burst size (tokens)
            clock: Monotonic time source, injectable for tests
        """
        self.rpm = rpm
        self.burst_capacity = burst_capacity
        self._clock = clock
        self._buckets: TTLCache = TTLCache(maxsize=MAX_TRACKED_CLIENTS, ttl=BUCKET_IDLE_TTL)

    def _get_bucket(self, client_id: str) -> TokenBucket:
        bucket = self._buckets.get(client_id)
        if bucket is None:
            bucket = TokenBucket(
                capacity=self.burst_capacity,
                refill_rate=self.rpm / 60.0,
                last_refill=self._clock(),
            )
        # Re-insert so active clients keep their bucket alive
        self._buckets[client_id] = bucket
        return bucket

    def _refill_bucket(self, bucket: TokenBucket) -> None:
        now = self._clock()
        elapsed = max(0.0, now - bucket.last_refill)
        bucket.tokens = min(bucket.capacity, bucket.tokens + elapsed * bucket.refill_rate)
        bucket.last_refill = now

    def check_rate_limit(self, client_id: str) -> Tuple[bool, float]:
        """Check if a request is allowed under the rate limit.

        Args:
            client_id: Identifier of the requesting client

        Returns:
            Tuple of (allowed, retry_after_seconds)
        """
        bucket = self._get_bucket(client_id)
        self._refill_bucket(bucket)

        if bucket.tokens >= 1.0:
            bucket.tokens -= 1.0
            return True, 0.0

        tokens_needed = 1.0 - bucket.tokens
        retry_after = tokens_needed / bucket.refill_rate if bucket.refill_rate > 0 else 60.0
        logger.info("rate_limit_exceeded", retry_after=round(retry_after, 2))
        return False, retry_after

    def get_bucket_status(self, client_id: str) -> Dict[str, float]:
        """Current token count and limits for a client."""
        bucket = self._buckets.get(client_id)
        if bucket is None:
            return {"tokens": float(self.burst_capacity), "capacity": self.burst_capacity}
        self._refill_bucket(bucket)
        return {"tokens": bucket.tokens, "capacity": bucket.capacity}

    def clear_all_buckets(self) -> None:
        """Clear all rate limit buckets. Useful for testing."""
        self._buckets.clear()
