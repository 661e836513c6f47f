"""
Admission control for walk-in intake.

Continuous-refill token buckets, one per caller identity. Refill is computed
lazily on every call; there is no background timer.
"""

import logging
import math
from typing import Dict, Optional

from dispatch.clock import Clock, system_clock
from dispatch.observability.metrics import observe_admission

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token bucket rate limiter.

    Tokens accumulate at refill_rate per second up to capacity. Not
    thread-safe; each bucket belongs to a single writer.
    """

    def __init__(self, capacity: float, refill_rate: float, clock: Clock = system_clock):
        """
        Initialize token bucket.

        Args:
            capacity: Maximum number of tokens (the bucket starts full)
            refill_rate: Tokens added per second
            clock: Time source

        Raises:
            ValueError: If capacity is not positive or refill_rate is negative
        """
        if capacity <= 0:
            raise ValueError("TokenBucket capacity must be positive")
        if refill_rate < 0:
            raise ValueError("TokenBucket refill_rate cannot be negative")

        self.capacity = capacity
        self.refill_rate = refill_rate
        self.clock = clock
        self.tokens = float(capacity)
        self.last_refill = clock.time()

    def consume(self, amount: float = 1) -> bool:
        """
        Take `amount` tokens if available.

        Returns:
            True if consumed, False if not enough tokens (nothing is taken)

        Raises:
            ValueError: If amount is not positive
        """
        if amount <= 0:
            raise ValueError("Token amount must be positive")
        self._refill()
        if self.tokens >= amount:
            self.tokens -= amount
            return True
        return False

    def get_available_tokens(self) -> int:
        self._refill()
        return math.floor(self.tokens)

    def is_full(self) -> bool:
        """True once the bucket has refilled to capacity."""
        self._refill()
        return self.tokens >= self.capacity

    def _refill(self) -> None:
        now = self.clock.time()
        # A clock stepping backwards must not drain the bucket
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now


class AdmissionController:
    """
    Per-identity admission decisions backed by token buckets.

    Buckets are created lazily on the first request from an identifier.
    """

    def __init__(
        self,
        capacity: float = 10,
        refill_rate: float = 1.0,
        clock: Clock = system_clock
    ):
        """
        Initialize admission controller.

        Args:
            capacity: Burst size granted to each identifier
            refill_rate: Sustained tokens per second per identifier
            clock: Time source shared by all buckets
        """
        TokenBucket(capacity, refill_rate, clock)  # raises ValueError on bad limits

        self.capacity = capacity
        self.refill_rate = refill_rate
        self.clock = clock
        self.buckets: Dict[str, TokenBucket] = {}

    def _bucket(self, identifier: str) -> TokenBucket:
        bucket = self.buckets.get(identifier)
        if bucket is None:
            bucket = TokenBucket(self.capacity, self.refill_rate, self.clock)
            self.buckets[identifier] = bucket
        return bucket

    def is_allowed(self, identifier: str, amount: float = 1) -> bool:
        """
        Check if a request is admitted under the rate limit.

        Args:
            identifier: Caller identity (e.g., kiosk ID, phone number)
            amount: Tokens the request costs

        Returns:
            True if admitted, False if the bucket is exhausted
        """
        allowed = self._bucket(identifier).consume(amount)
        observe_admission(allowed)
        if not allowed:
            logger.info(f"Admission denied for {identifier} (amount={amount})")
        return allowed

    def get_remaining(self, identifier: str) -> int:
        """Whole tokens currently available to identifier."""
        return self._bucket(identifier).get_available_tokens()

    def reset(self, identifier: str) -> None:
        """
        Reset rate limit for an identifier.

        Args:
            identifier: Identifier to reset
        """
        self.buckets.pop(identifier, None)

    def get_bucket(self, identifier: str) -> Optional[TokenBucket]:
        """Existing bucket for identifier, without creating one."""
        return self.buckets.get(identifier)

    def cleanup_idle(self) -> int:
        """
        Drop buckets that have refilled to capacity.

        A full bucket admits exactly what a new one would, so dropping it
        changes no decision.

        Returns:
            Number of buckets removed
        """
        idle = [identifier for identifier, bucket in self.buckets.items() if bucket.is_full()]
        for identifier in idle:
            del self.buckets[identifier]

        if idle:
            logger.debug(f"Cleaned up {len(idle)} idle admission buckets, {len(self.buckets)} remain")
        return len(idle)
