"""Client-side rate limiting driven by the server's rate limit headers.

The limiter does not count requests itself. It mirrors the most recent
:class:`~venice_client.models.rate_limit.RateLimitSnapshot` and gates new
calls when that snapshot says the budget is spent, optionally sleeping until
the earliest reported reset.

One limiter is shared by reference between every caller of a client. Each
field is replaced independently with a plain attribute store, so concurrent
updates are last-writer-wins; a call that slips through between two
snapshots is corrected by the next response.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Optional

from venice_client.core.logging import get_logger
from venice_client.exceptions import RateLimitExceededError
from venice_client.models.rate_limit import RateLimitSnapshot

logger = get_logger(__name__)

# Reset values at or above this are already Unix timestamps; smaller values
# are a number of seconds from now.
EPOCH_THRESHOLD = 1_000_000_000


@dataclass(frozen=True)
class RateLimiterConfig:
    """Configuration for the rate limiter.

    Attributes:
        auto_wait: Sleep until the limit resets instead of raising
        max_wait_time: Upper bound on a single wait, in seconds
    """

    auto_wait: bool = True
    max_wait_time: float = 60.0


def reset_deadline(value: float, now: float) -> float:
    """Normalise a reset header value to an absolute Unix timestamp."""
    if value >= EPOCH_THRESHOLD:
        return value
    return now + value


class RateLimiter:
    """Tracks the server-reported request and token budget.

    Attributes:
        max_requests: Request limit per window (0 until first reported)
        remaining_requests: Requests left in the current window
        reset_time_requests: Unix timestamp when the request budget resets
        max_tokens: Token limit per window (0 until first reported)
        remaining_tokens: Tokens left in the current window
        reset_time_tokens: Unix timestamp when the token budget resets
    """

    def __init__(self, config: Optional[RateLimiterConfig] = None):
        self.config = config or RateLimiterConfig()
        self.max_requests = 0
        # Seeded to 1 so the very first call is never blocked
        self.remaining_requests = 1
        self.reset_time_requests = 0.0
        self.max_tokens = 0
        self.remaining_tokens = 1
        self.reset_time_tokens = 0.0

    def update_from_response(self, snapshot: RateLimitSnapshot) -> None:
        """Overwrite every counter the snapshot reports; leave the rest alone."""
        now = time.time()
        if snapshot.limit_requests is not None:
            self.max_requests = snapshot.limit_requests
        if snapshot.remaining_requests is not None:
            self.remaining_requests = snapshot.remaining_requests
        if snapshot.reset_requests is not None:
            self.reset_time_requests = reset_deadline(snapshot.reset_requests, now)
        if snapshot.limit_tokens is not None:
            self.max_tokens = snapshot.limit_tokens
        if snapshot.remaining_tokens is not None:
            self.remaining_tokens = snapshot.remaining_tokens
        if snapshot.reset_tokens is not None:
            self.reset_time_tokens = reset_deadline(snapshot.reset_tokens, now)

    def is_rate_limited(self) -> bool:
        """Check if either budget is exhausted."""
        return self.remaining_requests == 0 or self.remaining_tokens == 0

    def time_until_reset(self) -> Optional[float]:
        """Seconds until the earliest reset that lies in the future.

        Returns:
            The smaller positive horizon, or None if both are past or unset
        """
        now = time.time()
        horizons = [
            deadline - now
            for deadline in (self.reset_time_requests, self.reset_time_tokens)
            if deadline > now
        ]
        return min(horizons) if horizons else None

    async def acquire(self) -> None:
        """Get permission to make a request, waiting if necessary.

        If the limit is exhausted and ``auto_wait`` is enabled, sleeps for
        ``min(time_until_reset(), max_wait_time)`` and then returns without
        re-checking; the next response corrects the counters if the wait was
        too short.

        Raises:
            RateLimitExceededError: If the limit is exhausted and auto_wait
                is disabled
        """
        if not self.is_rate_limited():
            return

        if not self.config.auto_wait:
            raise RateLimitExceededError(
                "Rate limit exceeded. Consider enabling auto_wait or implementing backoff.",
                origin="local",
            )

        wait_time = self.time_until_reset()
        if wait_time is None:
            logger.warning("Rate limit exhausted but reset time is unknown, proceeding")
            return

        wait_time = min(wait_time, self.config.max_wait_time)
        if wait_time > 0:
            logger.info(f"Rate limit exceeded. Waiting for {wait_time:.2f} seconds...")
            await asyncio.sleep(wait_time)


def new_shared_rate_limiter(config: Optional[RateLimiterConfig] = None) -> RateLimiter:
    """Create a rate limiter meant to be shared across several clients."""
    return RateLimiter(config)
