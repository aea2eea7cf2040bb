"""Rate limit snapshot parsed from API response headers."""

import re
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from venice_client.core.logging import get_logger

logger = get_logger(__name__)

LIMIT_REQUESTS_HEADER = "x-ratelimit-limit-requests"
REMAINING_REQUESTS_HEADER = "x-ratelimit-remaining-requests"
RESET_REQUESTS_HEADER = "x-ratelimit-reset-requests"
LIMIT_TOKENS_HEADER = "x-ratelimit-limit-tokens"
REMAINING_TOKENS_HEADER = "x-ratelimit-remaining-tokens"
RESET_TOKENS_HEADER = "x-ratelimit-reset-tokens"
BALANCE_VCU_HEADER = "x-venice-balance-vcu"
BALANCE_USD_HEADER = "x-venice-balance-usd"

# e.g. "20ms", "5s", "1m30s", "2h"
_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_FULL = re.compile(r"^(?:\d+(?:\.\d+)?(?:ms|s|m|h))+$")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def _lower_headers(headers: Mapping[str, str]) -> Mapping[str, str]:
    # httpx.Headers is already case-insensitive
    if hasattr(headers, "multi_items"):
        return headers
    return {str(k).lower(): v for k, v in headers.items()}


def _parse_int(headers: Mapping[str, str], key: str) -> Optional[int]:
    value = headers.get(key)
    if value is None:
        return None
    try:
        parsed = int(str(value).strip())
    except (ValueError, TypeError):
        logger.debug(f"Ignoring invalid integer in header {key}: {value!r}")
        return None
    return parsed if parsed >= 0 else None


def _parse_float(headers: Mapping[str, str], key: str) -> Optional[float]:
    value = headers.get(key)
    if value is None:
        return None
    try:
        return float(str(value).strip())
    except (ValueError, TypeError):
        logger.debug(f"Ignoring invalid number in header {key}: {value!r}")
        return None


def parse_reset_value(value: Optional[str]) -> Optional[float]:
    """Parse a reset header value into a number of seconds.

    Accepts plain numbers ("60", "1614556800") and duration strings
    ("20ms", "1m30s"). Returns None for anything else.
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        if not _DURATION_FULL.match(value):
            logger.debug(f"Unknown reset time format: {value!r}")
            return None
        seconds = sum(
            float(number) * _UNIT_SECONDS[unit]
            for number, unit in _DURATION_PART.findall(value)
        )
    return seconds if seconds >= 0 else None


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Rate limit state read from one HTTP response.

    Every field is optional: a header that is absent or unparseable leaves
    its field as None rather than zero. Reset values are kept as the raw
    number of seconds the server sent; the rate limiter normalises them to
    absolute deadlines when it ingests the snapshot.
    """

    limit_requests: Optional[int] = None
    remaining_requests: Optional[int] = None
    reset_requests: Optional[float] = None
    limit_tokens: Optional[int] = None
    remaining_tokens: Optional[int] = None
    reset_tokens: Optional[float] = None
    balance_vcu: Optional[float] = None
    balance_usd: Optional[float] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitSnapshot":
        """Extract rate limit information from response headers."""
        headers = _lower_headers(headers)
        return cls(
            limit_requests=_parse_int(headers, LIMIT_REQUESTS_HEADER),
            remaining_requests=_parse_int(headers, REMAINING_REQUESTS_HEADER),
            reset_requests=parse_reset_value(headers.get(RESET_REQUESTS_HEADER)),
            limit_tokens=_parse_int(headers, LIMIT_TOKENS_HEADER),
            remaining_tokens=_parse_int(headers, REMAINING_TOKENS_HEADER),
            reset_tokens=parse_reset_value(headers.get(RESET_TOKENS_HEADER)),
            balance_vcu=_parse_float(headers, BALANCE_VCU_HEADER),
            balance_usd=_parse_float(headers, BALANCE_USD_HEADER),
        )

    def is_rate_limited(self) -> bool:
        """Check whether either reported remaining counter is zero."""
        return self.remaining_requests == 0 or self.remaining_tokens == 0

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def __str__(self) -> str:
        return (
            f"Rate limit: {self.remaining_requests or 0}/{self.limit_requests or 0} requests, "
            f"{self.remaining_tokens or 0}/{self.limit_tokens or 0} tokens"
        )
