"""Tests for parsing rate limit snapshots from response headers."""

import httpx
import pytest

from venice_client.models.rate_limit import RateLimitSnapshot, parse_reset_value


class TestRateLimitSnapshot:
    """Test RateLimitSnapshot.from_headers."""

    def test_all_headers(self):
        """Test every known header is parsed."""
        headers = httpx.Headers({
            "x-ratelimit-limit-requests": "100",
            "x-ratelimit-remaining-requests": "42",
            "x-ratelimit-reset-requests": "30",
            "x-ratelimit-limit-tokens": "10000",
            "x-ratelimit-remaining-tokens": "9000",
            "x-ratelimit-reset-tokens": "1700000000",
            "x-venice-balance-vcu": "12.5",
            "x-venice-balance-usd": "3.25",
        })

        snapshot = RateLimitSnapshot.from_headers(headers)

        assert snapshot.limit_requests == 100
        assert snapshot.remaining_requests == 42
        assert snapshot.reset_requests == 30.0
        assert snapshot.limit_tokens == 10000
        assert snapshot.remaining_tokens == 9000
        assert snapshot.reset_tokens == 1700000000.0
        assert snapshot.balance_vcu == 12.5
        assert snapshot.balance_usd == 3.25

    def test_missing_headers_are_none(self):
        """Test absent headers stay None rather than zero."""
        snapshot = RateLimitSnapshot.from_headers(httpx.Headers({"content-type": "application/json"}))

        assert snapshot.is_empty()
        assert snapshot.remaining_requests is None
        assert not snapshot.is_rate_limited()

    def test_case_insensitive_plain_dict(self):
        """Test header names are matched case-insensitively."""
        snapshot = RateLimitSnapshot.from_headers({"X-RateLimit-Remaining-Requests": "0"})

        assert snapshot.remaining_requests == 0
        assert snapshot.is_rate_limited()

    @pytest.mark.parametrize("value", ["abc", "-5", "", "1.5"])
    def test_invalid_integer_ignored(self, value):
        """Test unparseable or negative counters are treated as absent."""
        snapshot = RateLimitSnapshot.from_headers({"x-ratelimit-remaining-requests": value})

        assert snapshot.remaining_requests is None

    def test_invalid_balance_ignored(self):
        """Test a non-numeric balance does not fail the snapshot."""
        snapshot = RateLimitSnapshot.from_headers({
            "x-venice-balance-usd": "n/a",
            "x-ratelimit-limit-requests": "10",
        })

        assert snapshot.balance_usd is None
        assert snapshot.limit_requests == 10

    def test_str(self):
        """Test the human-readable summary."""
        snapshot = RateLimitSnapshot(
            limit_requests=100,
            remaining_requests=5,
            limit_tokens=1000,
            remaining_tokens=0,
        )

        assert str(snapshot) == "Rate limit: 5/100 requests, 0/1000 tokens"


class TestParseResetValue:
    """Test reset header value parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("60", 60.0),
            ("1.5", 1.5),
            ("1614556800", 1614556800.0),
            ("20ms", 0.02),
            ("5s", 5.0),
            ("1m30s", 90.0),
            ("2h", 7200.0),
        ],
    )
    def test_valid_values(self, value, expected):
        """Test numeric and duration formats."""
        assert parse_reset_value(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, "", "soon", "-3", "5 minutes"])
    def test_invalid_values(self, value):
        """Test unknown formats yield None."""
        assert parse_reset_value(value) is None
