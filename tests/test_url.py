"""Tests for URL building."""

import pytest

from venice_client.exceptions import InvalidInputError
from venice_client.http.url import build_url


class TestBuildUrl:
    """Test joining base URLs and endpoints."""

    @pytest.mark.parametrize(
        "base_url,endpoint",
        [
            ("https://api.venice.ai/api/v1", "models"),
            ("https://api.venice.ai/api/v1/", "models"),
            ("https://api.venice.ai/api/v1", "/models"),
            ("https://api.venice.ai/api/v1/", "/models"),
            ("https://api.venice.ai/api/v1//", "//models"),
        ],
    )
    def test_exactly_one_separator(self, base_url, endpoint):
        """Test the join never doubles or drops the slash."""
        assert build_url(base_url, endpoint) == "https://api.venice.ai/api/v1/models"

    def test_nested_endpoint(self):
        """Test endpoints with several path segments."""
        url = build_url("http://localhost:8080/api/v1", "api_keys/key-123")
        assert url == "http://localhost:8080/api/v1/api_keys/key-123"

    def test_missing_scheme_rejected(self):
        """Test a base URL without scheme is invalid input."""
        with pytest.raises(InvalidInputError):
            build_url("api.venice.ai/api/v1", "models")

    def test_unsupported_scheme_rejected(self):
        """Test non-http schemes are invalid input."""
        with pytest.raises(InvalidInputError):
            build_url("ftp://api.venice.ai", "models")

    @pytest.mark.parametrize("endpoint", ["models", "/models"])
    def test_example_host(self, endpoint):
        assert build_url("https://api.example.com/v1", endpoint) == "https://api.example.com/v1/models"
