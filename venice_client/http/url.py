import httpx

from venice_client.exceptions import InvalidInputError


def build_url(base_url: str, endpoint: str) -> str:
    """Join a base URL and an endpoint with exactly one separating slash.

    Args:
        base_url: API base URL, with or without a trailing slash
        endpoint: Endpoint path, with or without a leading slash

    Returns:
        Full URL

    Raises:
        InvalidInputError: If the result is not an absolute http(s) URL
    """
    url = f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidInputError(f"Invalid URL: {url} - {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidInputError(f"Invalid URL: {url}")
    return url
