"""HTTP client construction for connection pooling.

One ``httpx.AsyncClient`` is created per :class:`~venice_client.client.Client`
and reused across all of its requests for connection reuse.
"""

from typing import Optional

import httpx

from venice_client.core.config import ClientSettings, settings


def create_http_client(
    config: Optional[ClientSettings] = None,
    **kwargs,
) -> httpx.AsyncClient:
    """Create a new HTTP client with pool limits and granular timeouts.

    The returned client should be closed when done:

        async with create_http_client() as client:
            ...

    Args:
        config: Settings to read pool and timeout values from. Defaults to
            the global settings.
        **kwargs: Override individual values. Can include:
            - timeout: Single timeout value (overrides all granular timeouts)
            - connect_timeout, read_timeout, write_timeout, pool_timeout
            - max_connections, max_keepalive_connections, keepalive_expiry

    Returns:
        A new httpx.AsyncClient instance.
    """
    config = config or settings

    timeout_override = kwargs.get("timeout")
    if timeout_override is not None:
        timeout = httpx.Timeout(timeout_override)
    else:
        # connect: socket establishment; read: per-chunk read, which is what
        # bounds each pull on a streaming response
        timeout = httpx.Timeout(
            connect=kwargs.get("connect_timeout", config.connect_timeout),
            read=kwargs.get("read_timeout", config.read_timeout),
            write=kwargs.get("write_timeout", config.write_timeout),
            pool=kwargs.get("pool_timeout", config.pool_timeout),
        )

    limits = httpx.Limits(
        max_connections=kwargs.get("max_connections", config.max_connections),
        max_keepalive_connections=kwargs.get(
            "max_keepalive_connections", config.max_keepalive_connections
        ),
        keepalive_expiry=kwargs.get("keepalive_expiry", config.keepalive_expiry),
    )
    return httpx.AsyncClient(timeout=timeout, limits=limits)
