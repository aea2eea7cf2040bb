"""Core utilities for the client library."""

from venice_client.core.config import DEFAULT_BASE_URL, ClientSettings, settings
from venice_client.core.http_client import create_http_client
from venice_client.core.logging import get_log_context, get_logger, setup_logging

__all__ = [
    "DEFAULT_BASE_URL",
    "ClientSettings",
    "settings",
    "create_http_client",
    "get_logger",
    "get_log_context",
    "setup_logging",
]
