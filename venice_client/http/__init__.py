"""HTTP layer: URL building, transport and response classification."""

from venice_client.http.response import (
    extract_error_details,
    process_binary_response,
    process_response,
)
from venice_client.http.transport import BinaryResult, Transport, TransportResult
from venice_client.http.url import build_url

__all__ = [
    "BinaryResult",
    "Transport",
    "TransportResult",
    "build_url",
    "extract_error_details",
    "process_binary_response",
    "process_response",
]
