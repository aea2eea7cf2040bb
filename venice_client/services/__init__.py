"""Pagination and streaming services built on the transport."""

from venice_client.services.pagination import (
    PageResult,
    PaginationInfo,
    PaginationParams,
    Paginator,
    create_paginator,
)
from venice_client.services.streaming import ChatCompletionStream, iter_sse_data

__all__ = [
    "ChatCompletionStream",
    "PageResult",
    "PaginationInfo",
    "PaginationParams",
    "Paginator",
    "create_paginator",
    "iter_sse_data",
]
