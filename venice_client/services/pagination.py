"""Cursor-based pagination over any paged list endpoint.

A paginator is written once against the :class:`PaginationInfo` capability
interface. Each resource's list response implements ``get_items()``,
``has_more`` and ``next_cursor``, and the paginator walks the pages by
carrying the cursor from one response into the next request.
"""

from dataclasses import dataclass, field, replace
from typing import (
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
)

from venice_client.core.logging import get_logger
from venice_client.models.rate_limit import RateLimitSnapshot

logger = get_logger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class PaginationInfo(Protocol[T_co]):
    """Capability interface implemented by every paged list response."""

    has_more: bool
    next_cursor: Optional[str]

    def get_items(self) -> List[T_co]:
        ...


@dataclass(frozen=True)
class PaginationParams:
    """Cursor and page size sent with a page request.

    Both absent means "first page, server default size".
    """

    limit: Optional[int] = None
    cursor: Optional[str] = None

    def to_query(self) -> Dict[str, str]:
        query = {}
        if self.limit is not None:
            query["limit"] = str(self.limit)
        if self.cursor is not None:
            query["cursor"] = self.cursor
        return query


@dataclass
class PageResult(Generic[T]):
    """One fetched page."""

    items: List[T] = field(default_factory=list)
    has_more: bool = False
    next_cursor: Optional[str] = None
    rate_limit: RateLimitSnapshot = field(default_factory=RateLimitSnapshot)


FetchPage = Callable[
    [PaginationParams], Awaitable[Tuple[PaginationInfo[T], RateLimitSnapshot]]
]


class Paginator(Generic[T]):
    """Walks a cursor-paginated endpoint page by page.

    Args:
        fetch_page: Coroutine function fetching one page for the given
            params and returning ``(response, snapshot)``
        params: Initial pagination parameters

    Example:
        >>> paginator = client.list_models(limit=50)
        >>> page = await paginator.next_page()
        >>> everything = await paginator.all_pages()
    """

    def __init__(
        self,
        fetch_page: FetchPage[T],
        params: Optional[PaginationParams] = None,
    ):
        self._fetch_page = fetch_page
        self.params = params or PaginationParams()
        self.has_more = True

    @property
    def is_exhausted(self) -> bool:
        return not self.has_more

    async def next_page(self) -> Optional[PageResult[T]]:
        """Fetch the next page.

        Returns:
            The page, or None once the paginator is terminal (no fetch is
            made in that case)
        """
        if not self.has_more:
            return None

        response, rate_limit = await self._fetch_page(self.params)

        items = response.get_items()
        has_more = bool(response.has_more)
        next_cursor = response.next_cursor

        if has_more and next_cursor:
            self.params = replace(self.params, cursor=next_cursor)
        else:
            if has_more:
                logger.warning(
                    "Page reported has_more without a next_cursor; stopping pagination"
                )
            self.has_more = False

        return PageResult(
            items=items,
            has_more=has_more,
            next_cursor=next_cursor if has_more else None,
            rate_limit=rate_limit,
        )

    async def all_pages(self) -> List[T]:
        """Fetch every remaining page and concatenate their items in order.

        Errors propagate unchanged; items from pages fetched before the error
        are discarded. Use :meth:`next_page` to keep partial results.
        """
        all_items: List[T] = []
        while True:
            page = await self.next_page()
            if page is None:
                break
            all_items.extend(page.items)
        return all_items

    async def __aiter__(self) -> AsyncIterator[T]:
        while True:
            page = await self.next_page()
            if page is None:
                return
            for item in page.items:
                yield item


def create_paginator(
    fetch_page: FetchPage[T],
    params: Optional[PaginationParams] = None,
) -> Paginator[T]:
    """Create a paginator for a specific endpoint."""
    return Paginator(fetch_page, params)
