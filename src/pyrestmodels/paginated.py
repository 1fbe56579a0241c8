"""Collections backed by a paginated list endpoint."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from pyrestmodels._constants import DEFAULT_NEXT_PAGE_MARKER, DEFAULT_PAGE_PARAMETER
from pyrestmodels._transport import RestResponse, Transport
from pyrestmodels.collection import Collection, ModelLike, RequestFilters
from pyrestmodels.exceptions import RestUnsupportedOperationError
from pyrestmodels.pagination import PageInfo, Pagination, PaginationMode

_logger = logging.getLogger(__name__)


class LazyCollection(Collection):
    """A collection whose fetches carry a page cursor.

    The list endpoint is expected to answer with a paginator envelope::

        {"data": [...], "next_page_url": "https://.../todos?page=3"}

    ``next_page_url`` being ``None`` marks the last page. The page request
    parameter and the marker key are configurable per class.
    """

    pagination_mode: ClassVar[PaginationMode] = PaginationMode.NAVIGATION
    page_parameter: ClassVar[str] = DEFAULT_PAGE_PARAMETER
    next_page_marker: ClassVar[str] = DEFAULT_NEXT_PAGE_MARKER

    def __init__(
        self,
        models: ModelLike | Iterable[ModelLike] = (),
        page: int | None = None,
        *,
        transport: Transport | None = None,
    ) -> None:
        self.pagination = Pagination(
            self.pagination_mode,
            page=page,
            page_parameter=self.page_parameter,
            next_page_marker=self.next_page_marker,
        )
        super().__init__(models, transport=transport)

    @property
    def current_page(self) -> int:
        return self.pagination.current_page

    @current_page.setter
    def current_page(self, value: int) -> None:
        self.pagination.current_page = value

    @property
    def has_more_pages(self) -> bool:
        return self.pagination.has_more_pages

    @property
    def is_first_page(self) -> bool:
        return self.pagination.is_first_page

    @property
    def is_last_page(self) -> bool:
        return self.pagination.is_last_page

    def map_pagination_data(self, response: RestResponse) -> PageInfo:
        """Interpret a list response. Override for non-Laravel paginators."""
        return self.pagination.parse(response.data)

    def merge_filters(self, filters: Mapping[str, Any]) -> RequestFilters:
        return {**super().merge_filters(filters), **self.pagination.as_filter()}

    def get_items(self, response: RestResponse) -> list[Mapping[str, Any]]:
        return list(self.map_pagination_data(response).items)

    def fetched(self, response: RestResponse) -> None:
        super().fetched(response)
        self.pagination.apply(self.map_pagination_data(response))

    async def fetch(self, filters: Mapping[str, Any] | None = None) -> RestResponse:
        return await self._fetch_page(filters)

    async def _move_and_fetch(
        self,
        filters: Mapping[str, Any] | None,
        *,
        page: int | None = None,
        delta: int = 0,
    ) -> RestResponse:
        # Checked before the cursor moves so a rejected call leaves it alone.
        self.ensure_idle("fetch")
        self.pagination.begin(page, delta=delta)
        return await self._fetch_page(filters)

    async def _fetch_page(self, filters: Mapping[str, Any] | None) -> RestResponse:
        # A rejected call must not restore the snapshot of the one in flight.
        self.ensure_idle("fetch")
        try:
            return await super().fetch(filters)
        except Exception:
            self.pagination.restore()
            raise


class PaginatedCollection(LazyCollection):
    """Explicit page navigation; every page fetch replaces the members."""

    pagination_mode: ClassVar[PaginationMode] = PaginationMode.NAVIGATION

    async def next_page(self, filters: Mapping[str, Any] | None = None) -> RestResponse:
        return await self._move_and_fetch(filters, delta=1)

    async def previous_page(self, filters: Mapping[str, Any] | None = None) -> RestResponse:
        return await self._move_and_fetch(filters, delta=-1)

    async def go_to_page(self, page: int, filters: Mapping[str, Any] | None = None) -> RestResponse:
        return await self._move_and_fetch(filters, page=page)


class ScrollableCollection(LazyCollection):
    """Infinite-scroll accumulation: :meth:`more` appends the next page.

    The cursor starts at 0, so the first :meth:`more` loads page 1.
    """

    pagination_mode: ClassVar[PaginationMode] = PaginationMode.ACCUMULATION

    async def fetch(self, filters: Mapping[str, Any] | None = None) -> RestResponse:
        raise RestUnsupportedOperationError(
            f"fetch() can't be called on {type(self).__name__}; use more() or reset()"
        )

    def fetched(self, response: RestResponse) -> None:
        # Append mode: keep the members loaded by previous pages.
        self.pagination.apply(self.map_pagination_data(response))

    async def more(self, filters: Mapping[str, Any] | None = None) -> RestResponse:
        """Advance the cursor and append the next page."""
        return await self._move_and_fetch(filters, delta=1)

    async def reset(self, filters: Mapping[str, Any] | None = None) -> RestResponse:
        """Drop every member, rewind the cursor and load the first page again."""
        self.ensure_idle("fetch")
        _logger.debug("Resetting %s", type(self).__name__)
        self.clear()
        self.pagination.reset()
        return await self.more(filters)
