"""Tests for the page cursor and the paginated collection variants."""

from __future__ import annotations

import asyncio

import pytest

from _resources import FakeBackend, PaginatedTodos, ScrollableTodos
from pyrestmodels import (
    PageInfo,
    PageState,
    Pagination,
    PaginationMode,
    RestConcurrentRequestError,
    RestHttpError,
    RestUnsupportedOperationError,
)


def _keys(collection) -> list[int]:
    return [model.key for model in collection]


class TestPageInfo:
    def test_envelope_with_next_page(self) -> None:
        info = PageInfo.from_envelope({"data": [{"id": 1}], "next_page_url": "/todos?page=2"})
        assert info.items == [{"id": 1}]
        assert info.has_more_pages is True

    def test_last_page_envelope(self) -> None:
        info = PageInfo.from_envelope({"data": [{"id": 1}], "next_page_url": None})
        assert info.has_more_pages is False

    def test_custom_marker(self) -> None:
        body = {"data": [], "links": "x", "next_page_url": None}
        assert PageInfo.from_envelope(body, marker="links").has_more_pages is True

    @pytest.mark.parametrize("body", [None, [], "oops", {"data": "nope"}])
    def test_malformed_bodies_are_empty(self, body) -> None:
        info = PageInfo.from_envelope(body)
        assert info.items == []
        assert info.has_more_pages is False


class TestPagination:
    def test_navigation_starts_on_first_page(self) -> None:
        pagination = Pagination()
        assert pagination.current_page == 1
        assert pagination.state is PageState.NO_DATA
        assert pagination.is_first_page is True
        assert pagination.is_last_page is True

    def test_accumulation_starts_before_first_page(self) -> None:
        pagination = Pagination(PaginationMode.ACCUMULATION)
        assert pagination.current_page == 0
        pagination.current_page = -3
        assert pagination.current_page == 0

    def test_page_is_floored(self) -> None:
        pagination = Pagination(page=0)
        assert pagination.current_page == 1
        pagination.current_page = -5
        assert pagination.current_page == 1

    def test_apply_updates_state(self) -> None:
        pagination = Pagination()
        pagination.begin(delta=1)
        pagination.apply(PageInfo(has_more_pages=True))
        assert pagination.state is PageState.HAS_MORE
        assert pagination.current_page == 2
        pagination.apply(PageInfo(has_more_pages=False))
        assert pagination.state is PageState.LAST_PAGE

    def test_restore_undoes_begin(self) -> None:
        pagination = Pagination()
        pagination.apply(PageInfo(has_more_pages=True))
        pagination.begin(page=7)
        assert pagination.current_page == 7
        pagination.restore()
        assert pagination.current_page == 1
        assert pagination.state is PageState.HAS_MORE

    def test_restore_without_pending_move_is_noop(self) -> None:
        pagination = Pagination(page=3)
        pagination.restore()
        assert pagination.current_page == 3

    def test_reset(self) -> None:
        pagination = Pagination(page=3)
        pagination.begin(delta=2)
        pagination.apply(PageInfo(has_more_pages=True))
        pagination.reset()
        assert pagination.current_page == 3
        assert pagination.state is PageState.NO_DATA

    def test_as_filter_uses_page_parameter(self) -> None:
        assert Pagination(page=2, page_parameter="p").as_filter() == {"p": 2}


# ------------------------------------------------------------------
# Navigation
# ------------------------------------------------------------------


class TestPaginatedCollection:
    @pytest.mark.asyncio
    async def test_navigating_between_pages(self, backend: FakeBackend) -> None:
        todos = PaginatedTodos(transport=backend)

        await todos.fetch()
        assert backend.calls[-1].params == {"page": 1}
        assert todos.to_array() == backend.page(1)
        assert todos.is_first_page is True
        assert todos.has_more_pages is True

        await todos.next_page()
        assert todos.current_page == 2
        assert todos.to_array() == backend.page(2)
        assert todos.is_first_page is False

        await todos.previous_page()
        assert todos.current_page == 1
        assert todos.to_array() == backend.page(1)
        assert todos.is_first_page is True

    @pytest.mark.asyncio
    async def test_go_to_page_and_last_page(self, backend: FakeBackend) -> None:
        todos = PaginatedTodos(transport=backend)

        await todos.go_to_page(4)
        assert _keys(todos) == [10]
        assert todos.is_last_page is True
        assert todos.has_more_pages is False

        await todos.go_to_page(0)
        assert todos.current_page == 1
        assert backend.calls[-1].params == {"page": 1}

    @pytest.mark.asyncio
    async def test_previous_page_does_not_go_below_first(self, backend: FakeBackend) -> None:
        todos = PaginatedTodos(transport=backend)
        await todos.previous_page()
        assert todos.current_page == 1

    @pytest.mark.asyncio
    async def test_initial_page(self, backend: FakeBackend) -> None:
        todos = PaginatedTodos(page=2, transport=backend)
        await todos.fetch()
        assert todos.to_array() == backend.page(2)

    @pytest.mark.asyncio
    async def test_filters_are_sent_with_the_page(self, backend: FakeBackend) -> None:
        todos = PaginatedTodos(transport=backend)

        await todos.fetch({"userId": 3})
        assert backend.calls[-1].params == {"userId": 3, "page": 1}
        assert _keys(todos) == [6, 7, 8]

        await todos.next_page({"userId": 3})
        assert _keys(todos) == [9, 10]
        assert todos.is_last_page is True

    @pytest.mark.asyncio
    async def test_failed_fetch_restores_cursor_and_members(self, backend: FakeBackend) -> None:
        todos = PaginatedTodos(transport=backend)
        await todos.fetch()
        backend.fail_next = 500

        with pytest.raises(RestHttpError):
            await todos.next_page()

        assert todos.current_page == 1
        assert todos.has_more_pages is True
        assert todos.to_array() == backend.page(1)

        await todos.next_page()
        assert todos.current_page == 2

    @pytest.mark.asyncio
    async def test_concurrent_navigation_is_rejected_without_moving_cursor(self, backend: FakeBackend) -> None:
        backend.gate = asyncio.Event()
        todos = PaginatedTodos(transport=backend)

        first = asyncio.create_task(todos.next_page())
        await asyncio.sleep(0)
        assert todos.current_page == 2

        with pytest.raises(RestConcurrentRequestError):
            await todos.next_page()
        assert todos.current_page == 2

        backend.gate.set()
        await first
        assert todos.current_page == 2
        assert todos.to_array() == backend.page(2)
        assert len(backend.calls) == 1

    @pytest.mark.asyncio
    async def test_rejected_fetch_keeps_in_flight_cursor(self, backend: FakeBackend) -> None:
        backend.gate = asyncio.Event()
        todos = PaginatedTodos(transport=backend)

        first = asyncio.create_task(todos.next_page())
        await asyncio.sleep(0)

        with pytest.raises(RestConcurrentRequestError):
            await todos.fetch()
        assert todos.current_page == 2

        backend.gate.set()
        await first
        assert todos.current_page == 2
        assert todos.to_array() == backend.page(2)

        backend.fail_next = 500
        with pytest.raises(RestHttpError):
            await todos.next_page()
        assert todos.current_page == 2


# ------------------------------------------------------------------
# Accumulation
# ------------------------------------------------------------------


class TestScrollableCollection:
    @pytest.mark.asyncio
    async def test_more_appends_pages(self, backend: FakeBackend) -> None:
        todos = ScrollableTodos(transport=backend)
        assert todos.current_page == 0

        await todos.more()
        assert todos.to_array() == backend.page(1)

        await todos.more()
        assert todos.current_page == 2
        assert todos.to_array() == backend.page(1) + backend.page(2)
        assert todos.has_more_pages is True

    @pytest.mark.asyncio
    async def test_scrolling_to_the_end(self, backend: FakeBackend) -> None:
        todos = ScrollableTodos(transport=backend)
        while todos.pagination.state != PageState.LAST_PAGE:
            await todos.more()
        assert _keys(todos) == list(range(1, 11))
        assert todos.is_last_page is True

    @pytest.mark.asyncio
    async def test_fetch_is_not_supported(self, backend: FakeBackend) -> None:
        todos = ScrollableTodos(transport=backend)
        with pytest.raises(RestUnsupportedOperationError):
            await todos.fetch()
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_reset_reloads_first_page(self, backend: FakeBackend) -> None:
        todos = ScrollableTodos(transport=backend)
        await todos.more()
        await todos.more()

        await todos.reset()

        assert todos.current_page == 1
        assert todos.to_array() == backend.page(1)
        assert backend.calls[-1].params == {"page": 1}

    @pytest.mark.asyncio
    async def test_failed_more_keeps_loaded_pages(self, backend: FakeBackend) -> None:
        todos = ScrollableTodos(transport=backend)
        await todos.more()
        backend.fail_next = 503

        with pytest.raises(RestHttpError):
            await todos.more()

        assert todos.current_page == 1
        assert todos.count() == 3

        await todos.more()
        assert _keys(todos) == [1, 2, 3, 4, 5, 6]
