"""Page-cursor state machine shared by lazy collections.

States: no data yet, more pages available, last page reached. The cursor
is moved by the caller before a fetch is issued; the "has more" hint is
only updated from a successful response. A failed fetch restores the
cursor to the value it had before the move, so the cursor always matches
the page being displayed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pyrestmodels._constants import DEFAULT_NEXT_PAGE_MARKER, DEFAULT_PAGE_PARAMETER

_logger = logging.getLogger(__name__)


class PaginationMode(StrEnum):
    NAVIGATION = "navigation"
    """Explicit page navigation; each fetch replaces the members."""
    ACCUMULATION = "accumulation"
    """Load-more scrolling; each fetch appends to the members."""


class PageState(StrEnum):
    NO_DATA = "no_data"
    HAS_MORE = "has_more"
    LAST_PAGE = "last_page"


class PageInfo(BaseModel):
    """Items and "has more" hint extracted from a paginated response body."""

    model_config = ConfigDict(frozen=True)

    items: list[dict[str, Any]] = Field(default_factory=list)
    has_more_pages: bool = False

    @classmethod
    def from_envelope(cls, body: Any, *, marker: str = DEFAULT_NEXT_PAGE_MARKER) -> PageInfo:
        """Read ``{"data": [...], "<marker>": str | None}`` (Laravel paginator shape)."""
        if not isinstance(body, Mapping):
            return cls()
        items = body.get("data")
        return cls(
            items=[item for item in items if isinstance(item, Mapping)] if isinstance(items, list) else [],
            has_more_pages=body.get(marker) is not None,
        )


@dataclass(slots=True)
class _Snapshot:
    current_page: int
    state: PageState


class Pagination:
    """Cursor + pagination hint for one collection.

    The minimum page is 1 in navigation mode and 0 in accumulation mode
    (a scrolling collection starts *before* the first page and ``more()``
    advances onto it).
    """

    def __init__(
        self,
        mode: PaginationMode = PaginationMode.NAVIGATION,
        *,
        page: int | None = None,
        page_parameter: str = DEFAULT_PAGE_PARAMETER,
        next_page_marker: str = DEFAULT_NEXT_PAGE_MARKER,
    ) -> None:
        self.mode = mode
        self.page_parameter = page_parameter
        self.next_page_marker = next_page_marker
        self.initial_page = self.min_page if page is None else max(page, self.min_page)
        self._current_page = self.initial_page
        self._state = PageState.NO_DATA
        self._pending: _Snapshot | None = None

    def __repr__(self) -> str:
        return f"Pagination(mode={self.mode}, page={self._current_page}, state={self._state})"

    @property
    def min_page(self) -> int:
        return 0 if self.mode == PaginationMode.ACCUMULATION else 1

    @property
    def current_page(self) -> int:
        return self._current_page

    @current_page.setter
    def current_page(self, value: int) -> None:
        self._current_page = max(int(value), self.min_page)

    @property
    def state(self) -> PageState:
        return self._state

    @property
    def has_more_pages(self) -> bool:
        return self._state == PageState.HAS_MORE

    @property
    def is_first_page(self) -> bool:
        return self._current_page <= max(self.min_page, 1)

    @property
    def is_last_page(self) -> bool:
        return not self.has_more_pages

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin(self, page: int | None = None, *, delta: int = 0) -> None:
        """Move the cursor ahead of a fetch, remembering where it was."""
        if self._pending is None:
            self._pending = _Snapshot(self._current_page, self._state)
        if page is not None:
            self.current_page = page
        else:
            self.current_page = self._current_page + delta
        _logger.debug("Page cursor moved to %d", self._current_page)

    def reset(self) -> None:
        self._current_page = self.initial_page if self.mode == PaginationMode.NAVIGATION else self.min_page
        self._state = PageState.NO_DATA
        self._pending = None

    def apply(self, info: PageInfo) -> None:
        """Record a successful response."""
        self._pending = None
        self._state = PageState.HAS_MORE if info.has_more_pages else PageState.LAST_PAGE

    def restore(self) -> None:
        """Undo the cursor move of a fetch that failed."""
        if self._pending is None:
            return
        _logger.debug("Restoring page cursor to %d after failed fetch", self._pending.current_page)
        self._current_page = self._pending.current_page
        self._state = self._pending.state
        self._pending = None

    def parse(self, body: Any) -> PageInfo:
        return PageInfo.from_envelope(body, marker=self.next_page_marker)

    def as_filter(self) -> dict[str, int]:
        return {self.page_parameter: self._current_page}
