"""Shared test resources: a jsonplaceholder-like in-memory backend and todo resources."""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pyrestmodels import (
    Collection,
    Model,
    PaginatedCollection,
    RestResponse,
    ScrollableCollection,
)
from pyrestmodels._transport import http_error

PER_PAGE = 3

MODEL_1 = {"id": 1, "userId": 1, "title": "delectus aut autem", "completed": False}


def _seed() -> list[dict[str, Any]]:
    todos = [dict(MODEL_1)]
    for todo_id in range(2, 11):
        todos.append(
            {
                "id": todo_id,
                "userId": 1 if todo_id <= 5 else 3,
                "title": f"todo {todo_id}",
                "completed": todo_id % 2 == 0,
            }
        )
    return todos


@dataclass
class Call:
    method: str
    url: str
    json_body: Any = None
    params: dict[str, Any] | None = None


@dataclass
class FakeBackend:
    """Implements the ``Transport`` protocol against an in-memory todo list.

    ``GET /todos`` answers with a bare list, or with a paginator envelope
    when a ``page`` parameter is present.
    """

    todos: list[dict[str, Any]] = field(default_factory=_seed)
    calls: list[Call] = field(default_factory=list)
    fail_next: int | None = None
    gate: asyncio.Event | None = None
    next_id: int = 201

    def _find(self, todo_id: int) -> dict[str, Any] | None:
        for todo in self.todos:
            if todo["id"] == todo_id:
                return todo
        return None

    @staticmethod
    def _invalid(body: Mapping[str, Any]) -> bool:
        return "title" in body and not body["title"]

    def _fail(self, status: int, method: str, url: str, data: Any = None) -> None:
        raise http_error(f"HTTP {status} from {method} {url}", status_code=status, data=data, method=method, endpoint=url)

    async def send(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> RestResponse:
        self.calls.append(Call(method, url, copy.deepcopy(json_body), dict(params) if params is not None else None))
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)

        if self.fail_next is not None:
            status, self.fail_next = self.fail_next, None
            self._fail(status, method, url, {"message": "forced failure"})

        data = self._route(method, url, json_body or {}, dict(params or {}))
        return RestResponse(data=data, status=200, method=method, url=url)

    def _route(self, method: str, url: str, body: dict[str, Any], params: dict[str, Any]) -> Any:
        parts = [part for part in url.split("/") if part]
        if not parts or parts[0] != "todos":
            self._fail(404, method, url)

        if len(parts) == 1:
            if method == "GET":
                return self._list(params)
            if method == "POST" and "todos" in body:
                return self._batch(method, url, body["todos"])
            if method == "POST":
                if self._invalid(body):
                    self._fail(422, method, url, {"errors": {"title": ["The title field is required."]}})
                created = {**body, "id": self.next_id}
                self.next_id += 1
                self.todos.append(created)
                return dict(created)
            self._fail(405, method, url)

        existing = self._find(int(parts[1]))
        if existing is None:
            self._fail(404, method, url)
        assert existing is not None
        if method == "GET":
            return dict(existing)
        if method in ("PUT", "PATCH"):
            if self._invalid(body):
                self._fail(422, method, url, {"errors": {"title": ["The title field is required."]}})
            if method == "PUT":
                existing.clear()
            existing.update(body)
            existing["id"] = int(parts[1])
            return dict(existing)
        if method == "DELETE":
            self.todos.remove(existing)
            return {}
        self._fail(405, method, url)

    def _list(self, params: dict[str, Any]) -> Any:
        items = [dict(todo) for todo in self.todos]
        for key in ("userId", "completed"):
            if key in params:
                items = [item for item in items if item.get(key) == params[key]]
        if "page" not in params:
            return items
        page = int(params["page"])
        start = (page - 1) * PER_PAGE
        chunk = items[start : start + PER_PAGE]
        has_more = start + PER_PAGE < len(items)
        return {
            "data": chunk,
            "current_page": page,
            "next_page_url": f"/todos?page={page + 1}" if has_more else None,
        }

    def _batch(self, method: str, url: str, items: list[dict[str, Any]]) -> Any:
        errors = {
            f"todos.{index}.title": ["The title field is required."]
            for index, item in enumerate(items)
            if self._invalid(item)
        }
        if errors:
            self._fail(422, method, url, {"errors": errors})
        saved = []
        for item in items:
            if item.get("id") is None:
                item = {**item, "id": self.next_id}
                self.next_id += 1
            saved.append(item)
        return saved

    def page(self, number: int, **filters: Any) -> list[dict[str, Any]]:
        """Expected values for a page, for assertions."""
        return self._list({**filters, "page": number})["data"]


class Todo(Model):
    def defaults(self) -> dict[str, Any]:
        return {"id": None, "userId": None, "title": "", "completed": False}


class PatchedTodo(Todo):
    patch_updates = True

    def name(self) -> str:
        return "todos"


class Todos(Collection):
    model_class = Todo


class PaginatedTodos(PaginatedCollection):
    model_class = Todo

    def name(self) -> str:
        return "todos"


class ScrollableTodos(ScrollableCollection):
    model_class = Todo

    def name(self) -> str:
        return "todos"
