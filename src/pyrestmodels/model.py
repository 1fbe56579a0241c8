"""Single-entity state with dirty tracking and REST lifecycle operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from pyrestmodels._transport import RestResponse, Transport
from pyrestmodels._values import clone, deep_merge, get_path, object_diff, set_path
from pyrestmodels.events import ModelEvent, Observer, ObserverRegistry
from pyrestmodels.requestable import Requestable
from pyrestmodels.routing import Route

if TYPE_CHECKING:
    from pyrestmodels.collection import Collection

_logger = logging.getLogger(__name__)

ModelValues = dict[str, Any]


class Model(Requestable):
    """One entity's current values, last-synced values and REST actions.

    Lifecycle::

        new -> synced <-> dirty -> deleted

    ``values`` is always ``defaults() ⊕ previous values ⊕ incoming values``
    (deep merge, later layers win). ``sync_values`` is the baseline the
    ``dirty`` flag compares against; it is refreshed by :meth:`sync`, which
    runs after every successful fetch or save.

    Example::

        class Todo(Model):
            def defaults(self):
                return {"id": None, "title": "", "completed": False}

        todo = Todo({"id": 1}, transport=transport)
        await todo.fetch()
        todo.set("title", "Hola")
        assert todo.dirty
    """

    key_name: ClassVar[str] = "id"
    patch_updates: ClassVar[bool] = False
    """Send only ``dirty_values`` with PATCH when updating an existing entity."""

    def __init__(
        self,
        values: Mapping[str, Any] | None = None,
        collections: Collection | Iterable[Collection] = (),
        *,
        transport: Transport | None = None,
    ) -> None:
        super().__init__(transport=transport)
        self._deleted = False
        self._observers = ObserverRegistry()
        self._values: ModelValues = {}
        self._sync_values: ModelValues = {}
        self.values = values or {}
        self.sync()
        self.add_to(collections)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values!r})"

    # ------------------------------------------------------------------
    # Observable
    # ------------------------------------------------------------------

    def observed_by(self, observer: Observer) -> bool:
        return observer in self._observers

    def add_observer(self, observer: Observer) -> None:
        self._observers.add(observer)

    def remove_observer(self, observer: Observer) -> None:
        self._observers.discard(observer)

    def fire(self, event: ModelEvent) -> None:
        self._observers.dispatch(event, self)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def defaults(self) -> ModelValues:
        """Values every new or cleared entity starts from."""
        return {self.key_name: None}

    @property
    def key(self) -> Any:
        return self._values.get(self.key_name)

    @property
    def deleted(self) -> bool:
        return self._deleted

    @property
    def exists(self) -> bool:
        """Whether the entity is known to the server (has a key and is not deleted)."""
        return not self._deleted and self.key is not None

    @property
    def values(self) -> ModelValues:
        return self._values

    @values.setter
    def values(self, values: Mapping[str, Any]) -> None:
        self._values = deep_merge(self.defaults(), self._values, values)

    @property
    def sync_values(self) -> ModelValues:
        return self._sync_values

    @property
    def dirty(self) -> bool:
        return self._values != self._sync_values

    @property
    def dirty_values(self) -> ModelValues:
        """The changed subtree of ``values`` relative to ``sync_values``."""
        return object_diff(self._values, self._sync_values)

    @property
    def save_action(self) -> str:
        if not self.exists:
            return "save"
        return "patch" if self.patch_updates else "update"

    @property
    def save_values(self) -> ModelValues:
        action = self.save_action
        values = self.dirty_values if action == "patch" else clone(self._values)
        return self.map_save_values(values, action)

    def map_save_values(self, values: ModelValues, action: str) -> ModelValues:
        """Adjust the payload sent by :meth:`save`. Identity by default."""
        return values

    def get(self, path: str, default: Any = None) -> Any:
        """Read a value by path (``"title"``, ``"author.name"``, ``"tags[0]"``)."""
        return get_path(self._values, path, default)

    def set(self, path: str, value: Any) -> None:
        set_path(self._values, path, value)

    def sync(self) -> Model:
        """Take the current values as the new clean baseline."""
        self._sync_values = deep_merge(self.defaults(), self._values)
        self.fire(ModelEvent.SYNC)
        return self

    def rollback(self) -> Model:
        """Discard local changes made since the last :meth:`sync`."""
        self._values = clone(self._sync_values)
        self.fire(ModelEvent.ROLLBACK)
        return self

    def clear(self) -> Model:
        """Reset values to exactly ``defaults()``; ``sync_values`` is kept."""
        self._values = deep_merge(self.defaults())
        self.fire(ModelEvent.CLEAR)
        return self

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def add_to(self, collections: Collection | Iterable[Collection]) -> None:
        """Append this model to each collection that does not already hold it."""
        for collection in _as_collections(collections):
            if not collection.contains(self):
                collection.add(self)

    def remove_from(self, collections: Collection | Iterable[Collection]) -> None:
        for collection in _as_collections(collections):
            collection.remove(self)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def default_routes(self) -> Mapping[str, Route | str]:
        return {
            "save": Route(),
            "fetch": Route(keyed=True),
            "patch": Route(keyed=True),
            "update": Route(keyed=True),
            "delete": Route(keyed=True),
        }

    # ------------------------------------------------------------------
    # REST actions
    # ------------------------------------------------------------------

    async def fetch(self) -> RestResponse:
        """Load the entity from the server and make it the clean baseline.

        On failure nothing is mutated and the error propagates.
        """
        response = await self.request("fetch")
        self.values = _as_values(response.data)
        self.sync()
        self.fire(ModelEvent.FETCHED)
        return response

    async def save(self) -> RestResponse:
        """Create, update or patch the entity depending on :attr:`save_action`.

        The response body is merged into ``values`` so server-assigned
        fields (e.g. a new key) are adopted. On a validation failure the
        local values are left untouched, ``validation_errors`` is populated
        and :class:`RestValidationError` propagates.
        """
        action = self.save_action
        _logger.debug("Saving %s via '%s'", type(self).__name__, action)
        response = await self.request(action, self.save_values)
        self._deleted = False
        self.values = _as_values(response.data)
        self.sync()
        self.fire(ModelEvent.SAVED)
        return response

    async def delete(self) -> RestResponse:
        """Delete the entity server-side.

        ``values`` stay readable afterwards; observing collections drop the
        model when they receive :attr:`ModelEvent.DELETED`.
        """
        response = await self.request("delete")
        self._deleted = True
        self.fire(ModelEvent.DELETED)
        return response


def _as_values(data: Any) -> Mapping[str, Any]:
    return data if isinstance(data, Mapping) else {}


def _as_collections(collections: Collection | Iterable[Collection]) -> list[Collection]:
    from pyrestmodels.collection import Collection

    if isinstance(collections, Collection):
        return [collections]
    return list(collections)
