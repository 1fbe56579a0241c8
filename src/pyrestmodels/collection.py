"""Ordered, observer-registered sets of models with list-level REST actions."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, ClassVar

from pyrestmodels._transport import RestResponse, Transport
from pyrestmodels._values import is_match, sort_key
from pyrestmodels.events import ModelEvent
from pyrestmodels.exceptions import RestConfigError, RestValidationError
from pyrestmodels.model import Model, ModelValues
from pyrestmodels.requestable import Requestable
from pyrestmodels.routing import Route

_logger = logging.getLogger(__name__)

RequestFilters = dict[str, Any]
ModelLike = Model | Mapping[str, Any]


class Collection(Requestable):
    """An ordered view over models of a single resource type.

    Membership is append-only: adding a model whose key is already present
    keeps both entries. Every member has the collection registered as an
    observer, and a member that is deleted server-side removes itself from
    every collection holding it.

    Lookups accept either a :class:`Model` (matched by identity) or a mapping
    (partial structural match against each member's ``values``).
    """

    model_class: ClassVar[type[Model] | None] = None
    """Model type used to wrap raw values added to or fetched into the collection."""

    def __init__(
        self,
        models: ModelLike | Iterable[ModelLike] = (),
        *,
        transport: Transport | None = None,
    ) -> None:
        super().__init__(transport=transport)
        self._models: list[Model] = []
        self._static_filters: RequestFilters = {}
        self.add(models)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(count={len(self._models)})"

    def __iter__(self) -> Iterator[Model]:
        return iter(list(self._models))

    def __len__(self) -> int:
        return len(self._models)

    # ------------------------------------------------------------------
    # Observer
    # ------------------------------------------------------------------

    def notify(self, event: ModelEvent, source: Any) -> None:
        if event == ModelEvent.DELETED and isinstance(source, Model):
            _logger.debug("%s dropping deleted %r", type(self).__name__, source)
            self._detach(source)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def models(self) -> list[Model]:
        return self._models

    @property
    def static_filters(self) -> RequestFilters:
        """Filters merged into every :meth:`fetch` (call-site filters win)."""
        return self._static_filters

    @static_filters.setter
    def static_filters(self, filters: Mapping[str, Any]) -> None:
        self._static_filters = dict(filters)

    @property
    def dirty_models(self) -> list[Model]:
        return [model for model in self._models if model.dirty]

    def to_array(self) -> list[ModelValues]:
        return [model.values for model in self._models]

    def count(self) -> int:
        return len(self._models)

    def empty(self) -> bool:
        return not self._models

    def make_model(self, values: Mapping[str, Any]) -> Model:
        """Wrap raw *values* in this collection's model type."""
        if self.model_class is None:
            raise RestConfigError(f"{type(self).__name__} must define model_class")
        return self.model_class(values, transport=self._transport)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def add(self, models: ModelLike | Iterable[ModelLike]) -> None:
        """Append models (or raw values, wrapped via :meth:`make_model`)."""
        for item in _as_items(models):
            model = item if isinstance(item, Model) else self.make_model(item)
            self._models.append(model)
            model.add_observer(self)

    def remove(self, models: ModelLike | Iterable[ModelLike]) -> None:
        """Remove every member matching each given model or filter."""
        for item in _as_items(models):
            removed = [model for model in self._models if _matches(model, item)]
            if not removed:
                continue
            self._models = [model for model in self._models if not _matches(model, item)]
            for model in removed:
                model.remove_observer(self)

    def clear(self) -> None:
        """Drop every member and deregister from each of them."""
        members, self._models = self._models, []
        for model in members:
            model.remove_observer(self)

    def _detach(self, model: Model) -> None:
        self._models = [member for member in self._models if member is not model]
        model.remove_observer(self)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def find_index(self, search: ModelLike) -> int:
        for index, model in enumerate(self._models):
            if _matches(model, search):
                return index
        return -1

    def find(self, search: ModelLike) -> Model | None:
        index = self.find_index(search)
        return self._models[index] if index >= 0 else None

    def filter(self, search: ModelLike) -> list[Model]:
        return [model for model in self._models if _matches(model, search)]

    def contains(self, search: ModelLike) -> bool:
        return self.find_index(search) >= 0

    def sort(self, by: str | Sequence[str], descending: bool = False) -> None:
        """Stable sort on one or more value paths."""
        paths = [by] if isinstance(by, str) else list(by)
        self._models = sorted(
            self._models,
            key=lambda model: tuple(sort_key(model.get(path)) for path in paths),
            reverse=descending,
        )

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def default_routes(self) -> Mapping[str, Route | str]:
        return {"fetch": Route(), "save": Route()}

    # ------------------------------------------------------------------
    # Fetch hooks
    # ------------------------------------------------------------------

    def merge_filters(self, filters: Mapping[str, Any]) -> RequestFilters:
        return {**self._static_filters, **filters}

    def before_fetch(self, filters: RequestFilters) -> None:
        """Called with the merged filters right before the request is sent."""

    def fetched(self, response: RestResponse) -> None:
        """Called once a fetch succeeds, before items are added.

        Clears the membership so a fetch replaces rather than merges.
        """
        self.clear()

    def get_items(self, response: RestResponse) -> list[Mapping[str, Any]]:
        """Extract the list of raw entities from a fetch response."""
        data = response.data
        return list(data) if isinstance(data, list) else []

    # ------------------------------------------------------------------
    # REST actions
    # ------------------------------------------------------------------

    async def fetch(self, filters: Mapping[str, Any] | None = None) -> RestResponse:
        """Fetch the list, replacing current members with the results."""
        merged = self.merge_filters(filters or {})
        self.before_fetch(merged)
        response = await self.request("fetch", merged)
        self.fetched(response)
        self.add([self.make_model(item) for item in self.get_items(response)])
        _logger.debug("%s fetched, %d member(s)", type(self).__name__, len(self._models))
        return response

    async def save(self) -> RestResponse:
        """Batch-save every dirty member.

        The payload is ``{name(): [save_values, ...]}``. On success the
        membership is replaced by the models returned by the server. On a
        validation failure the flat ``"<name>.<index>.<field>"`` error keys
        are distributed back onto the dirty models, by their position in
        the batch, before the error propagates.
        """
        dirty = self.dirty_models
        payload = {self.name(): [model.save_values for model in dirty]}
        try:
            response = await self.request("save", payload)
        except RestValidationError as exc:
            self._distribute_validation_errors(dirty, exc.errors)
            raise
        self.clear()
        data = response.data
        self.add(list(data) if isinstance(data, list) else [])
        return response

    def _distribute_validation_errors(self, dirty: list[Model], errors: Mapping[str, Any]) -> None:
        name = self.name()
        for index, model in enumerate(dirty):
            prefix = f"{name}.{index}."
            model.validation_errors = {
                key[len(prefix):]: messages for key, messages in errors.items() if key.startswith(prefix)
            }


def _as_items(models: ModelLike | Iterable[ModelLike]) -> list[ModelLike]:
    if isinstance(models, (Model, Mapping)):
        return [models]
    return list(models)


def _matches(model: Model, search: ModelLike) -> bool:
    if isinstance(search, Model):
        return model is search
    return is_match(model.values, search)

