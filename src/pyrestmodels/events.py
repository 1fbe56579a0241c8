"""Lifecycle events and the observer protocol between models and collections.

Models never hold strong references to the collections observing them: the
registry stores weak references, so a collection that goes out of scope
simply stops receiving notifications.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Iterator
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

_logger = logging.getLogger(__name__)


class ModelEvent(StrEnum):
    SYNC = "model_sync"
    CLEAR = "model_clear"
    SAVED = "model_saved"
    FETCHED = "model_fetched"
    DELETED = "model_deleted"
    ROLLBACK = "model_rollback"


@runtime_checkable
class Observer(Protocol):
    def notify(self, event: ModelEvent, source: Any) -> None:
        ...


class Observable(Protocol):
    def add_observer(self, observer: Observer) -> None:
        ...

    def remove_observer(self, observer: Observer) -> None:
        ...

    def observed_by(self, observer: Observer) -> bool:
        ...

    def fire(self, event: ModelEvent) -> None:
        ...


class ObserverRegistry:
    """Ordered set of weakly-referenced observers.

    Registration is idempotent and identity based; notifications are
    delivered synchronously in registration order.
    """

    __slots__ = ("_refs",)

    def __init__(self) -> None:
        self._refs: list[weakref.ref[Observer]] = []

    def __contains__(self, observer: object) -> bool:
        return any(ref() is observer for ref in self._refs)

    def __iter__(self) -> Iterator[Observer]:
        for ref in list(self._refs):
            observer = ref()
            if observer is not None:
                yield observer

    def __len__(self) -> int:
        self._prune()
        return len(self._refs)

    def add(self, observer: Observer) -> None:
        if observer in self:
            return
        self._prune()
        self._refs.append(weakref.ref(observer))

    def discard(self, observer: Observer) -> None:
        self._refs = [ref for ref in self._refs if ref() is not None and ref() is not observer]

    def dispatch(self, event: ModelEvent, source: Any) -> None:
        # Snapshot first: observers commonly deregister themselves while handling.
        observers = list(self)
        _logger.debug("Dispatching %s from %r to %d observer(s)", event, source, len(observers))
        for observer in observers:
            observer.notify(event, source)

    def _prune(self) -> None:
        self._refs = [ref for ref in self._refs if ref() is not None]
