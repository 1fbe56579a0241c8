"""Structured route descriptors.

A :class:`Route` describes *which* resource path an action targets instead
of carrying a string template with placeholders. It is resolved at call
time against the requesting instance, so a model's key is read when the
request is made rather than when routes are declared.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol

from pyrestmodels.exceptions import RestRouteError

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class RouteOwner(Protocol):
    def name(self) -> str:
        ...

    @property
    def key(self) -> Any:
        ...


def _pluralize(word: str) -> str:
    lowered = word.lower()
    if lowered.endswith(("ss", "sh", "ch", "x", "z")):
        return word + "es"
    if lowered.endswith("s"):
        return word
    if lowered.endswith("y") and lowered[-2:-1] not in {"a", "e", "i", "o", "u", ""}:
        return word[:-1] + "ies"
    return word + "s"


def resource_name(class_name: str) -> str:
    """Derive the REST resource segment for a class name.

    ``"TodoItem"`` -> ``"todo-items"``, ``"Category"`` -> ``"categories"``.
    Only the last word is pluralized; irregular plurals need an explicit
    ``name()`` override on the resource.
    """
    words = _CAMEL_BOUNDARY.sub("-", class_name).split("-")
    words[-1] = _pluralize(words[-1])
    return "-".join(words).lower()


@dataclass(frozen=True, slots=True)
class Route:
    """Route descriptor resolved against the requesting instance.

    Parameters
    ----------
    keyed : bool
        Append the owner's primary key as the last path segment.
    resource : str or None
        Resource segment; defaults to the owner's ``name()``.
    suffix : str
        Literal path appended after the key (e.g. ``"/archive"``).
    """

    keyed: bool = False
    resource: str | None = None
    suffix: str = ""

    def resolve(self, owner: RouteOwner, *, action: str = "") -> str:
        path = f"/{self.resource or owner.name()}"
        if self.keyed:
            key = owner.key
            if key is None:
                raise RestRouteError(
                    f"The route for the '{action}' action needs a key but {type(owner).__name__} has none",
                    action=action,
                )
            path = f"{path}/{key}"
        return path + self.suffix


def resolve_route(route: Route | str, owner: RouteOwner, *, action: str = "") -> str:
    """Resolve a route descriptor; plain strings are literal paths."""
    if isinstance(route, Route):
        return route.resolve(owner, action=action)
    return route
