"""Structural helpers over plain entity values (dicts, lists, scalars).

Entity values are JSON-like trees. Everything here works on deep copies or
returns fresh structures so callers never share nested containers.
"""

from __future__ import annotations

import copy
import json
import re
from collections.abc import Mapping
from typing import Any

_MISSING = object()
_PATH_TOKEN = re.compile(r"[^.\[\]]+|\[(\d+)\]")


def clone(value: Any) -> Any:
    return copy.deepcopy(value)


def deep_merge(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge *layers* left to right into a new dict.

    Later layers win on key collision. When both sides hold a mapping the
    merge recurses; any other value (lists included) is replaced wholesale.
    """
    result: dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        _merge_into(result, layer)
    return result


def _merge_into(target: dict[str, Any], incoming: Mapping[str, Any]) -> None:
    for key, value in incoming.items():
        existing = target.get(key)
        if isinstance(value, Mapping) and isinstance(existing, dict):
            _merge_into(existing, value)
        elif isinstance(value, Mapping):
            target[key] = deep_merge(value)
        else:
            target[key] = copy.deepcopy(value)


def object_diff(values: Mapping[str, Any], base: Mapping[str, Any]) -> dict[str, Any]:
    """Return the part of *values* that differs from *base*.

    Nested mappings present on both sides are diffed recursively and only
    the changed subtree is kept. Keys removed from *values* are not
    reported.
    """
    diff: dict[str, Any] = {}
    for key, value in values.items():
        other = base.get(key, _MISSING)
        if other is not _MISSING and value == other:
            continue
        if isinstance(value, Mapping) and isinstance(other, Mapping):
            diff[key] = object_diff(value, other)
        else:
            diff[key] = copy.deepcopy(value)
    return diff


def parse_path(path: str) -> list[str | int]:
    """Split ``"posts[0].comment"`` into ``["posts", 0, "comment"]``."""
    tokens: list[str | int] = []
    for match in _PATH_TOKEN.finditer(path):
        index = match.group(1)
        tokens.append(int(index) if index is not None else match.group(0))
    return tokens


def get_path(values: Any, path: str, default: Any = None) -> Any:
    current = values
    for token in parse_path(path):
        if isinstance(token, int) and isinstance(current, list):
            if token >= len(current):
                return default
            current = current[token]
        elif isinstance(current, Mapping):
            key = str(token)
            if key not in current:
                return default
            current = current[key]
        else:
            return default
    return current


def set_path(values: dict[str, Any], path: str, value: Any) -> None:
    """Write *value* at *path*, creating intermediate dicts/lists as needed."""
    tokens = parse_path(path)
    if not tokens:
        raise ValueError("path must not be empty")

    current: Any = values
    for token, next_token in zip(tokens, tokens[1:]):
        child = _read_slot(current, token)
        if not isinstance(child, (dict, list)):
            child = [] if isinstance(next_token, int) else {}
            _write_slot(current, token, child)
        current = child
    _write_slot(current, tokens[-1], value)


def _read_slot(container: Any, token: str | int) -> Any:
    if isinstance(container, list):
        return container[token] if isinstance(token, int) and token < len(container) else None
    return container.get(str(token))


def _write_slot(container: Any, token: str | int, value: Any) -> None:
    if isinstance(container, list) and isinstance(token, int):
        if token >= len(container):
            container.extend([None] * (token + 1 - len(container)))
        container[token] = value
    else:
        container[str(token)] = value


def is_match(values: Any, pattern: Any) -> bool:
    """Partial structural match: every key of *pattern* equals the one in *values*.

    Nested mappings are matched partially as well; other values must be equal.
    """
    if isinstance(pattern, Mapping):
        if not isinstance(values, Mapping):
            return False
        for key, expected in pattern.items():
            if key not in values:
                return False
            if not is_match(values[key], expected):
                return False
        return True
    return bool(values == pattern)


def sort_key(value: Any) -> tuple[int, Any]:
    """Order key for one value path: numbers, then strings, then anything else, then None.

    Values of the same kind compare naturally; other values compare by
    their JSON text so mixed-type paths never raise.
    """
    if value is None:
        return (3, 0)
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, json.dumps(value, sort_keys=True, default=str))
