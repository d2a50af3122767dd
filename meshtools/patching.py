"""Setting values inside nested JSON-like data by dotted paths."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Patch:
    """A value to be placed at a path of keys."""

    path: list[str] = field(default_factory=list)
    value: Any = None


def _split_path(elements: list[str]) -> list[str]:
    joined = ".".join(elements)
    if not joined:
        raise ValueError("path cannot be empty")
    keys: list[str] = []
    current: list[str] = []
    chars = iter(joined)
    for ch in chars:
        if ch == "\\":
            current.append(next(chars, ""))
        elif ch == ".":
            keys.append("".join(current))
            current = []
        elif ch in "*?":
            raise ValueError(f"wildcard characters are not allowed in path {joined!r}")
        else:
            current.append(ch)
    keys.append("".join(current))
    return keys


def _assign(node: Any, keys: list[str], value: Any) -> Any:
    key, rest = keys[0], keys[1:]
    if isinstance(node, list) and (key == "-1" or key.isdigit()):
        index = len(node) if key == "-1" else int(key)
        while len(node) < index:
            node.append(None)
        child = node[index] if index < len(node) else None
        new_value = _assign(child, rest, value) if rest else value
        if index < len(node):
            node[index] = new_value
        else:
            node.append(new_value)
        return node
    if not isinstance(node, dict):
        if key == "-1":
            return _assign([], keys, value)
        node = {}
    node[key] = _assign(node.get(key), rest, value) if rest else value
    return node


def apply_patches(data: dict[str, Any] | None, patches: list[Patch]) -> dict[str, Any]:
    """Return a copy of data with every patch applied in order.

    Path elements are joined with dots, so an element holding a dot is split
    unless the dot is escaped with a backslash. Numeric keys index lists and
    "-1" appends to them; missing levels are created as objects.

    Raises ValueError when data or a value cannot be represented as JSON or
    a path is empty or holds wildcards.
    """
    try:
        result = json.loads(json.dumps({} if data is None else data))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"error marshaling data: {exc}") from exc
    for patch in patches:
        keys = _split_path(patch.path)
        try:
            value = json.loads(json.dumps(patch.value))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"error applying patch: {exc}") from exc
        result = _assign(result, keys, value)
    return result