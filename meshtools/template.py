"""Merging of data into templates with HTML-escaped field substitution."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_ACTION = re.compile(r"\{\{(-\s)?(.*?)(\s-)?\}\}", re.S)
_FIELD_CHAIN = re.compile(r"(?:\.[A-Za-z_][A-Za-z0-9_]*)+")
_HTML_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&#34;",
        "'": "&#39;",
        "+": "&#43;",
        "\0": "\ufffd",
    }
)


def _lookup(data: Any, names: list[str]) -> Any:
    value = data
    for name in names:
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(name)
            continue
        try:
            value = getattr(value, name)
        except AttributeError:
            raise ValueError(f"can't evaluate field {name}") from None
    return value


def _format(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _evaluate(body: str, data: Any) -> str:
    if body.startswith("/*") and body.endswith("*/"):
        return ""
    if body == ".":
        value = data
    elif _FIELD_CHAIN.fullmatch(body):
        value = _lookup(data, body[1:].split("."))
    elif not body:
        raise ValueError("missing value for command")
    else:
        raise ValueError(f"unsupported template action: {body!r}")
    return _format(value).translate(_HTML_ESCAPES)


def merge_to_template(template: bytes | str, data: Any) -> bytes:
    """Render template with data and return the result as bytes.

    Supports field references such as ``{{.name}}`` or ``{{.a.b}}``,
    ``{{.}}``, comments and whitespace-trimming markers. Missing map keys
    render as empty strings; values are HTML-escaped.

    Raises ValueError for malformed or unsupported actions.
    """
    text = template.decode("utf-8") if isinstance(template, (bytes, bytearray)) else template
    pieces: list[str] = []
    position = 0
    trim_next = False
    for match in _ACTION.finditer(text):
        literal = text[position:match.start()]
        if trim_next:
            literal = literal.lstrip()
        if match.group(1):
            literal = literal.rstrip()
        pieces.append(literal)
        pieces.append(_evaluate(match.group(2).strip(), data))
        trim_next = bool(match.group(3))
        position = match.end()
    tail = text[position:]
    if "{{" in tail:
        raise ValueError("unclosed action in template")
    pieces.append(tail.lstrip() if trim_next else tail)
    return "".join(pieces).encode("utf-8")