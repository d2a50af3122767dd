"""Turning identifiers such as CamelCase names into readable titles."""

from __future__ import annotations

import re

_TEMPLATE_EXPRESSION = re.compile(r"\{\{.+\}\}")
_DOCUMENT_SEPARATOR = "\n---\n"

_DICTIONARY = {
    "MeshSync": "MeshSync",
    "additionalProperties": "additionalProperties",
    "caBundle": "CA Bundle",
    "mtls": "mTLS",
    "mTLS": "mTLS",
}


def _is_big(ch: str) -> bool:
    return "A" <= ch <= "Z"


def _is_small(ch: str) -> bool:
    return "a" <= ch <= "z"


def _is_exception(text: str, prev: int, curr: int, nxt: int) -> bool:
    last = len(text) - 1
    if (
        nxt != last
        and _is_big(text[curr])
        and _is_big(text[prev])
        and _is_small(text[nxt])
        and _is_big(text[nxt + 1])
    ):
        return True
    if nxt == last and _is_small(text[nxt]):
        return True
    return (
        _is_big(text[curr])
        and _is_small(text[nxt])
        and nxt != last
        and _is_big(text[nxt + 1])
    )


def _render(text: str, i: int) -> str:
    ch = text[i]
    if _is_exception(text, i - 1, i, i + 1):
        return ch
    prev, nxt = text[i - 1], text[i + 1]
    if _is_small(ch) and _is_big(nxt):
        return ch + " "
    if _is_big(ch) and _is_big(prev) and _is_small(nxt):
        return " " + ch
    return ch


def format_to_readable_string(text: str) -> str:
    """Split a CamelCase identifier into space-separated words.

    A space goes between a lower-case and an upper-case letter and before the
    last capital of an acronym followed by lower case; plural acronyms such
    as "IPs" stay together. A few known words are replaced from a dictionary.
    """
    if not text:
        return ""
    if text in _DICTIONARY:
        return _DICTIONARY[text]
    middle = "".join(_render(text, i) for i in range(1, len(text) - 1))
    return " ".join((text[0] + middle + text[-1]).split())


def deformat_readable_string(text: str) -> str:
    """Undo format_to_readable_string by removing spaces or reversing the dictionary."""
    for original, readable in _DICTIONARY.items():
        if readable == text:
            return original
    return text.replace(" ", "")


def remove_helm_templating_from_crd(crd_yaml: str) -> str:
    """Replace helm template expressions with "meshery" so the YAML parses.

    Empty documents between separators are dropped.
    """
    documents = [
        _TEMPLATE_EXPRESSION.sub("meshery", document)
        for document in crd_yaml.split(_DOCUMENT_SEPARATOR)
        if document
    ]
    return _DOCUMENT_SEPARATOR.join(documents)