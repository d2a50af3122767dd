"""Sorting of version-like dotted strings."""

from __future__ import annotations

from collections.abc import Iterable
from functools import cmp_to_key

_KEEP = frozenset("0123456789.")
_PAD = "3"


def _cleanup(text: str) -> str:
    if text.startswith("stable"):
        text = text[len("stable"):] + "stable"
    for word, replacement in (
        ("alpha", ".0"),
        ("beta", ".1"),
        ("rc", ".2"),
        ("stable", ".4"),
    ):
        text = text.replace(word, replacement)
    return "".join(ch for ch in text if ch in _KEEP)


def _parts(text: str) -> list[str]:
    return _cleanup(text).split(".")


def _to_int(part: str) -> int:
    return int(part) if part else 0


def _less(a: str, b: str) -> bool:
    left, right = _parts(a), _parts(b)
    width = max(len(left), len(right))
    left += [_PAD] * (width - len(left))
    right += [_PAD] * (width - len(right))
    for p, q in zip(left, right):
        p_val, q_val = _to_int(p), _to_int(q)
        if p_val != q_val:
            return p_val < q_val
    return False


def _compare(a: str, b: str) -> int:
    if _less(a, b):
        return -1
    if _less(b, a):
        return 1
    return 0


def sort_dotted_strings_by_digits(strings: Iterable[str]) -> list[str]:
    """Return the version-like strings sorted by their numeric parts.

    Only digits and the markers alpha, beta, rc and stable are taken into
    account; for the same version, stable sorts after pre-releases.
    """
    return sorted(strings, key=cmp_to_key(_compare))