"""Free-text answer normalization."""

from __future__ import annotations

import re

__all__ = ["normalize"]

_APOSTROPHES = re.compile(r"['‘’`]")
_DISALLOWED = re.compile(r"[^a-z0-9\s.\-]")
_WHITESPACE = re.compile(r"\s+")


def normalize(raw: object | None) -> str:
    """Canonicalize ``raw`` for tolerant answer comparison.

    ``None`` becomes the empty string. Otherwise the text is trimmed and
    lowercased, apostrophes are dropped (not replaced), every character other
    than ``a-z``, ``0-9``, whitespace, ``.`` and ``-`` is removed, and
    whitespace runs collapse to a single space. Characters removed at the
    edges can expose whitespace, so the result is trimmed once more; this
    keeps ``normalize`` idempotent.

    >>> normalize("  It's a Test!! ")
    'its a test'
    """

    text = "" if raw is None else str(raw)
    text = text.strip().lower()
    text = _APOSTROPHES.sub("", text)
    text = _DISALLOWED.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()
