"""Helpers for user-supplied search terms."""
from __future__ import annotations

LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """
    Lower-cased ``%term%`` for a case-insensitive substring match.

    ``%`` and ``_`` inside ``term`` match literally when the LIKE clause is
    built with ``escape=LIKE_ESCAPE``.
    """
    escaped = term.lower().replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", r"\%").replace("_", r"\_")
    return f"%{escaped}%"
