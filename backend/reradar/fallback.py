"""
fallback.py
~~~~~~~~~~~
Pick the first non-empty candidate for a display field.

Nest calls to build a chain::

    first_non_empty(full_name, first_non_empty(code, first_non_empty(kind, "N/A")))
"""

from __future__ import annotations

from .constants import NOT_AVAILABLE, ROUTE_SEPARATOR


def first_non_empty(value: str | None, fallback: str) -> str:
    """Return *value* unless it is ``None`` or ``""``, else *fallback*."""
    if value:
        return value
    return fallback


def format_route(origin: str | None, destination: str | None) -> str:
    """``"ATL->JFK"``; a missing end shows as ``N/A``."""
    return (
        first_non_empty(origin, NOT_AVAILABLE)
        + ROUTE_SEPARATOR
        + first_non_empty(destination, NOT_AVAILABLE)
    )


__all__ = ["first_non_empty", "format_route"]
