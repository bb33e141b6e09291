"""Helpers shared by list endpoints."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from neko_blog.core.settings import settings

T = TypeVar("T")


def clamp_length(length: int | None) -> int:
    """Return the page size to use; missing or oversized values fall back to the cap."""
    cap = settings.list_page_max
    if length is None or length <= 0:
        return cap
    return min(length, cap)


def most_recent_first(
    items: Sequence[T], length: int | None = None, after: T | None = None
) -> list[T]:
    """Reverse an oldest-first sequence and keep at most ``length`` items.

    ``after`` is the last item of the previous page; the page starts right
    behind it. An ``after`` that is no longer in the list yields an empty page.
    """
    ordered = list(reversed(items))
    if after is not None:
        try:
            ordered = ordered[ordered.index(after) + 1 :]
        except ValueError:
            return []
    return ordered[: clamp_length(length)]
