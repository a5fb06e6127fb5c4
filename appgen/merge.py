"""Merge resource level and action level header/response collections."""

from __future__ import annotations

from typing import Mapping, Optional, TypeVar

V = TypeVar("V")


def merge(base: Optional[Mapping[str, V]], override: Optional[Mapping[str, V]]) -> dict[str, V]:
    """Merge two mappings, entries of override win on key collision.

    Neither argument is modified. An empty or missing side yields the other
    side as is.
    """
    if not base:
        return dict(override or {})
    if not override:
        return dict(base)
    merged = dict(base)
    merged.update(override)
    return merged
