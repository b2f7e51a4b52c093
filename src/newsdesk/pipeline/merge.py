from __future__ import annotations

from typing import Iterable

from newsdesk.core.events import RawItem


def dedup_key(item: RawItem) -> str:
    """Trimmed link, else trimmed title. Empty means the item is unaddressable."""
    return (item.link or "").strip() or (item.title or "").strip()


def merge(*batches: Iterable[RawItem]) -> list[RawItem]:
    """Concatenate adapter outputs in arrival order and drop duplicates.

    First occurrence wins. Items with an empty dedup key are discarded.
    """
    seen: set[str] = set()
    merged: list[RawItem] = []
    for batch in batches:
        for item in batch:
            key = dedup_key(item)
            if not key or key in seen:
                continue
            seen.add(key)
            merged.append(item)
    return merged
