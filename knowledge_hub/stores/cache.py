"""In-memory per-category cache and in-flight load tracking.

Handles:
- Category snapshots (QA + reading entries) stamped with fetch time
- Advisory staleness window
- In-flight markers (prevent duplicate fetches for one category)

Process-lifetime: nothing is evicted. The category set is fixed and small.
"""

from dataclasses import dataclass, replace
import time
from typing import Callable, Iterable

from knowledge_hub.schemas.items import Category, QAEntry, ReadingEntry

# Staleness window (in seconds)
TTL_CATEGORY = 300  # 5 minutes


@dataclass(frozen=True)
class CacheEntry:
    """Snapshot of one category as last returned by the store."""

    category: Category
    qa: tuple[QAEntry, ...]
    reading: tuple[ReadingEntry, ...]
    fetched_at: float


class CategoryCache:
    """Category -> CacheEntry map.

    Entries are immutable, so `get` hands out the stored snapshot itself;
    every change builds a new CacheEntry.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[Category, CacheEntry] = {}

    def get(self, category: Category) -> CacheEntry | None:
        return self._entries.get(category)

    def put(
        self,
        category: Category,
        qa: Iterable[QAEntry],
        reading: Iterable[ReadingEntry],
    ) -> CacheEntry:
        """Replace the category wholesale and stamp it with the current time."""
        entry = CacheEntry(
            category=category,
            qa=tuple(qa),
            reading=tuple(reading),
            fetched_at=self._clock(),
        )
        self._entries[category] = entry
        return entry

    def is_stale(self, category: Category, window: float = TTL_CATEGORY) -> bool:
        entry = self._entries.get(category)
        if entry is None:
            return True
        return self._clock() - entry.fetched_at > window

    def snapshot(self) -> dict[Category, CacheEntry]:
        return dict(self._entries)

    # ============================================================
    # Patches after confirmed mutations (fetched_at is kept)
    # ============================================================

    def _patch(self, category: Category, **changes: object) -> CacheEntry | None:
        entry = self._entries.get(category)
        if entry is None:
            return None
        patched = replace(entry, **changes)
        self._entries[category] = patched
        return patched

    def prepend_qa(self, category: Category, item: QAEntry) -> CacheEntry | None:
        entry = self._entries.get(category)
        if entry is None:
            return None
        return self._patch(category, qa=(item, *entry.qa))

    def replace_qa(self, category: Category, item: QAEntry) -> CacheEntry | None:
        entry = self._entries.get(category)
        if entry is None:
            return None
        return self._patch(
            category, qa=tuple(item if q.id == item.id else q for q in entry.qa)
        )

    def remove_qa(self, category: Category, item_id: str) -> CacheEntry | None:
        entry = self._entries.get(category)
        if entry is None:
            return None
        return self._patch(category, qa=tuple(q for q in entry.qa if q.id != item_id))

    def set_qa_order(self, category: Category, items: Iterable[QAEntry]) -> CacheEntry | None:
        return self._patch(category, qa=tuple(items))

    def prepend_reading(self, category: Category, item: ReadingEntry) -> CacheEntry | None:
        entry = self._entries.get(category)
        if entry is None:
            return None
        return self._patch(category, reading=(item, *entry.reading))

    def replace_reading(self, category: Category, item: ReadingEntry) -> CacheEntry | None:
        entry = self._entries.get(category)
        if entry is None:
            return None
        return self._patch(
            category, reading=tuple(item if r.id == item.id else r for r in entry.reading)
        )

    def remove_reading(self, category: Category, item_id: str) -> CacheEntry | None:
        entry = self._entries.get(category)
        if entry is None:
            return None
        return self._patch(
            category, reading=tuple(r for r in entry.reading if r.id != item_id)
        )


class LoadingCoordinator:
    """Tracks categories with a fetch in flight.

    `begin` checks and marks without awaiting, so on a single event loop a
    re-entrant caller always sees the first caller's marker.
    """

    def __init__(self) -> None:
        self._in_flight: set[Category] = set()

    def begin(self, category: Category) -> bool:
        """Mark category as loading.

        Returns:
            True if the caller should fetch, False if a fetch is already running.
        """
        if category in self._in_flight:
            return False
        self._in_flight.add(category)
        return True

    def end(self, category: Category) -> None:
        self._in_flight.discard(category)

    def is_loading(self, category: Category) -> bool:
        return category in self._in_flight
