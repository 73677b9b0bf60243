"""Shared test fixtures: an in-memory item store with call counters."""

import asyncio
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from knowledge_hub.main import app
from knowledge_hub.schemas import (
    CATEGORIES,
    Category,
    LinkSummary,
    QAEntry,
    ReadingEntry,
    ReadingKind,
)
from knowledge_hub.services.item_client import ItemStoreError

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_qa(item_id: str, category: Category, title: str = "", content: str = "", minutes: int = 0) -> QAEntry:
    return QAEntry(
        id=item_id,
        title=title or f"Question {item_id}",
        content=content or f"Answer {item_id}",
        category=category,
        created_at=BASE_TIME - timedelta(minutes=minutes),
    )


def make_reading(
    item_id: str,
    category: Category,
    text: str = "",
    kind: ReadingKind = ReadingKind.REQUIRED,
) -> ReadingEntry:
    return ReadingEntry(
        id=item_id,
        text=text or f"Reading {item_id}",
        kind=kind,
        category=category,
        created_at=BASE_TIME,
    )


class FakeItemStore:
    """Stand-in for ItemStoreClient.

    `gate` (when set) blocks list calls until released; `fail` names
    operations that raise ItemStoreError.
    """

    def __init__(self, *, available: bool = True):
        self.available = available
        self.qa: dict[Category, list[QAEntry]] = {c: [] for c in CATEGORIES}
        self.reading: dict[Category, list[ReadingEntry]] = {c: [] for c in CATEGORIES}
        self.calls: Counter[str] = Counter()
        self.gate: asyncio.Event | None = None
        self.fail: set[str] = set()
        self.next_ids: list[str] = []
        self._seq = 0
        self.closed = False

    def _check(self, op: str) -> None:
        self.calls[op] += 1
        if op in self.fail:
            raise ItemStoreError(op, "store rejected the request")

    def _new_id(self, prefix: str) -> str:
        if self.next_ids:
            return self.next_ids.pop(0)
        self._seq += 1
        return f"{prefix}{self._seq}"

    async def ping(self, category: Category = Category.STRATEGY) -> None:
        self._check("ping")
        if not self.available:
            raise ItemStoreError("ping", "connection refused")

    async def list_qa(self, category: Category) -> list[QAEntry]:
        self._check("list_qa")
        if self.gate is not None:
            await self.gate.wait()
        return list(self.qa[category])

    async def list_reading(self, category: Category) -> list[ReadingEntry]:
        self._check("list_reading")
        if self.gate is not None:
            await self.gate.wait()
        return list(self.reading[category])

    async def create_qa(self, title, content, category, tags=None) -> QAEntry:
        self._check("create_qa")
        entry = QAEntry(
            id=self._new_id("q"),
            title=title,
            content=content,
            category=category,
            created_at=BASE_TIME,
            tags=tags or [],
        )
        self.qa[category].insert(0, entry)
        return entry

    async def update_qa(self, item_id, title, content, category, tags=None) -> None:
        self._check("update_qa")
        if not any(q.id == item_id for q in self.qa[category]):
            raise ItemStoreError("update QA entry", f"{item_id} not found")

    async def delete_qa(self, item_id) -> None:
        self._check("delete_qa")
        for category in CATEGORIES:
            for q in self.qa[category]:
                if q.id == item_id:
                    self.qa[category].remove(q)
                    return
        raise ItemStoreError("delete QA entry", f"{item_id} is archived or missing")

    async def create_reading(self, text, kind, category, link=None, title=None) -> ReadingEntry:
        self._check("create_reading")
        entry = ReadingEntry(
            id=self._new_id("r"),
            text=text,
            link=link,
            kind=kind,
            category=category,
            created_at=BASE_TIME,
            title=title,
        )
        self.reading[category].insert(0, entry)
        return entry

    async def update_reading(self, item_id, text, kind, category, link=None) -> None:
        self._check("update_reading")
        if not any(r.id == item_id for r in self.reading[category]):
            raise ItemStoreError("update reading entry", f"{item_id} not found")

    async def delete_reading(self, item_id) -> None:
        self._check("delete_reading")
        for category in CATEGORIES:
            for r in self.reading[category]:
                if r.id == item_id:
                    self.reading[category].remove(r)
                    return
        raise ItemStoreError("delete reading entry", f"{item_id} is archived or missing")

    async def summarize(self, url: str, category: Category) -> LinkSummary:
        self._check("summarize")
        return LinkSummary(
            title="Example Domain",
            summary="From a product design perspective, an example page.",
            original_url=url,
        )

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> FakeItemStore:
    return FakeItemStore()


@pytest.fixture
async def client():
    """Create test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
