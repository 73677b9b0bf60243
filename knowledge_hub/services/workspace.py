"""Knowledge-base workspace: the UI orchestration layer.

Flow:
1. start(): probe the item store once. Unreachable -> local-only mode with
   empty categories. Reachable -> load the active tab in the foreground,
   then the other tabs in background tasks.
2. switch_tab(): cached tabs (fresh or stale) are shown without a request;
   uncached tabs are fetched once, guarded by the loading coordinator.
3. Mutations write to the store first and patch the affected category only
   after the store confirms. Failures leave the cache as it was and queue a
   destructive notice.

Staleness is advisory: refresh_stale() refetches old tabs in the background
while their cached data keeps being served.
"""

import asyncio
from collections.abc import Coroutine
from datetime import datetime, timezone
import logging
from typing import Any, Iterable, Literal
from uuid import uuid4

from knowledge_hub.schemas.items import CATEGORIES, Category, QAEntry, ReadingEntry, ReadingKind
from knowledge_hub.schemas.view import Notice, QACard, ReadingRow, TabStatus, ViewResponse
from knowledge_hub.services import view_state
from knowledge_hub.services.item_client import ItemStoreClient, ItemStoreError
from knowledge_hub.services.items import extract_link
from knowledge_hub.services.rich_text import excerpt, render
from knowledge_hub.stores.cache import TTL_CATEGORY, CategoryCache, LoadingCoordinator

logger = logging.getLogger("uvicorn.error")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _ordered(items: Iterable[QAEntry]) -> list[QAEntry]:
    """Apply the client-side order hint; entries without one keep store order."""
    items = list(items)
    if not any(item.order is not None for item in items):
        return items
    return sorted(items, key=lambda item: (item.order is None, item.order or 0))


class Workspace:
    """Single-user UI state over a process-lifetime category cache."""

    def __init__(
        self,
        store: ItemStoreClient,
        *,
        stale_after: float = TTL_CATEGORY,
        cache: CategoryCache | None = None,
    ):
        self.store = store
        self.stale_after = stale_after
        self.cache = cache or CategoryCache()
        self.loading = LoadingCoordinator()
        self.state = view_state.ViewState()
        self._notices: list[Notice] = []
        self._background: set[asyncio.Task[Any]] = set()

    # ============================================================
    # Notices
    # ============================================================

    def _notify(
        self,
        title: str,
        description: str,
        variant: Literal["default", "destructive"] = "default",
    ) -> None:
        self._notices.append(Notice(title=title, description=description, variant=variant))

    def _fail(self, title: str, error: ItemStoreError | str) -> None:
        message = error.message if isinstance(error, ItemStoreError) else error
        self._notify(title, message, "destructive")

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    def drain_notices(self) -> list[Notice]:
        notices, self._notices = self._notices, []
        return notices

    # ============================================================
    # Loading
    # ============================================================

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def wait_for_background(self) -> None:
        """Wait until every background fetch has finished."""
        while self._background:
            await asyncio.gather(*list(self._background))

    async def _load(self, category: Category) -> bool:
        """Fetch one category and replace its cache entry.

        Returns:
            True if the cache was replaced, False if skipped or failed.
        """
        if not self.loading.begin(category):
            return False
        try:
            qa, reading = await asyncio.gather(
                self.store.list_qa(category),
                self.store.list_reading(category),
                return_exceptions=True,
            )
            for result in (qa, reading):
                if isinstance(result, BaseException):
                    raise result
            self.cache.put(category, qa, reading)
            logger.info(f"Loaded {category.value}: {len(qa)} QA, {len(reading)} reading")
            return True
        except ItemStoreError as e:
            logger.warning(f"Loading {category.value} failed: {e}")
            self._fail("Load failed", f"Could not load {category.value}: {e.message}")
            return False
        finally:
            self.loading.end(category)

    def _go_local(self) -> None:
        for category in CATEGORIES:
            self.cache.put(category, [], [])
        self.state = view_state.mark_initial_load_done(view_state.mark_remote(self.state, False))

    async def start(self) -> None:
        """Probe the store and load the active tab; other tabs load in the background."""
        if self.state.started:
            return
        self.state = view_state.mark_started(self.state)

        try:
            await self.store.ping(self.state.active_tab)
        except ItemStoreError as e:
            logger.info(f"Item store unavailable, running local-only: {e.message}")
            self._go_local()
            return
        except Exception:
            logger.exception("Item store probe failed, running local-only")
            self._go_local()
            return

        self.state = view_state.mark_remote(self.state, True)
        active = self.state.active_tab
        await self._load(active)
        self.state = view_state.mark_initial_load_done(self.state)

        for category in CATEGORIES:
            if category != active and self.cache.get(category) is None:
                self._spawn(self._load(category))

    async def switch_tab(self, category: Category) -> None:
        self.state = view_state.switch_tab(self.state, category)
        if self.cache.get(category) is not None:
            return
        if self.state.remote_available and self.state.initial_load_done:
            await self._load(category)

    async def refresh(self, category: Category | None = None) -> bool:
        """Manual refresh: refetch a category (default: active tab) now."""
        if not self.state.remote_available:
            return False
        return await self._load(category or self.state.active_tab)

    def refresh_stale(self) -> list[Category]:
        """Schedule background refetches for cached tabs older than the staleness window."""
        if not self.state.remote_available:
            return []
        scheduled: list[Category] = []
        for category in CATEGORIES:
            if self.cache.get(category) is None or self.loading.is_loading(category):
                continue
            if self.cache.is_stale(category, self.stale_after):
                self._spawn(self._load(category))
                scheduled.append(category)
        return scheduled

    def is_loading(self, category: Category) -> bool:
        return self.loading.is_loading(category)

    # ============================================================
    # View state
    # ============================================================

    def set_search(self, query: str) -> None:
        self.state = view_state.set_search(self.state, query)

    def toggle_expanded(self, item_id: str) -> None:
        self.state = view_state.toggle_expanded(self.state, item_id)

    def _find_qa(self, item_id: str) -> tuple[Category, QAEntry] | None:
        for category, entry in self.cache.snapshot().items():
            for item in entry.qa:
                if item.id == item_id:
                    return category, item
        return None

    def _find_reading(self, item_id: str) -> tuple[Category, ReadingEntry] | None:
        for category, entry in self.cache.snapshot().items():
            for item in entry.reading:
                if item.id == item_id:
                    return category, item
        return None

    def qa_view(self) -> list[tuple[Category, QAEntry]]:
        """Entries to display with their source category.

        No query: the active tab. With a query: matches across every cached tab.
        """
        if not self.state.searching:
            entry = self.cache.get(self.state.active_tab)
            if entry is None:
                return []
            return [(self.state.active_tab, item) for item in _ordered(entry.qa)]

        query = self.state.search_query.strip().lower()
        snapshot = self.cache.snapshot()
        hits: list[tuple[Category, QAEntry]] = []
        for category in CATEGORIES:
            entry = snapshot.get(category)
            if entry is None:
                continue
            for item in _ordered(entry.qa):
                if query in item.title.lower() or query in item.content.lower():
                    hits.append((category, item))
        return hits

    def reading_view(self, kind: ReadingKind) -> list[tuple[Category, ReadingEntry]]:
        if not self.state.searching:
            entry = self.cache.get(self.state.active_tab)
            if entry is None:
                return []
            return [(self.state.active_tab, item) for item in entry.reading if item.kind == kind]

        query = self.state.search_query.strip().lower()
        snapshot = self.cache.snapshot()
        hits: list[tuple[Category, ReadingEntry]] = []
        for category in CATEGORIES:
            entry = snapshot.get(category)
            if entry is None:
                continue
            for item in entry.reading:
                if item.kind != kind:
                    continue
                if query in item.text.lower() or (item.link and query in item.link.lower()):
                    hits.append((category, item))
        return hits

    def snapshot(self) -> ViewResponse:
        """Render the current view and hand over pending notices."""
        state = self.state
        tabs = []
        for category in CATEGORIES:
            entry = self.cache.get(category)
            tabs.append(
                TabStatus(
                    category=category,
                    loading=self.loading.is_loading(category),
                    cached=entry is not None,
                    stale=entry is not None and self.cache.is_stale(category, self.stale_after),
                    qa_count=len(entry.qa) if entry else 0,
                )
            )

        cards = []
        for category, item in self.qa_view():
            expanded = item.id in state.expanded
            body = item.content if expanded else excerpt(item.content)
            cards.append(
                QACard(
                    entry=item,
                    html=render(body, expanded=expanded),
                    expanded=expanded,
                    source_category=category,
                )
            )

        def rows(kind: ReadingKind) -> list[ReadingRow]:
            return [
                ReadingRow(entry=item, html=render(item.text), source_category=category)
                for category, item in self.reading_view(kind)
            ]

        return ViewResponse(
            active_tab=state.active_tab,
            search_query=state.search_query,
            remote_available=state.remote_available,
            loading=state.started and not state.initial_load_done,
            tabs=tabs,
            qa=cards,
            required=rows(ReadingKind.REQUIRED),
            optional=rows(ReadingKind.OPTIONAL),
            notices=self.drain_notices(),
        )

    # ============================================================
    # QA mutations
    # ============================================================

    async def add_qa(self, title: str, content: str, tags: list[str] | None = None) -> QAEntry | None:
        if not title.strip() or not content.strip():
            return None
        category = self.state.active_tab

        if self.state.remote_available:
            try:
                item = await self.store.create_qa(title, content, category, tags)
            except ItemStoreError as e:
                self._fail("Publish failed", e)
                return None
        else:
            item = QAEntry(
                id=uuid4().hex,
                title=title,
                content=content,
                category=category,
                created_at=_now(),
                tags=tags or [],
            )

        self.cache.prepend_qa(category, item)
        self._notify("Published", "The QA entry was added to the knowledge base")
        return item

    async def update_qa(
        self,
        item_id: str,
        title: str,
        content: str,
        tags: list[str] | None = None,
    ) -> bool:
        if not title.strip() or not content.strip():
            return False
        found = self._find_qa(item_id)
        if found is None:
            self._fail("Update failed", f"QA entry {item_id} is not loaded")
            return False
        category, current = found
        new_tags = current.tags if tags is None else tags

        if self.state.remote_available:
            try:
                await self.store.update_qa(item_id, title, content, category, new_tags)
            except ItemStoreError as e:
                self._fail("Update failed", e)
                return False

        self.cache.replace_qa(
            category,
            current.model_copy(update={"title": title, "content": content, "tags": new_tags}),
        )
        self._notify("Updated", "The QA entry was updated")
        return True

    async def delete_qa(self, item_id: str) -> bool:
        found = self._find_qa(item_id)
        category = found[0] if found else self.state.active_tab

        if self.state.remote_available:
            try:
                await self.store.delete_qa(item_id)
            except ItemStoreError as e:
                self._fail("Delete failed", e)
                return False
        elif found is None:
            self._fail("Delete failed", f"QA entry {item_id} does not exist")
            return False

        self.cache.remove_qa(category, item_id)
        self._notify("Deleted", "The QA entry was removed")
        return True

    def reorder_qa(self, moved_id: str, target_id: str) -> bool:
        """Move a card onto another card's position in the active tab (local only)."""
        category = self.state.active_tab
        entry = self.cache.get(category)
        if entry is None or moved_id == target_id:
            return False

        items = _ordered(entry.qa)
        ids = [item.id for item in items]
        if moved_id not in ids or target_id not in ids:
            return False

        old_index, new_index = ids.index(moved_id), ids.index(target_id)
        items.insert(new_index, items.pop(old_index))
        self.cache.set_qa_order(
            category, [item.model_copy(update={"order": i}) for i, item in enumerate(items)]
        )
        self._notify("Order updated", "The card order was saved")
        return True

    # ============================================================
    # Reading mutations
    # ============================================================

    async def add_reading(self, text: str, kind: ReadingKind) -> ReadingEntry | None:
        """Add a reading entry; a bare link is summarized first."""
        if not text.strip():
            return None
        category = self.state.active_tab
        link = extract_link(text)
        body, title = text, None

        # bare links are summarized in local-only mode too
        if link and text.strip() == link:
            try:
                summary = await self.store.summarize(link, category)
            except ItemStoreError as e:
                logger.warning(f"Summary for {link} failed: {e}")
                self._fail("Summary failed", "The original link text will be used")
            else:
                body, title = summary.summary, summary.title
                self._notify("Summary generated", "A summary and title were generated from the link")

        if self.state.remote_available:
            try:
                item = await self.store.create_reading(body, kind, category, link=link, title=title)
            except ItemStoreError as e:
                self._fail("Add failed", e)
                return None
        else:
            item = ReadingEntry(
                id=uuid4().hex,
                text=body,
                link=link,
                kind=kind,
                category=category,
                created_at=_now(),
                title=title,
            )

        self.cache.prepend_reading(category, item)
        self._notify("Added", f"Added to the {kind.value} reading list")
        return item

    async def update_reading(self, item_id: str, text: str, kind: ReadingKind | None = None) -> bool:
        if not text.strip():
            return False
        found = self._find_reading(item_id)
        if found is None:
            self._fail("Update failed", f"Reading entry {item_id} is not loaded")
            return False
        category, current = found
        new_kind = kind or current.kind
        link = extract_link(text) or current.link

        if self.state.remote_available:
            try:
                await self.store.update_reading(item_id, text, new_kind, category, link=link)
            except ItemStoreError as e:
                self._fail("Update failed", e)
                return False

        self.cache.replace_reading(
            category, current.model_copy(update={"text": text, "kind": new_kind, "link": link})
        )
        self._notify("Updated", "The reading entry was updated")
        return True

    async def delete_reading(self, item_id: str) -> bool:
        found = self._find_reading(item_id)
        category = found[0] if found else self.state.active_tab

        if self.state.remote_available:
            try:
                await self.store.delete_reading(item_id)
            except ItemStoreError as e:
                self._fail("Delete failed", e)
                return False
        elif found is None:
            self._fail("Delete failed", f"Reading entry {item_id} does not exist")
            return False

        self.cache.remove_reading(category, item_id)
        self._notify("Deleted", "The reading entry was removed")
        return True

    async def close(self) -> None:
        await self.wait_for_background()
        await self.store.close()
