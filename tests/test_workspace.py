"""Tests for the workspace orchestration (cache, loading, mutations, search)."""

import asyncio

import pytest

from conftest import FakeItemStore, make_qa, make_reading
from knowledge_hub.schemas import CATEGORIES, Category, ReadingKind
from knowledge_hub.services import view_state
from knowledge_hub.services.workspace import Workspace
from knowledge_hub.stores.cache import CategoryCache


async def started(store: FakeItemStore, **kwargs) -> Workspace:
    ws = Workspace(store, **kwargs)
    await ws.start()
    await ws.wait_for_background()
    return ws


class TestStart:
    """Tests for startup and the availability probe."""

    @pytest.mark.asyncio
    async def test_loads_every_category_in_store_order(self, store: FakeItemStore):
        store.qa[Category.PRODUCT] = [
            make_qa("p2", Category.PRODUCT, minutes=0),
            make_qa("p1", Category.PRODUCT, minutes=5),
        ]
        store.reading[Category.TECHNOLOGY] = [make_reading("t1", Category.TECHNOLOGY)]

        ws = await started(store)

        assert ws.state.remote_available is True
        assert ws.state.initial_load_done is True
        assert store.calls["ping"] == 1
        assert store.calls["list_qa"] == 3
        assert [q.id for q in ws.cache.get(Category.PRODUCT).qa] == ["p2", "p1"]
        assert [r.id for r in ws.cache.get(Category.TECHNOLOGY).reading] == ["t1"]
        for category in CATEGORIES:
            assert ws.cache.get(category) is not None

    @pytest.mark.asyncio
    async def test_active_tab_loaded_before_start_returns(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [make_qa("s1", Category.STRATEGY)]
        ws = Workspace(store)
        await ws.start()

        assert [q.id for q in ws.cache.get(Category.STRATEGY).qa] == ["s1"]
        assert ws.snapshot().loading is False
        await ws.wait_for_background()

    @pytest.mark.asyncio
    async def test_unreachable_store_switches_to_local_mode(self):
        store = FakeItemStore(available=False)
        ws = await started(store)

        assert ws.state.remote_available is False
        assert store.calls["list_qa"] == 0
        assert ws.drain_notices() == []
        for category in CATEGORIES:
            entry = ws.cache.get(category)
            assert entry is not None and entry.qa == () and entry.reading == ()

        item = await ws.add_qa("Local question", "Local answer")
        assert item is not None
        assert ws.cache.get(Category.STRATEGY).qa[0].id == item.id
        assert store.calls["create_qa"] == 0

    @pytest.mark.asyncio
    async def test_erroring_probe_switches_to_local_mode(self, store: FakeItemStore):
        async def broken_ping(category: Category = Category.STRATEGY) -> None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")

        store.ping = broken_ping
        ws = await started(store)

        assert ws.state.started is True
        assert ws.state.remote_available is False
        assert ws.state.initial_load_done is True
        assert ws.snapshot().loading is False
        assert store.calls["list_qa"] == 0
        for category in CATEGORIES:
            assert ws.cache.get(category) is not None

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, store: FakeItemStore):
        ws = await started(store)
        await ws.start()
        assert store.calls["ping"] == 1


class TestTabSwitch:
    """Tests for tab switching against the cache."""

    @pytest.mark.asyncio
    async def test_cached_tab_issues_no_requests(self, store: FakeItemStore):
        ws = await started(store)
        store.calls.clear()

        await ws.switch_tab(Category.PRODUCT)

        assert ws.state.active_tab == Category.PRODUCT
        assert sum(store.calls.values()) == 0

    @pytest.mark.asyncio
    async def test_stale_tab_still_served_without_requests(self, store: FakeItemStore):
        now = [1000.0]
        ws = await started(store, cache=CategoryCache(clock=lambda: now[0]), stale_after=300)
        store.calls.clear()
        now[0] += 301

        await ws.switch_tab(Category.TECHNOLOGY)

        assert ws.cache.is_stale(Category.TECHNOLOGY, 300)
        assert sum(store.calls.values()) == 0

    @pytest.mark.asyncio
    async def test_uncached_tab_fetched_once_under_reentrancy(self, store: FakeItemStore):
        store.qa[Category.PRODUCT] = [make_qa("p1", Category.PRODUCT)]
        ws = Workspace(store)
        ws.state = view_state.mark_initial_load_done(
            view_state.mark_remote(view_state.mark_started(ws.state), True)
        )
        store.gate = asyncio.Event()

        first = asyncio.create_task(ws.switch_tab(Category.PRODUCT))
        await asyncio.sleep(0)
        assert ws.is_loading(Category.PRODUCT)
        second = asyncio.create_task(ws.switch_tab(Category.PRODUCT))
        await asyncio.sleep(0)

        store.gate.set()
        await asyncio.gather(first, second)

        assert store.calls["list_qa"] == 1
        assert not ws.is_loading(Category.PRODUCT)
        assert [q.id for q in ws.cache.get(Category.PRODUCT).qa] == ["p1"]

    @pytest.mark.asyncio
    async def test_uncached_tab_before_initial_load_shows_empty(self, store: FakeItemStore):
        ws = Workspace(store)
        await ws.switch_tab(Category.PRODUCT)

        assert sum(store.calls.values()) == 0
        assert ws.qa_view() == []


class TestRefresh:
    """Tests for manual and stale refreshes."""

    @pytest.mark.asyncio
    async def test_concurrent_refresh_is_single_request(self, store: FakeItemStore):
        ws = await started(store)
        store.calls.clear()
        store.gate = asyncio.Event()

        first = asyncio.create_task(ws.refresh(Category.STRATEGY))
        second = asyncio.create_task(ws.refresh(Category.STRATEGY))
        await asyncio.sleep(0)
        store.gate.set()
        results = await asyncio.gather(first, second)

        assert sorted(results) == [False, True]
        assert store.calls["list_qa"] == 1

    @pytest.mark.asyncio
    async def test_refresh_replaces_wholesale(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [make_qa("s1", Category.STRATEGY), make_qa("s2", Category.STRATEGY)]
        ws = await started(store)
        store.qa[Category.STRATEGY] = [make_qa("s3", Category.STRATEGY)]

        assert await ws.refresh() is True
        assert [q.id for q in ws.cache.get(Category.STRATEGY).qa] == ["s3"]

    @pytest.mark.asyncio
    async def test_failed_fetch_keeps_cache_and_notifies(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [make_qa("s1", Category.STRATEGY)]
        ws = await started(store)
        before = ws.cache.get(Category.STRATEGY)
        store.fail.add("list_reading")

        assert await ws.refresh() is False
        assert ws.cache.get(Category.STRATEGY) is before
        notices = ws.drain_notices()
        assert notices[-1].variant == "destructive"
        assert not ws.is_loading(Category.STRATEGY)

    @pytest.mark.asyncio
    async def test_refresh_stale_reloads_old_tabs_in_background(self, store: FakeItemStore):
        now = [1000.0]
        ws = await started(store, cache=CategoryCache(clock=lambda: now[0]), stale_after=300)
        assert ws.refresh_stale() == []

        store.qa[Category.PRODUCT] = [make_qa("p9", Category.PRODUCT)]
        now[0] += 301
        scheduled = ws.refresh_stale()
        await ws.wait_for_background()

        assert scheduled == list(CATEGORIES)
        assert [q.id for q in ws.cache.get(Category.PRODUCT).qa] == ["p9"]
        assert not ws.cache.is_stale(Category.PRODUCT, 300)


class TestQAMutations:
    """Tests for QA create/update/delete with cache patching."""

    @pytest.mark.asyncio
    async def test_create_then_delete_scenario(self, store: FakeItemStore):
        ws = await started(store)
        await ws.switch_tab(Category.PRODUCT)
        store.next_ids = ["p1"]

        item = await ws.add_qa("Q1", "A1")
        assert item is not None and item.id == "p1"
        assert ws.cache.get(Category.PRODUCT).qa[0].id == "p1"

        assert await ws.delete_qa("p1") is True
        assert all(q.id != "p1" for q in ws.cache.get(Category.PRODUCT).qa)
        ws.drain_notices()

        assert await ws.delete_qa("p1") is False
        notices = ws.drain_notices()
        assert len(notices) == 1
        assert notices[0].title == "Delete failed"
        assert notices[0].variant == "destructive"

    @pytest.mark.asyncio
    async def test_failed_create_leaves_cache_untouched(self, store: FakeItemStore):
        ws = await started(store)
        before = ws.cache.get(Category.STRATEGY)
        store.fail.add("create_qa")

        assert await ws.add_qa("Q", "A") is None
        assert ws.cache.get(Category.STRATEGY) is before
        assert ws.drain_notices()[-1].title == "Publish failed"

    @pytest.mark.asyncio
    async def test_blank_input_is_ignored(self, store: FakeItemStore):
        ws = await started(store)
        assert await ws.add_qa("   ", "A") is None
        assert store.calls["create_qa"] == 0

    @pytest.mark.asyncio
    async def test_update_replaces_in_place(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [make_qa("s1", Category.STRATEGY), make_qa("s2", Category.STRATEGY)]
        ws = await started(store)

        assert await ws.update_qa("s2", "New title", "New body") is True
        qa = ws.cache.get(Category.STRATEGY).qa
        assert [q.id for q in qa] == ["s1", "s2"]
        assert qa[1].title == "New title"
        assert qa[1].content == "New body"

    @pytest.mark.asyncio
    async def test_failed_update_keeps_old_entry(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [make_qa("s1", Category.STRATEGY)]
        ws = await started(store)
        store.fail.add("update_qa")

        assert await ws.update_qa("s1", "Changed", "Changed") is False
        assert ws.cache.get(Category.STRATEGY).qa[0].title == "Question s1"

    @pytest.mark.asyncio
    async def test_reorder_sets_order_hint(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [
            make_qa("a", Category.STRATEGY),
            make_qa("b", Category.STRATEGY),
            make_qa("c", Category.STRATEGY),
        ]
        ws = await started(store)
        store.calls.clear()

        assert ws.reorder_qa("c", "a") is True
        assert [item.id for _, item in ws.qa_view()] == ["c", "a", "b"]
        assert [q.order for q in ws.cache.get(Category.STRATEGY).qa] == [0, 1, 2]
        assert sum(store.calls.values()) == 0
        assert ws.reorder_qa("c", "missing") is False


class TestReadingMutations:
    """Tests for reading entries and link summaries."""

    @pytest.mark.asyncio
    async def test_bare_link_is_summarized_first(self, store: FakeItemStore):
        ws = await started(store)
        await ws.switch_tab(Category.PRODUCT)

        item = await ws.add_reading("https://example.com", ReadingKind.REQUIRED)

        assert store.calls["summarize"] == 1
        assert item is not None
        assert item.text == "From a product design perspective, an example page."
        assert item.title == "Example Domain"
        assert item.link == "https://example.com"
        assert ws.cache.get(Category.PRODUCT).reading[0].id == item.id
        titles = [n.title for n in ws.drain_notices()]
        assert "Summary generated" in titles

    @pytest.mark.asyncio
    async def test_bare_link_is_summarized_in_local_mode(self):
        store = FakeItemStore(available=False)
        ws = await started(store)

        item = await ws.add_reading("https://example.com", ReadingKind.REQUIRED)

        assert store.calls["summarize"] == 1
        assert store.calls["create_reading"] == 0
        assert item.text == "From a product design perspective, an example page."
        assert item.title == "Example Domain"
        assert item.link == "https://example.com"
        assert ws.cache.get(Category.STRATEGY).reading[0].id == item.id

    @pytest.mark.asyncio
    async def test_link_with_words_is_not_summarized(self, store: FakeItemStore):
        ws = await started(store)

        item = await ws.add_reading("read https://example.com later", ReadingKind.OPTIONAL)

        assert store.calls["summarize"] == 0
        assert item.text == "read https://example.com later"
        assert item.link == "https://example.com"
        assert item.kind == ReadingKind.OPTIONAL

    @pytest.mark.asyncio
    async def test_summary_failure_keeps_raw_link(self, store: FakeItemStore):
        ws = await started(store)
        store.fail.add("summarize")

        item = await ws.add_reading("https://example.com", ReadingKind.REQUIRED)

        assert item is not None and item.text == "https://example.com"
        notices = ws.drain_notices()
        assert notices[0].title == "Summary failed"
        assert notices[-1].title == "Added"

    @pytest.mark.asyncio
    async def test_delete_reading_surfaces_store_errors(self, store: FakeItemStore):
        store.reading[Category.STRATEGY] = [make_reading("r1", Category.STRATEGY)]
        ws = await started(store)

        assert await ws.delete_reading("r1") is True
        assert ws.cache.get(Category.STRATEGY).reading == ()
        assert await ws.delete_reading("r1") is False
        assert ws.drain_notices()[-1].variant == "destructive"

    @pytest.mark.asyncio
    async def test_update_reading_moves_kind(self, store: FakeItemStore):
        store.reading[Category.STRATEGY] = [make_reading("r1", Category.STRATEGY)]
        ws = await started(store)

        assert await ws.update_reading("r1", "now optional", ReadingKind.OPTIONAL) is True
        assert [item.id for _, item in ws.reading_view(ReadingKind.OPTIONAL)] == ["r1"]
        assert ws.reading_view(ReadingKind.REQUIRED) == []


class TestSearchAndView:
    """Tests for search and the rendered snapshot."""

    @pytest.mark.asyncio
    async def test_search_spans_cached_categories(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [make_qa("s1", Category.STRATEGY, title="Pricing power")]
        store.qa[Category.PRODUCT] = [make_qa("p1", Category.PRODUCT, content="Usage-based PRICING")]
        store.qa[Category.TECHNOLOGY] = [make_qa("t1", Category.TECHNOLOGY, title="Caching")]
        ws = await started(store)
        store.calls.clear()

        ws.set_search("pricing")
        hits = ws.qa_view()

        assert [(c, q.id) for c, q in hits] == [(Category.STRATEGY, "s1"), (Category.PRODUCT, "p1")]
        assert sum(store.calls.values()) == 0

        ws.set_search("")
        assert [q.id for _, q in ws.qa_view()] == ["s1"]

    @pytest.mark.asyncio
    async def test_search_never_fetches_uncached_categories(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [make_qa("s1", Category.STRATEGY, title="Pricing power")]
        store.qa[Category.PRODUCT] = [make_qa("p1", Category.PRODUCT, title="Pricing pages")]
        ws = Workspace(store)
        ws.state = view_state.mark_initial_load_done(
            view_state.mark_remote(view_state.mark_started(ws.state), True)
        )
        ws.cache.put(Category.STRATEGY, store.qa[Category.STRATEGY], [])

        ws.set_search("pricing")
        hits = ws.qa_view()
        view = ws.snapshot()

        assert [(c, q.id) for c, q in hits] == [(Category.STRATEGY, "s1")]
        assert [card.entry.id for card in view.qa] == ["s1"]
        assert sum(store.calls.values()) == 0
        assert ws.cache.get(Category.PRODUCT) is None

    @pytest.mark.asyncio
    async def test_snapshot_renders_and_drains_notices(self, store: FakeItemStore):
        store.qa[Category.STRATEGY] = [
            make_qa("s1", Category.STRATEGY, content="**Key** idea\n![chart](https://img.test/c.png)")
        ]
        ws = await started(store)
        await ws.add_reading("plain note", ReadingKind.REQUIRED)

        view = ws.snapshot()
        assert view.qa[0].html.startswith("<strong>Key</strong> idea<br />")
        assert "width: 48px" in view.qa[0].html
        assert [r.entry.text for r in view.required] == ["plain note"]
        assert [n.title for n in view.notices] == ["Added"]
        assert ws.snapshot().notices == []

        ws.toggle_expanded("s1")
        assert "max-height: 250px" in ws.snapshot().qa[0].html
