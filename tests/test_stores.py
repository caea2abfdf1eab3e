"""Tests for the in-memory run store, event log, and search cache."""

import pytest

from trend_ideas.data import (
    Approval,
    Constraints,
    LogPayload,
    RunStatus,
    SearchResult,
    StatusPayload,
    Surface,
)
from trend_ideas.errors import RunNotFoundError
from trend_ideas.store import (
    CACHE_TTL_SECONDS,
    InMemoryEventLog,
    InMemoryRunStore,
    InMemorySearchCache,
    normalize_query,
)


class Clock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _result(url: str = "https://example.com/a") -> SearchResult:
    return SearchResult(title="A", url=url, content="content", score=0.9)


class TestRunStore:
    async def test_insert_creates_idle_run(self) -> None:
        store = InMemoryRunStore(clock=Clock(50.0))
        run_id = await store.insert(user_query="AI trends", constraints=Constraints(region="EU"))

        run = await store.get(run_id)
        assert run.id == run_id
        assert run.status == RunStatus.IDLE
        assert run.constraints.region == "EU"
        assert run.research_report is None
        assert run.approval is None
        assert run.created_at == 50.0

    async def test_get_unknown_run_raises(self) -> None:
        with pytest.raises(RunNotFoundError, match="missing"):
            await InMemoryRunStore().get("missing")

    async def test_patch_returns_updated_copy(self) -> None:
        store = InMemoryRunStore()
        run_id = await store.insert(user_query="q")
        before = await store.get(run_id)

        after = await store.patch(run_id, approval=Approval.REFINE, refinement="narrower")

        assert after.approval == Approval.REFINE
        assert after.refinement == "narrower"
        assert before.approval is None
        assert (await store.get(run_id)) == after

    async def test_compare_and_set_status_only_once(self) -> None:
        store = InMemoryRunStore()
        run_id = await store.insert(user_query="q")
        await store.patch(run_id, status=RunStatus.AWAITING_APPROVAL)

        first = await store.compare_and_set_status(
            run_id, RunStatus.AWAITING_APPROVAL, RunStatus.IDEATING
        )
        second = await store.compare_and_set_status(
            run_id, RunStatus.AWAITING_APPROVAL, RunStatus.IDEATING
        )

        assert first is True
        assert second is False
        assert (await store.get(run_id)).status == RunStatus.IDEATING

    async def test_list_recent_newest_first(self) -> None:
        clock = Clock(1.0)
        store = InMemoryRunStore(clock=clock)
        ids = []
        for i in range(3):
            clock.now = float(i)
            ids.append(await store.insert(user_query=f"q{i}"))

        recent = await store.list_recent(limit=2)
        assert [r.id for r in recent] == [ids[2], ids[1]]


class TestEventLog:
    async def test_query_preserves_append_order_per_surface(self) -> None:
        log = InMemoryEventLog(clock=Clock())
        await log.append("r1", Surface.MAIN, StatusPayload(step="one"))
        await log.append("r1", Surface.SIDEBAR, LogPayload(msg="side"))
        await log.append("r1", Surface.MAIN, StatusPayload(step="two"))
        await log.append("r2", Surface.MAIN, StatusPayload(step="other run"))

        main = await log.query("r1", Surface.MAIN)
        assert [e.payload.step for e in main] == ["one", "two"]
        assert len(await log.query("r1")) == 3
        assert len(await log.query("r1", Surface.SIDEBAR)) == 1

    async def test_timestamps_never_decrease(self) -> None:
        clock = Clock(100.0)
        log = InMemoryEventLog(clock=clock)
        first = await log.append("r1", Surface.MAIN, StatusPayload(step="a"))
        clock.now = 90.0
        second = await log.append("r1", Surface.MAIN, StatusPayload(step="b"))

        assert second.ts >= first.ts

    async def test_event_type_comes_from_payload(self) -> None:
        log = InMemoryEventLog()
        event = await log.append("r1", Surface.MAIN, LogPayload(msg="hi", level="warning"))
        assert event.type == "log"

    async def test_clear_removes_only_that_run(self) -> None:
        log = InMemoryEventLog()
        await log.append("r1", Surface.MAIN, StatusPayload(step="a"))
        await log.append("r1", Surface.SIDEBAR, StatusPayload(step="b"))
        await log.append("r2", Surface.MAIN, StatusPayload(step="c"))

        assert await log.clear("r1") == 2
        assert await log.query("r1") == []
        assert len(await log.query("r2")) == 1


class TestSearchCache:
    def test_normalize_query(self) -> None:
        assert normalize_query("  AI Trends ") == "ai trends"

    async def test_get_miss_returns_none(self) -> None:
        assert await InMemorySearchCache().get("nothing") is None

    async def test_put_then_get_by_normalized_key(self) -> None:
        cache = InMemorySearchCache(clock=Clock())
        await cache.put("AI Trends", [_result()])

        assert await cache.get("  ai trends") == [_result()]

    async def test_put_twice_keeps_one_entry(self) -> None:
        cache = InMemorySearchCache(clock=Clock())
        await cache.put("AI trends", [_result()])
        await cache.put("ai trends ", [_result()])

        assert len(cache) == 1

    async def test_put_overwrites_results(self) -> None:
        cache = InMemorySearchCache(clock=Clock())
        await cache.put("q", [_result("https://a.com")])
        await cache.put("q", [_result("https://b.com")])

        results = await cache.get("q")
        assert results is not None
        assert [r.url for r in results] == ["https://b.com"]

    async def test_stale_entry_reads_as_absent_but_stays_stored(self) -> None:
        clock = Clock(0.0)
        cache = InMemorySearchCache(clock=clock)
        await cache.put("q", [_result()])

        clock.now = CACHE_TTL_SECONDS
        assert await cache.get("q") is not None

        clock.now = CACHE_TTL_SECONDS + 1
        assert await cache.get("q") is None
        assert len(cache) == 1

    async def test_purge_expired(self) -> None:
        clock = Clock(0.0)
        cache = InMemorySearchCache(clock=clock)
        await cache.put("old", [_result()])
        clock.now = CACHE_TTL_SECONDS + 10
        await cache.put("fresh", [_result()])

        assert await cache.purge_expired() == 1
        assert len(cache) == 1
        assert await cache.get("fresh") is not None
