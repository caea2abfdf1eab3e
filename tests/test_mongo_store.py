"""Tests for the MongoDB stores against mocked collections."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from pymongo import ReturnDocument

from trend_ideas.data import (
    Constraints,
    LogPayload,
    RunStatus,
    SearchResult,
    StatusPayload,
    Surface,
)
from trend_ideas.data.codec import event_to_document, to_document
from trend_ideas.errors import RunNotFoundError
from trend_ideas.store.mongo import (
    EVENTS_COLLECTION,
    RUNS_COLLECTION,
    SEARCH_CACHE_COLLECTION,
    MongoEventLog,
    MongoRunStore,
    MongoSearchCache,
    ensure_indexes,
)


@pytest.fixture
def db() -> dict[str, MagicMock]:
    return {
        RUNS_COLLECTION: MagicMock(),
        EVENTS_COLLECTION: MagicMock(),
        SEARCH_CACHE_COLLECTION: MagicMock(),
    }


def test_ensure_indexes(db: dict[str, MagicMock]) -> None:
    ensure_indexes(db)  # type: ignore[arg-type]

    db[SEARCH_CACHE_COLLECTION].create_index.assert_called_once_with(
        "normalized_query", unique=True
    )
    assert db[EVENTS_COLLECTION].create_index.call_count == 2


class TestMongoRunStore:
    async def test_insert_uses_id_as_primary_key(self, db: dict[str, MagicMock]) -> None:
        store = MongoRunStore(db, clock=lambda: 42.0)  # type: ignore[arg-type]
        run_id = await store.insert(user_query="AI", constraints=Constraints(timeframe="7d"))

        doc = db[RUNS_COLLECTION].insert_one.call_args.args[0]
        assert doc["_id"] == run_id
        assert "id" not in doc
        assert doc["status"] == "idle"
        assert doc["created_at"] == 42.0
        assert doc["constraints"]["timeframe"] == "7d"

    async def test_get_missing_raises(self, db: dict[str, MagicMock]) -> None:
        db[RUNS_COLLECTION].find_one.return_value = None
        store = MongoRunStore(db)  # type: ignore[arg-type]
        with pytest.raises(RunNotFoundError):
            await store.get("nope")

    async def test_patch_sets_documents(self, db: dict[str, MagicMock]) -> None:
        db[RUNS_COLLECTION].find_one_and_update.return_value = {
            "_id": "r1",
            "user_query": "AI",
            "status": "planning",
        }
        store = MongoRunStore(db)  # type: ignore[arg-type]

        run = await store.patch("r1", status=RunStatus.PLANNING, refinement=None)

        args, kwargs = db[RUNS_COLLECTION].find_one_and_update.call_args
        assert args == ({"_id": "r1"}, {"$set": {"status": "planning", "refinement": None}})
        assert kwargs["return_document"] == ReturnDocument.AFTER
        assert run.status is RunStatus.PLANNING

    async def test_compare_and_set_status(self, db: dict[str, MagicMock]) -> None:
        collection = db[RUNS_COLLECTION]
        collection.update_one.return_value = SimpleNamespace(modified_count=1)
        store = MongoRunStore(db)  # type: ignore[arg-type]

        won = await store.compare_and_set_status(
            "r1", RunStatus.AWAITING_APPROVAL, RunStatus.IDEATING
        )

        assert won
        collection.update_one.assert_called_once_with(
            {"_id": "r1", "status": "awaiting_approval"}, {"$set": {"status": "ideating"}}
        )

        collection.update_one.return_value = SimpleNamespace(modified_count=0)
        assert not await store.compare_and_set_status(
            "r1", RunStatus.AWAITING_APPROVAL, RunStatus.IDEATING
        )


class TestMongoEventLog:
    async def test_timestamp_never_goes_backwards(self, db: dict[str, MagicMock]) -> None:
        db[EVENTS_COLLECTION].find_one.return_value = {"ts": 100.0}
        log = MongoEventLog(db, clock=lambda: 50.0)  # type: ignore[arg-type]

        event = await log.append("r1", Surface.MAIN, StatusPayload(step="Planning"))

        assert event.ts == 100.0
        doc = db[EVENTS_COLLECTION].insert_one.call_args.args[0]
        assert doc == {
            "run_id": "r1",
            "surface": "main",
            "type": "status",
            "payload": {"step": "Planning"},
            "ts": 100.0,
        }

    async def test_query_by_surface(self, db: dict[str, MagicMock]) -> None:
        stored = MongoEventLog(db, clock=lambda: 1.0)  # type: ignore[arg-type]
        db[EVENTS_COLLECTION].find_one.return_value = None
        event = await stored.append("r1", Surface.SIDEBAR, LogPayload(msg="hi", level="warning"))
        cursor = MagicMock()
        cursor.sort.return_value = [event_to_document(event)]
        db[EVENTS_COLLECTION].find.return_value = cursor

        events = await stored.query("r1", Surface.SIDEBAR)

        db[EVENTS_COLLECTION].find.assert_called_once_with({"run_id": "r1", "surface": "sidebar"})
        assert events == [event]

    async def test_clear(self, db: dict[str, MagicMock]) -> None:
        db[EVENTS_COLLECTION].delete_many.return_value = SimpleNamespace(deleted_count=4)
        assert await MongoEventLog(db).clear("r1") == 4  # type: ignore[arg-type]


class TestMongoSearchCache:
    @pytest.fixture
    def results(self) -> list[SearchResult]:
        return [SearchResult(title="t", url="https://a.example/1", content="c", score=1.0)]

    async def test_put_upserts_normalized_key(
        self, db: dict[str, MagicMock], results: list[SearchResult]
    ) -> None:
        cache = MongoSearchCache(db, clock=lambda: 10.0)  # type: ignore[arg-type]
        await cache.put("  AI Trends ", results)

        args, kwargs = db[SEARCH_CACHE_COLLECTION].update_one.call_args
        assert args[0] == {"normalized_query": "ai trends"}
        assert args[1]["$set"]["results"] == to_document(results)
        assert args[1]["$set"]["cached_at"] == 10.0
        assert kwargs == {"upsert": True}

    async def test_get_respects_ttl(
        self, db: dict[str, MagicMock], results: list[SearchResult]
    ) -> None:
        db[SEARCH_CACHE_COLLECTION].find_one.return_value = {
            "normalized_query": "ai trends",
            "query": "AI trends",
            "results": to_document(results),
            "cached_at": 0.0,
        }
        now = [3600.0]
        cache = MongoSearchCache(db, clock=lambda: now[0])  # type: ignore[arg-type]

        assert await cache.get("AI trends") == results
        now[0] = 3600.5
        assert await cache.get("AI trends") is None

    async def test_purge_expired(self, db: dict[str, MagicMock]) -> None:
        db[SEARCH_CACHE_COLLECTION].delete_many.return_value = SimpleNamespace(deleted_count=2)
        cache = MongoSearchCache(db, clock=lambda: 5000.0)  # type: ignore[arg-type]

        assert await cache.purge_expired() == 2
        db[SEARCH_CACHE_COLLECTION].delete_many.assert_called_once_with(
            {"cached_at": {"$lt": 1400.0}}
        )
