"""MongoDB-backed stores.

pymongo is synchronous, so each call runs in a worker thread to keep the
orchestrator's event loop free.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database

from trend_ideas.data import Constraints, Event, EventPayload, Run, RunStatus, SearchResult, Surface
from trend_ideas.data.codec import (
    cache_entry_from_document,
    event_from_document,
    event_to_document,
    run_from_document,
    to_document,
)
from trend_ideas.errors import RunNotFoundError
from trend_ideas.store.base import CACHE_TTL_SECONDS, normalize_query

logger = logging.getLogger(__name__)

RUNS_COLLECTION = "runs"
EVENTS_COLLECTION = "events"
SEARCH_CACHE_COLLECTION = "search_cache"


def ensure_indexes(db: Database) -> None:
    db[RUNS_COLLECTION].create_index([("created_at", DESCENDING)])
    db[EVENTS_COLLECTION].create_index([("run_id", ASCENDING), ("ts", ASCENDING)])
    db[EVENTS_COLLECTION].create_index(
        [("run_id", ASCENDING), ("surface", ASCENDING), ("ts", ASCENDING)]
    )
    db[SEARCH_CACHE_COLLECTION].create_index("normalized_query", unique=True)


class MongoRunStore:
    """Runs stored one document per run, keyed by a hex uuid ``_id``."""

    def __init__(self, db: Database, *, clock: Callable[[], float] = time.time) -> None:
        self._collection = db[RUNS_COLLECTION]
        self._clock = clock

    async def insert(self, *, user_query: str, constraints: Constraints | None = None) -> str:
        run = Run(
            id=uuid.uuid4().hex,
            user_query=user_query,
            constraints=constraints or Constraints(),
            created_at=self._clock(),
        )
        doc = to_document(run)
        doc["_id"] = doc.pop("id")
        await asyncio.to_thread(self._collection.insert_one, doc)
        return run.id

    async def get(self, run_id: str) -> Run:
        doc = await asyncio.to_thread(self._collection.find_one, {"_id": run_id})
        if doc is None:
            raise RunNotFoundError(run_id)
        return run_from_document(doc)

    async def patch(self, run_id: str, **fields: Any) -> Run:
        update = {key: to_document(value) for key, value in fields.items()}
        doc = await asyncio.to_thread(
            self._collection.find_one_and_update,
            {"_id": run_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise RunNotFoundError(run_id)
        return run_from_document(doc)

    async def compare_and_set_status(
        self, run_id: str, expected: RunStatus, new: RunStatus
    ) -> bool:
        result = await asyncio.to_thread(
            self._collection.update_one,
            {"_id": run_id, "status": expected.value},
            {"$set": {"status": new.value}},
        )
        return result.modified_count == 1

    async def list_recent(self, limit: int = 20) -> list[Run]:
        def _fetch() -> list[dict[str, Any]]:
            return list(self._collection.find().sort("created_at", DESCENDING).limit(limit))

        docs = await asyncio.to_thread(_fetch)
        return [run_from_document(d) for d in docs]


class MongoEventLog:
    """Events stored one document each; ordered by ``ts`` then insertion id."""

    def __init__(self, db: Database, *, clock: Callable[[], float] = time.time) -> None:
        self._collection = db[EVENTS_COLLECTION]
        self._clock = clock

    async def append(self, run_id: str, surface: Surface, payload: EventPayload) -> Event:
        last = await asyncio.to_thread(
            self._collection.find_one,
            {"run_id": run_id},
            sort=[("ts", DESCENDING)],
        )
        ts = self._clock()
        if last is not None and float(last.get("ts", 0.0)) > ts:
            ts = float(last["ts"])
        event = Event(run_id=run_id, surface=surface, payload=payload, ts=ts)
        await asyncio.to_thread(self._collection.insert_one, event_to_document(event))
        return event

    async def query(self, run_id: str, surface: Surface | None = None) -> list[Event]:
        query: dict[str, Any] = {"run_id": run_id}
        if surface is not None:
            query["surface"] = surface.value

        def _fetch() -> list[dict[str, Any]]:
            return list(self._collection.find(query).sort([("ts", ASCENDING), ("_id", ASCENDING)]))

        docs = await asyncio.to_thread(_fetch)
        return [event_from_document(d) for d in docs]

    async def clear(self, run_id: str) -> int:
        result = await asyncio.to_thread(self._collection.delete_many, {"run_id": run_id})
        return result.deleted_count


class MongoSearchCache:
    """Search results upserted by normalized query (unique index)."""

    def __init__(
        self,
        db: Database,
        *,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._collection = db[SEARCH_CACHE_COLLECTION]
        self._ttl = ttl_seconds
        self._clock = clock

    async def get(self, query: str) -> list[SearchResult] | None:
        doc = await asyncio.to_thread(
            self._collection.find_one, {"normalized_query": normalize_query(query)}
        )
        if doc is None:
            return None
        entry = cache_entry_from_document(doc)
        if self._clock() - entry.cached_at > self._ttl:
            return None
        return list(entry.results)

    async def put(self, query: str, results: list[SearchResult]) -> None:
        key = normalize_query(query)
        await asyncio.to_thread(
            self._collection.update_one,
            {"normalized_query": key},
            {
                "$set": {
                    "query": query,
                    "normalized_query": key,
                    "results": to_document(results),
                    "cached_at": self._clock(),
                }
            },
            upsert=True,
        )

    async def purge_expired(self) -> int:
        cutoff = self._clock() - self._ttl
        result = await asyncio.to_thread(
            self._collection.delete_many, {"cached_at": {"$lt": cutoff}}
        )
        if result.deleted_count:
            logger.info("Purged %d expired search cache entries", result.deleted_count)
        return result.deleted_count
