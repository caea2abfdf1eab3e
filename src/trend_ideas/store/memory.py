"""In-process stores, used by default and in tests."""

import dataclasses
import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from trend_ideas.data import (
    CacheEntry,
    Constraints,
    Event,
    EventPayload,
    Run,
    RunStatus,
    SearchResult,
    Surface,
)
from trend_ideas.errors import RunNotFoundError
from trend_ideas.store.base import CACHE_TTL_SECONDS, normalize_query

logger = logging.getLogger(__name__)


class InMemoryRunStore:
    """Runs held in a dict keyed by id.

    Args:
        clock: Returns the current time in epoch seconds.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._runs: dict[str, Run] = {}
        self._clock = clock

    async def insert(self, *, user_query: str, constraints: Constraints | None = None) -> str:
        run_id = uuid.uuid4().hex
        self._runs[run_id] = Run(
            id=run_id,
            user_query=user_query,
            constraints=constraints or Constraints(),
            created_at=self._clock(),
        )
        return run_id

    async def get(self, run_id: str) -> Run:
        try:
            return self._runs[run_id]
        except KeyError:
            raise RunNotFoundError(run_id) from None

    async def patch(self, run_id: str, **fields: Any) -> Run:
        run = await self.get(run_id)
        updated = dataclasses.replace(run, **fields)
        self._runs[run_id] = updated
        return updated

    async def compare_and_set_status(
        self, run_id: str, expected: RunStatus, new: RunStatus
    ) -> bool:
        run = await self.get(run_id)
        if run.status != expected:
            return False
        self._runs[run_id] = dataclasses.replace(run, status=new)
        return True

    async def list_recent(self, limit: int = 20) -> list[Run]:
        runs = sorted(self._runs.values(), key=lambda r: r.created_at, reverse=True)
        return runs[:limit]


class InMemoryEventLog:
    """Events held per run in append order.

    Timestamps never decrease within a run, even if the clock steps back.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._events: dict[str, list[Event]] = {}
        self._clock = clock

    async def append(self, run_id: str, surface: Surface, payload: EventPayload) -> Event:
        events = self._events.setdefault(run_id, [])
        ts = self._clock()
        if events and events[-1].ts > ts:
            ts = events[-1].ts
        event = Event(run_id=run_id, surface=surface, payload=payload, ts=ts)
        events.append(event)
        return event

    async def query(self, run_id: str, surface: Surface | None = None) -> list[Event]:
        events = self._events.get(run_id, [])
        if surface is None:
            return list(events)
        return [e for e in events if e.surface == surface]

    async def clear(self, run_id: str) -> int:
        return len(self._events.pop(run_id, []))


class InMemorySearchCache:
    """Search results keyed by normalized query with read-time TTL.

    Args:
        ttl_seconds: Age after which an entry reads as absent.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._ttl = ttl_seconds
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, query: str) -> list[SearchResult] | None:
        entry = self._entries.get(normalize_query(query))
        if entry is None or self._is_expired(entry):
            return None
        return list(entry.results)

    async def put(self, query: str, results: list[SearchResult]) -> None:
        key = normalize_query(query)
        self._entries[key] = CacheEntry(
            normalized_query=key,
            query=query,
            results=tuple(results),
            cached_at=self._clock(),
        )

    async def purge_expired(self) -> int:
        expired = [k for k, entry in self._entries.items() if self._is_expired(entry)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("Purged %d expired search cache entries", len(expired))
        return len(expired)

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.cached_at > self._ttl
