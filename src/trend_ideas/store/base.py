"""Protocols for run, event, and search-cache persistence."""

from typing import Any, Protocol

from trend_ideas.data import Constraints, Event, EventPayload, Run, RunStatus, SearchResult, Surface

CACHE_TTL_SECONDS = 60 * 60


def normalize_query(query: str) -> str:
    """Cache key for a search query: lower-cased and trimmed."""
    return query.lower().strip()


class RunStore(Protocol):
    """Single-document access to persisted runs."""

    async def insert(self, *, user_query: str, constraints: Constraints | None = None) -> str:
        """Create a run in ``idle`` status and return its id."""
        ...

    async def get(self, run_id: str) -> Run:
        """Load a run.

        Raises:
            RunNotFoundError: If no run has this id.
        """
        ...

    async def patch(self, run_id: str, **fields: Any) -> Run:
        """Atomically update the given fields and return the updated run."""
        ...

    async def compare_and_set_status(
        self, run_id: str, expected: RunStatus, new: RunStatus
    ) -> bool:
        """Set ``status`` to ``new`` only if it is currently ``expected``.

        Returns:
            True if this call performed the update.
        """
        ...

    async def list_recent(self, limit: int = 20) -> list[Run]:
        """Most recently created runs first."""
        ...


class EventLog(Protocol):
    """Append-only event store partitioned by run and surface."""

    async def append(self, run_id: str, surface: Surface, payload: EventPayload) -> Event:
        ...

    async def query(self, run_id: str, surface: Surface | None = None) -> list[Event]:
        """Events for a run in append order, optionally for one surface."""
        ...

    async def clear(self, run_id: str) -> int:
        """Delete every event of a run. Returns the number deleted."""
        ...


class SearchCache(Protocol):
    """TTL cache of provider results keyed by normalized query text.

    Entries older than the TTL read as absent; removing them is left to
    :meth:`purge_expired`.
    """

    async def get(self, query: str) -> list[SearchResult] | None:
        ...

    async def put(self, query: str, results: list[SearchResult]) -> None:
        ...

    async def purge_expired(self) -> int:
        """Delete expired entries. Returns the number deleted."""
        ...
