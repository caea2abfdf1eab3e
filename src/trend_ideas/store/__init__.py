from trend_ideas.store.base import (
    CACHE_TTL_SECONDS,
    EventLog,
    RunStore,
    SearchCache,
    normalize_query,
)
from trend_ideas.store.memory import InMemoryEventLog, InMemoryRunStore, InMemorySearchCache

__all__ = [
    "CACHE_TTL_SECONDS",
    "EventLog",
    "InMemoryEventLog",
    "InMemoryRunStore",
    "InMemorySearchCache",
    "RunStore",
    "SearchCache",
    "normalize_query",
]
