"""Shared fixtures: in-memory stores and an orchestrator factory."""

from collections.abc import Callable

import pytest

from tests.fakes import FIXED_NOW, StubSearch, no_sleep
from trend_ideas.orchestrator import Orchestrator
from trend_ideas.retry import RetryPolicy
from trend_ideas.store import InMemoryEventLog, InMemoryRunStore, InMemorySearchCache


@pytest.fixture
def runs() -> InMemoryRunStore:
    return InMemoryRunStore()


@pytest.fixture
def events() -> InMemoryEventLog:
    return InMemoryEventLog()


@pytest.fixture
def cache() -> InMemorySearchCache:
    return InMemorySearchCache()


@pytest.fixture
def make_orchestrator(
    runs: InMemoryRunStore, events: InMemoryEventLog, cache: InMemorySearchCache
) -> Callable[..., Orchestrator]:
    def _make(generator, search=None, **kwargs) -> Orchestrator:
        kwargs.setdefault(
            "idea_policy",
            RetryPolicy(max_attempts=3, max_consecutive_failures=10, delay_seconds=0),
        )
        return Orchestrator(
            runs=runs,
            events=events,
            cache=cache,
            search=search or StubSearch(),
            generator=generator,
            now=lambda: FIXED_NOW,
            sleep=no_sleep,
            **kwargs,
        )

    return _make
