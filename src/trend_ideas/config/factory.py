"""Factory functions to create components from configuration."""

import os
from dataclasses import dataclass
from pathlib import Path

from pymongo import MongoClient

from trend_ideas.config.models import (
    ClaudeGeneratorConfig,
    GeneratorConfig,
    GoogleSearchConfig,
    MemoryStoreConfig,
    MockSearchConfig,
    MongoStoreConfig,
    OrchestratorConfig,
    SearchConfig,
    StoreConfig,
    TrendIdeasConfig,
)
from trend_ideas.generator.base import TextGenerator
from trend_ideas.generator.claude import ClaudeTextGenerator
from trend_ideas.orchestrator import Orchestrator
from trend_ideas.retry import RetryPolicy
from trend_ideas.run_logger import RunLogger
from trend_ideas.search.base import SearchProvider
from trend_ideas.search.google import GoogleSearchProvider
from trend_ideas.search.mock import MockSearchProvider
from trend_ideas.store.base import EventLog, RunStore, SearchCache
from trend_ideas.store.memory import InMemoryEventLog, InMemoryRunStore, InMemorySearchCache
from trend_ideas.store.mongo import (
    MongoEventLog,
    MongoRunStore,
    MongoSearchCache,
    ensure_indexes,
)

DEFAULT_MONGODB_URI = "mongodb://localhost:27017/"


@dataclass(frozen=True)
class Stores:
    runs: RunStore
    events: EventLog
    cache: SearchCache


@dataclass(frozen=True)
class Components:
    """Everything a driver needs to create, advance, and inspect runs."""

    orchestrator: Orchestrator
    stores: Stores
    run_logger: RunLogger | None


def create_generator(config: GeneratorConfig) -> TextGenerator:
    """Create a text generator from config.

    Uses explicit type matching rather than getattr.
    """
    if isinstance(config, ClaudeGeneratorConfig):
        return ClaudeTextGenerator(
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            system_prompt=config.system_prompt,
        )
    msg = f"Unknown generator config type: {type(config)}"
    raise ValueError(msg)


def create_search_provider(config: SearchConfig) -> SearchProvider:
    """Create a search provider from config."""
    if isinstance(config, GoogleSearchConfig):
        return GoogleSearchProvider(
            fallback_on_error=config.fallback_on_error,
            timeout=config.timeout,
        )
    if isinstance(config, MockSearchConfig):
        return MockSearchProvider()
    msg = f"Unknown search config type: {type(config)}"
    raise ValueError(msg)


def create_stores(config: StoreConfig) -> Stores:
    """Create run, event, and cache stores sharing one backend."""
    if isinstance(config, MemoryStoreConfig):
        return Stores(
            runs=InMemoryRunStore(),
            events=InMemoryEventLog(),
            cache=InMemorySearchCache(ttl_seconds=config.cache_ttl_seconds),
        )
    if isinstance(config, MongoStoreConfig):
        uri = config.uri or os.environ.get("MONGODB_URI", DEFAULT_MONGODB_URI)
        db = MongoClient(uri)[config.database]
        ensure_indexes(db)
        return Stores(
            runs=MongoRunStore(db),
            events=MongoEventLog(db),
            cache=MongoSearchCache(db, ttl_seconds=config.cache_ttl_seconds),
        )
    msg = f"Unknown store config type: {type(config)}"
    raise ValueError(msg)


def create_orchestrator(
    config: OrchestratorConfig,
    *,
    stores: Stores,
    search: SearchProvider,
    generator: TextGenerator,
    run_logger: RunLogger | None = None,
) -> Orchestrator:
    retry = config.idea_retry
    return Orchestrator(
        runs=stores.runs,
        events=stores.events,
        cache=stores.cache,
        search=search,
        generator=generator,
        denylist=config.denylist,
        results_per_query=config.results_per_query,
        idea_policy=RetryPolicy(
            max_attempts=retry.max_attempts,
            max_consecutive_failures=retry.max_consecutive_failures,
            delay_seconds=retry.delay_seconds,
        ),
        run_logger=run_logger,
    )


def create_from_config(
    config: TrendIdeasConfig,
    *,
    log_override: bool | None = None,
    log_dir_override: str | None = None,
) -> Components:
    """Create a complete orchestrator and its stores from root config.

    Args:
        config: Root configuration.
        log_override: Override the config's logging.enabled setting.
        log_dir_override: Override the config's logging.log_dir setting.

    Returns:
        Components; ``run_logger`` is None if logging is disabled.
    """
    log_enabled = log_override if log_override is not None else config.logging.enabled
    log_dir = Path(log_dir_override if log_dir_override is not None else config.logging.log_dir)

    run_logger: RunLogger | None = None
    if log_enabled:
        run_logger = RunLogger(log_dir=log_dir, enabled=True)

    stores = create_stores(config.store)
    orchestrator = create_orchestrator(
        config.orchestrator,
        stores=stores,
        search=create_search_provider(config.search),
        generator=create_generator(config.generator),
        run_logger=run_logger,
    )
    return Components(orchestrator=orchestrator, stores=stores, run_logger=run_logger)
