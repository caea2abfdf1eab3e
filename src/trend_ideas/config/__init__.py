"""Configuration module for trend-ideas."""

from trend_ideas.config.factory import (
    Components,
    Stores,
    create_from_config,
    create_generator,
    create_search_provider,
    create_stores,
)
from trend_ideas.config.loader import get_default_config_path, load_config
from trend_ideas.config.models import (
    ClaudeGeneratorConfig,
    GoogleSearchConfig,
    IdeaRetryConfig,
    LoggingConfig,
    MemoryStoreConfig,
    MockSearchConfig,
    MongoStoreConfig,
    OrchestratorConfig,
    TrendIdeasConfig,
)

__all__ = [
    "ClaudeGeneratorConfig",
    "Components",
    "GoogleSearchConfig",
    "IdeaRetryConfig",
    "LoggingConfig",
    "MemoryStoreConfig",
    "MockSearchConfig",
    "MongoStoreConfig",
    "OrchestratorConfig",
    "Stores",
    "TrendIdeasConfig",
    "create_from_config",
    "create_generator",
    "create_search_provider",
    "create_stores",
    "get_default_config_path",
    "load_config",
]
