"""Pydantic configuration models for trend-ideas components."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

# ============================================================
# Generator Configs
# ============================================================


class ClaudeGeneratorConfig(BaseModel):
    """Configuration for ClaudeTextGenerator."""

    type: Literal["claude"] = "claude"
    model: str = "claude-haiku-4-5-20251001"
    max_tokens: int = 2048
    temperature: float = 0.2
    system_prompt: str | None = None

    model_config = {"frozen": True}


# Single provider today; becomes a discriminated union when another is added.
GeneratorConfig = ClaudeGeneratorConfig


# ============================================================
# Search Configs
# ============================================================


class GoogleSearchConfig(BaseModel):
    """Configuration for GoogleSearchProvider. Credentials come from the environment."""

    type: Literal["google"] = "google"
    fallback_on_error: bool = True
    timeout: float = 30.0

    model_config = {"frozen": True}


class MockSearchConfig(BaseModel):
    """Deterministic offline search results."""

    type: Literal["mock"] = "mock"

    model_config = {"frozen": True}


SearchConfig = Annotated[
    GoogleSearchConfig | MockSearchConfig,
    Field(discriminator="type"),
]


# ============================================================
# Store Configs
# ============================================================


class MemoryStoreConfig(BaseModel):
    """In-process stores; state is lost when the process exits."""

    type: Literal["memory"] = "memory"
    cache_ttl_seconds: float = 3600.0

    model_config = {"frozen": True}


class MongoStoreConfig(BaseModel):
    """MongoDB stores. ``uri`` defaults to the MONGODB_URI env var."""

    type: Literal["mongo"] = "mongo"
    uri: str | None = None
    database: str = "trend_ideas"
    cache_ttl_seconds: float = 3600.0

    model_config = {"frozen": True}


StoreConfig = Annotated[
    MemoryStoreConfig | MongoStoreConfig,
    Field(discriminator="type"),
]


# ============================================================
# Orchestrator Config
# ============================================================


class IdeaRetryConfig(BaseModel):
    """Per-slot retry policy of the idea generation loop."""

    max_attempts: int = Field(default=3, ge=1)
    max_consecutive_failures: int = Field(default=10, ge=1)
    delay_seconds: float = Field(default=1.0, ge=0.0)

    model_config = {"frozen": True}


class OrchestratorConfig(BaseModel):
    """Research and ideation settings."""

    denylist: list[str] = Field(default_factory=lambda: ["theinformation.com"])
    results_per_query: int = Field(default=3, ge=1)
    idea_retry: IdeaRetryConfig = Field(default_factory=IdeaRetryConfig)

    model_config = {"frozen": True}


# ============================================================
# Logging Config
# ============================================================


class LoggingConfig(BaseModel):
    """Configuration for per-invocation stage logging."""

    enabled: bool = False
    log_dir: str = "logs"

    model_config = {"frozen": True}


# ============================================================
# Root Config
# ============================================================


class TrendIdeasConfig(BaseModel):
    """Root configuration for trend-ideas."""

    generator: ClaudeGeneratorConfig = Field(default_factory=ClaudeGeneratorConfig)
    search: GoogleSearchConfig | MockSearchConfig = Field(
        default_factory=GoogleSearchConfig, discriminator="type"
    )
    store: MemoryStoreConfig | MongoStoreConfig = Field(
        default_factory=MemoryStoreConfig, discriminator="type"
    )
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}
