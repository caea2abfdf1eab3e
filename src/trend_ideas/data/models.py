"""Core data models for trend-ideas."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import ClassVar


class RunStatus(StrEnum):
    """Lifecycle status of a run."""

    IDLE = "idle"
    PLANNING = "planning"
    RESEARCHING = "researching"
    REPORT_READY = "report_ready"
    AWAITING_APPROVAL = "awaiting_approval"
    IDEATING = "ideating"
    DONE = "done"
    ERROR = "error"


class Approval(StrEnum):
    """Decision supplied by the human reviewer at the approval checkpoint."""

    APPROVED = "approved"
    REFINE = "refine"
    RESTART = "restart"


class Surface(StrEnum):
    """Event channel: research narration vs. generated ideas."""

    MAIN = "main"
    SIDEBAR = "sidebar"


class EventType(StrEnum):
    STATUS = "status"
    LOG = "log"
    FINDING = "finding"
    REPORT = "report"
    ERROR = "error"
    IDEA = "idea"
    SCOPE = "scope"


@dataclass(frozen=True)
class Constraints:
    """Structured research filters attached to a run.

    ``timeframe`` is either a relative window (``"24h"``, ``"7d"``, ``"30d"``)
    or an absolute ``"year:YYYY"`` marker.
    """

    timeframe: str | None = None
    region: str | None = None
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    platforms: tuple[str, ...] | None = None
    idea_count: int | None = None


@dataclass(frozen=True)
class SearchResult:
    """A single ranked hit returned by a search provider."""

    title: str
    url: str
    content: str
    score: float
    published_date: str | None = None


@dataclass(frozen=True)
class TrendCandidate:
    """A raw search hit before ranking and deduplication into the report."""

    title: str
    url: str
    snippet: str
    relevance_score: float
    published_date: str | None = None


@dataclass(frozen=True)
class SourceRef:
    url: str
    title: str
    snippet: str
    published_date: str | None = None


@dataclass(frozen=True)
class Trend:
    """A deduplicated, confidence-scored, source-cited report item."""

    title: str
    description: str
    confidence: float
    sources: tuple[SourceRef, ...] = ()


@dataclass(frozen=True)
class ResearchReport:
    trends: tuple[Trend, ...]
    generated_at: str


@dataclass(frozen=True)
class Scope:
    """Resolved research and ideation scope for one research cycle."""

    topic: str
    platforms: tuple[str, ...] = ("LinkedIn", "Twitter/X")
    timeframe: str = "7d"
    region: str = "Global"
    idea_count: int = 5
    include: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()

    def to_constraints(self) -> Constraints:
        """Search constraints derived from this scope."""
        return Constraints(
            timeframe=self.timeframe,
            region=self.region,
            include=self.include,
            exclude=self.exclude,
            platforms=self.platforms,
            idea_count=self.idea_count,
        )


@dataclass(frozen=True)
class ResearchPlan:
    queries: tuple[str, ...]
    sources: tuple[str, ...]
    strategy: str
    scope: Scope


@dataclass(frozen=True)
class TrendCitation:
    trend_title: str
    source_url: str | None = None


@dataclass(frozen=True)
class Idea:
    """A platform-specific content idea citing one report trend."""

    platform: str
    idea: str
    trend_citation: TrendCitation
    why: str | None = None


@dataclass(frozen=True)
class Run:
    """Persisted state of one end-to-end ideation session."""

    id: str
    user_query: str
    status: RunStatus = RunStatus.IDLE
    constraints: Constraints = field(default_factory=Constraints)
    research_report: ResearchReport | None = None
    approval: Approval | None = None
    refinement: str | None = None
    approved_at: float | None = None
    created_at: float = 0.0


@dataclass(frozen=True)
class CacheEntry:
    """Cached provider results for one normalized query."""

    normalized_query: str
    query: str
    results: tuple[SearchResult, ...]
    cached_at: float


# ============================================================
# Event payloads
# ============================================================


@dataclass(frozen=True)
class StatusPayload:
    type: ClassVar[EventType] = EventType.STATUS

    step: str


@dataclass(frozen=True)
class LogPayload:
    type: ClassVar[EventType] = EventType.LOG

    msg: str
    level: str = "info"


@dataclass(frozen=True)
class FindingPayload:
    type: ClassVar[EventType] = EventType.FINDING

    trend_candidate: str
    source_refs: tuple[SourceRef, ...] = ()


@dataclass(frozen=True)
class ReportPayload:
    type: ClassVar[EventType] = EventType.REPORT

    report: ResearchReport


@dataclass(frozen=True)
class ErrorPayload:
    type: ClassVar[EventType] = EventType.ERROR

    message: str
    detail: str = ""


@dataclass(frozen=True)
class IdeaPayload:
    type: ClassVar[EventType] = EventType.IDEA

    idea: Idea


@dataclass(frozen=True)
class ScopePayload:
    type: ClassVar[EventType] = EventType.SCOPE

    scope: Scope


EventPayload = (
    StatusPayload
    | LogPayload
    | FindingPayload
    | ReportPayload
    | ErrorPayload
    | IdeaPayload
    | ScopePayload
)


@dataclass(frozen=True)
class Event:
    """An immutable progress increment appended to the event log."""

    run_id: str
    surface: Surface
    payload: EventPayload
    ts: float

    @property
    def type(self) -> EventType:
        return self.payload.type
