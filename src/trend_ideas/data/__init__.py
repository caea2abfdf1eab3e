"""Data models for trend-ideas."""

from trend_ideas.data.models import (
    Approval,
    CacheEntry,
    Constraints,
    ErrorPayload,
    Event,
    EventPayload,
    EventType,
    FindingPayload,
    Idea,
    IdeaPayload,
    LogPayload,
    ReportPayload,
    ResearchPlan,
    ResearchReport,
    Run,
    RunStatus,
    Scope,
    ScopePayload,
    SearchResult,
    SourceRef,
    StatusPayload,
    Surface,
    Trend,
    TrendCandidate,
    TrendCitation,
)

__all__ = [
    "Approval",
    "CacheEntry",
    "Constraints",
    "ErrorPayload",
    "Event",
    "EventPayload",
    "EventType",
    "FindingPayload",
    "Idea",
    "IdeaPayload",
    "LogPayload",
    "ReportPayload",
    "ResearchPlan",
    "ResearchReport",
    "Run",
    "RunStatus",
    "Scope",
    "ScopePayload",
    "SearchResult",
    "SourceRef",
    "StatusPayload",
    "Surface",
    "Trend",
    "TrendCandidate",
    "TrendCitation",
]
