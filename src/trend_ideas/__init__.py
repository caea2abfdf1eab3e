"""Human-in-the-loop trend research and content ideation."""

from trend_ideas.approval import create_run, submit_decision
from trend_ideas.data import (
    Approval,
    Constraints,
    Event,
    Idea,
    ResearchReport,
    Run,
    RunStatus,
    Scope,
    Surface,
    Trend,
    TrendCandidate,
)
from trend_ideas.errors import (
    GenerationError,
    InvalidTransitionError,
    MissingReportError,
    ParseError,
    RunNotFoundError,
    SearchError,
    TrendIdeasError,
)
from trend_ideas.orchestrator import IdeaGenerationLoop, InvocationResult, Orchestrator, Outcome

__all__ = [
    "Approval",
    "Constraints",
    "Event",
    "GenerationError",
    "Idea",
    "IdeaGenerationLoop",
    "InvalidTransitionError",
    "InvocationResult",
    "MissingReportError",
    "Orchestrator",
    "Outcome",
    "ParseError",
    "ResearchReport",
    "Run",
    "RunNotFoundError",
    "RunStatus",
    "Scope",
    "SearchError",
    "Surface",
    "Trend",
    "TrendCandidate",
    "TrendIdeasError",
    "create_run",
    "submit_decision",
]
