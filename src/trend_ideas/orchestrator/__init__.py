from trend_ideas.orchestrator.emitter import RunEmitter
from trend_ideas.orchestrator.ideas import DEFAULT_IDEA_POLICY, IdeaGenerationLoop
from trend_ideas.orchestrator.orchestrator import (
    DEFAULT_DENYLIST,
    InvocationResult,
    Orchestrator,
    Outcome,
    fallback_plan,
    fallback_report,
)
from trend_ideas.orchestrator.state_machine import (
    TERMINAL_STATUSES,
    TRANSITIONS,
    Trigger,
    can_transition,
    transition,
)

__all__ = [
    "DEFAULT_DENYLIST",
    "DEFAULT_IDEA_POLICY",
    "IdeaGenerationLoop",
    "InvocationResult",
    "Orchestrator",
    "Outcome",
    "RunEmitter",
    "TERMINAL_STATUSES",
    "TRANSITIONS",
    "Trigger",
    "can_transition",
    "fallback_plan",
    "fallback_report",
    "transition",
]
