"""Event emission and status writes for a single run."""

import logging
from typing import Any

from trend_ideas.data import (
    ErrorPayload,
    Event,
    FindingPayload,
    Idea,
    IdeaPayload,
    LogPayload,
    ReportPayload,
    ResearchReport,
    Run,
    Scope,
    ScopePayload,
    SourceRef,
    StatusPayload,
    Surface,
    TrendCandidate,
)
from trend_ideas.orchestrator.state_machine import Trigger, transition
from trend_ideas.store.base import EventLog, RunStore

logger = logging.getLogger(__name__)

FINDING_SNIPPET_CHARS = 150


class RunEmitter:
    """Narrates one run into the event log and advances its status.

    Args:
        run_id: Run the events belong to.
        runs: Store holding the run record.
        events: Event log to append to.
    """

    def __init__(self, run_id: str, *, runs: RunStore, events: EventLog) -> None:
        self.run_id = run_id
        self._runs = runs
        self._events = events

    async def status(self, step: str, *, surface: Surface = Surface.MAIN) -> Event:
        return await self._events.append(self.run_id, surface, StatusPayload(step=step))

    async def log(
        self, msg: str, *, level: str = "info", surface: Surface = Surface.MAIN
    ) -> Event:
        return await self._events.append(self.run_id, surface, LogPayload(msg=msg, level=level))

    async def finding(self, candidate: TrendCandidate) -> Event:
        ref = SourceRef(
            url=candidate.url,
            title=candidate.title,
            snippet=candidate.snippet[:FINDING_SNIPPET_CHARS],
            published_date=candidate.published_date,
        )
        payload = FindingPayload(trend_candidate=candidate.title, source_refs=(ref,))
        return await self._events.append(self.run_id, Surface.MAIN, payload)

    async def report(self, report: ResearchReport) -> Event:
        return await self._events.append(self.run_id, Surface.MAIN, ReportPayload(report=report))

    async def scope(self, scope: Scope) -> Event:
        return await self._events.append(self.run_id, Surface.MAIN, ScopePayload(scope=scope))

    async def idea(self, idea: Idea) -> Event:
        return await self._events.append(self.run_id, Surface.SIDEBAR, IdeaPayload(idea=idea))

    async def error(self, message: str, detail: str = "") -> Event:
        payload = ErrorPayload(message=message, detail=detail)
        return await self._events.append(self.run_id, Surface.MAIN, payload)

    async def advance(self, trigger: Trigger, **fields: Any) -> Run:
        """Move the run along ``trigger``, patching ``fields`` in the same write.

        Raises:
            InvalidTransitionError: If the run's current status has no such edge.
        """
        run = await self._runs.get(self.run_id)
        new_status = transition(run.status, trigger)
        logger.debug("Run %s: %s -> %s (%s)", self.run_id, run.status, new_status, trigger)
        return await self._runs.patch(self.run_id, status=new_status, **fields)
