"""Run orchestrator: plan, research, synthesize, await approval, ideate."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from trend_ideas.data import (
    Approval,
    Constraints,
    ResearchPlan,
    ResearchReport,
    Run,
    RunStatus,
    Scope,
    ScopePayload,
    SearchResult,
    SourceRef,
    Surface,
    Trend,
    TrendCandidate,
)
from trend_ideas.errors import GenerationError, InvalidTransitionError, MissingReportError
from trend_ideas.generator.base import TextGenerator
from trend_ideas.orchestrator.emitter import RunEmitter
from trend_ideas.orchestrator.ideas import DEFAULT_IDEA_POLICY, IdeaGenerationLoop
from trend_ideas.orchestrator.prompts import (
    build_plan_prompt,
    build_report_prompt,
    build_scope_prompt,
)
from trend_ideas.orchestrator.state_machine import Trigger, can_transition, transition
from trend_ideas.parsing import ParseResult, parse_plan, parse_report, parse_scope
from trend_ideas.retry import BoundedRetry, RetryPolicy
from trend_ideas.run_logger import RunLogger
from trend_ideas.scope import (
    DEFAULT_IDEA_COUNT,
    DEFAULT_PLATFORMS,
    infer_scope,
    scope_from_constraints,
)
from trend_ideas.search.base import SearchProvider
from trend_ideas.search.trends import search_trends
from trend_ideas.store.base import EventLog, RunStore, SearchCache

logger = logging.getLogger(__name__)

DEFAULT_DENYLIST = ("theinformation.com",)
RESULTS_PER_QUERY = 3
CANDIDATE_SNIPPET_CHARS = 200
FALLBACK_REPORT_SIZE = 5
NO_RESULTS_REFINEMENT = "No search results found"

_SEARCH_POLICY = RetryPolicy(max_attempts=1, max_consecutive_failures=None, delay_seconds=0.0)


class Outcome(StrEnum):
    """How an invocation ended."""

    AWAITING_APPROVAL = "awaiting_approval"
    NO_CANDIDATES = "no_candidates"
    COMPLETED = "completed"
    NO_DECISION = "no_decision"
    SUPERSEDED = "superseded"
    FAILED = "failed"


@dataclass(frozen=True)
class InvocationResult:
    run_id: str
    status: RunStatus
    outcome: Outcome
    detail: str = ""


def fallback_plan(scope: Scope) -> ResearchPlan:
    topic = scope.topic
    return ResearchPlan(
        queries=(topic, f"{topic} trends", f"{topic} news"),
        sources=("web",),
        strategy="Default search strategy",
        scope=scope,
    )


def fallback_report(candidates: Sequence[TrendCandidate], *, generated_at: str) -> ResearchReport:
    """One trend per top-scoring candidate, citing that candidate."""
    ranked = sorted(candidates, key=lambda c: c.relevance_score, reverse=True)
    trends = tuple(
        Trend(
            title=c.title,
            description=c.snippet,
            confidence=round(max(0.0, 0.8 - 0.1 * i), 2),
            sources=(
                SourceRef(
                    url=c.url,
                    title=c.title,
                    snippet=c.snippet,
                    published_date=c.published_date,
                ),
            ),
        )
        for i, c in enumerate(ranked[:FALLBACK_REPORT_SIZE])
    )
    return ResearchReport(trends=trends, generated_at=generated_at)


class Orchestrator:
    """Drives a run through its lifecycle.

    Stateless between invocations: every stage reads what it needs from the
    run store and event log, so ``start`` and ``resume`` may run in
    different processes.

    Args:
        runs: Run store.
        events: Event log.
        cache: Search cache shared across runs.
        search: Search provider.
        generator: Text generator.
        denylist: URL substrings never admitted as candidates.
        results_per_query: Top results kept from each search.
        idea_policy: Retry policy for idea slots.
        run_logger: Optional RunLogger for per-invocation stage records.
        now: Returns the current UTC datetime.
        sleep: Awaitable sleep used between idea attempts.
    """

    def __init__(
        self,
        *,
        runs: RunStore,
        events: EventLog,
        cache: SearchCache,
        search: SearchProvider,
        generator: TextGenerator,
        denylist: Sequence[str] = DEFAULT_DENYLIST,
        results_per_query: int = RESULTS_PER_QUERY,
        idea_policy: RetryPolicy = DEFAULT_IDEA_POLICY,
        run_logger: RunLogger | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._runs = runs
        self._events = events
        self._cache = cache
        self._search = search
        self._generator = generator
        self._denylist = tuple(denylist)
        self._results_per_query = results_per_query
        self._idea_policy = idea_policy
        self._run_logger = run_logger
        self._now = now
        self._sleep = sleep

    def emitter(self, run_id: str) -> RunEmitter:
        return RunEmitter(run_id, runs=self._runs, events=self._events)

    # ============================================================
    # Entry points
    # ============================================================

    async def start(self, run_id: str) -> InvocationResult:
        """Run Plan, Research, Synthesize and Await-approval once.

        Raises:
            RunNotFoundError: If the run does not exist.
            InvalidTransitionError: If the run is not ``idle``.
        """
        run = await self._runs.get(run_id)
        if not can_transition(run.status, Trigger.START):
            raise InvalidTransitionError(run.status, Trigger.START)
        self._start_log("start", run)
        emitter = self.emitter(run_id)
        try:
            await emitter.advance(Trigger.START)
            result = await self._research_cycle(run_id, refine=False)
        except Exception as e:
            result = await self._fail(emitter, "Research failed", e)
        return self._finish_log(result)

    async def resume(self, run_id: str) -> InvocationResult:
        """Act on the run's approval decision.

        ``approved`` generates ideas; ``refine`` and ``restart`` loop back to
        planning and end at the next approval checkpoint. Without a decision,
        or when another invocation already claimed the decision, nothing
        changes.

        Raises:
            RunNotFoundError: If the run does not exist.
        """
        run = await self._runs.get(run_id)
        if run.approval is None:
            logger.info("Run %s has no approval decision; nothing to resume", run_id)
            return InvocationResult(run_id, run.status, Outcome.NO_DECISION)

        trigger = {
            Approval.APPROVED: Trigger.APPROVE,
            Approval.REFINE: Trigger.REFINE,
            Approval.RESTART: Trigger.RESTART,
        }[run.approval]
        if not can_transition(run.status, trigger):
            return InvocationResult(
                run_id,
                run.status,
                Outcome.SUPERSEDED,
                f"Run is '{run.status}', not awaiting approval",
            )
        target = transition(run.status, trigger)
        if not await self._runs.compare_and_set_status(run_id, run.status, target):
            logger.warning("Run %s was claimed by another invocation", run_id)
            current = await self._runs.get(run_id)
            return InvocationResult(
                run_id, current.status, Outcome.SUPERSEDED, "Decision already being processed"
            )

        self._start_log("resume", run)
        emitter = self.emitter(run_id)
        try:
            if run.approval == Approval.APPROVED:
                result = await self.generate_ideas(run_id)
            else:
                await self.route_after_approval(run_id, run.approval)
                result = await self._research_cycle(
                    run_id, refine=run.approval == Approval.REFINE
                )
        except Exception as e:
            result = await self._fail(emitter, "Resume failed", e)
        return self._finish_log(result)

    # ============================================================
    # Stages
    # ============================================================

    async def plan(self, run: Run, *, refine: bool = False) -> ResearchPlan:
        """Resolve the scope and produce a research plan. Never fails on model errors."""
        emitter = self.emitter(run.id)
        await emitter.status("Analyzing your request")

        if refine:
            scope = scope_from_constraints(run.user_query, run.constraints)
            await emitter.log(
                f"Refining with: platforms={', '.join(scope.platforms)}, "
                f"ideas={scope.idea_count}, timeframe={scope.timeframe}, region={scope.region}"
            )
        else:
            scope = await self.extract_scope(run)
            await emitter.log(
                f"Scope: topic='{scope.topic}', platforms={', '.join(scope.platforms)}, "
                f"timeframe={scope.timeframe}, ideas={scope.idea_count}"
            )

        now = self._now()
        prompt = build_plan_prompt(scope, today=now.date().isoformat(), current_year=now.year)
        result: ParseResult[ResearchPlan] = await self._generate_and_parse(
            prompt, lambda text: parse_plan(text, scope=scope)
        )
        if result.ok and result.value is not None:
            plan = result.value
        else:
            logger.warning("Using fallback research plan: %s", result.error)
            await emitter.log(f"Using default search plan ({result.error})", level="warning")
            plan = fallback_plan(scope)

        await emitter.status("Research plan ready")
        await emitter.log(f"Plan: {len(plan.queries)} queries. {plan.strategy}")
        return plan

    async def extract_scope(self, run: Run) -> Scope:
        """Scope from the model, with fields it omits taken from the cue parser."""
        current_year = self._now().year
        fallback = infer_scope(run.user_query, run.constraints, current_year=current_year)
        result = await self._generate_and_parse(
            build_scope_prompt(run.user_query, current_year=current_year),
            lambda text: parse_scope(text, fallback=fallback, current_year=current_year),
        )
        if not result.ok:
            logger.info("Scope extraction fell back to cue parsing: %s", result.error)
        return result.unwrap_or(fallback)

    async def research(
        self, run_id: str, plan: ResearchPlan, *, refine: bool = False
    ) -> list[TrendCandidate]:
        """Search every planned query in order, streaming each kept result as a finding."""
        emitter = self.emitter(run_id)
        await emitter.status("Researching trends")

        constraints = plan.scope.to_constraints()
        retry: BoundedRetry[list[SearchResult]] = BoundedRetry(_SEARCH_POLICY, sleep=self._sleep)
        candidates: list[TrendCandidate] = []

        for query in plan.queries:
            await emitter.log(f'Searching: "{query}"')

            async def search(query: str = query) -> list[SearchResult]:
                return await self._cached_search(emitter, query, constraints, use_cache=not refine)

            outcome = await retry.run(search)
            if not outcome.ok or outcome.value is None:
                logger.warning("Search failed for %r: %s", query, outcome.error)
                await emitter.log(f"Search failed for: {query}", level="warning")
                continue

            for result in outcome.value[: self._results_per_query]:
                if self._is_denied(result.url):
                    continue
                candidate = TrendCandidate(
                    title=result.title,
                    url=result.url,
                    snippet=result.content[:CANDIDATE_SNIPPET_CHARS],
                    relevance_score=result.score,
                    published_date=result.published_date,
                )
                candidates.append(candidate)
                await emitter.finding(candidate)

        await emitter.log(f"Found {len(candidates)} trend candidates")
        return candidates

    async def synthesize(
        self, run: Run, plan: ResearchPlan, candidates: Sequence[TrendCandidate]
    ) -> ResearchReport:
        """Build the report, persist it, and move the run to ``report_ready``."""
        emitter = self.emitter(run.id)
        await emitter.status("Synthesizing research report")

        generated_at = self._now().isoformat()
        result = await self._generate_and_parse(
            build_report_prompt(run.user_query, candidates),
            lambda text: parse_report(text, candidates=candidates, generated_at=generated_at),
        )
        if result.ok and result.value is not None:
            report = result.value
        else:
            logger.warning("Using fallback report: %s", result.error)
            await emitter.log(
                f"Report synthesis fell back to top results ({result.error})", level="warning"
            )
            report = fallback_report(candidates, generated_at=generated_at)

        await emitter.advance(Trigger.REPORT_READY, research_report=report)
        await emitter.report(report)
        await emitter.scope(plan.scope)
        await emitter.log(f"Report ready with {len(report.trends)} trends")
        return report

    async def await_approval(self, run_id: str) -> Run:
        """Suspend point: the run waits here for an external decision."""
        emitter = self.emitter(run_id)
        run = await emitter.advance(Trigger.REPORT_EMITTED)
        await emitter.status("Waiting for approval")
        return run

    async def route_after_approval(self, run_id: str, approval: Approval) -> Run:
        """Reset the run for another research cycle after ``refine`` or ``restart``.

        Refine clears the run's event history; restart keeps it.
        """
        emitter = self.emitter(run_id)
        if approval == Approval.REFINE:
            cleared = await self._events.clear(run_id)
            logger.info("Cleared %d events for refine of run %s", cleared, run_id)
            run = await self._runs.patch(run_id, approval=None, research_report=None)
            await emitter.status("Refining search")
        elif approval == Approval.RESTART:
            run = await self._runs.patch(
                run_id, approval=None, research_report=None, refinement=None
            )
            await emitter.status("Restarting research")
        else:
            raise ValueError(f"No loop-back for approval '{approval}'")
        return run

    async def generate_ideas(self, run_id: str) -> InvocationResult:
        """Generate ideas for an approved run already in ``ideating``.

        Raises:
            MissingReportError: If the run has no research report.
        """
        run = await self._runs.get(run_id)
        if run.research_report is None:
            raise MissingReportError(f"Run {run_id} has no research report")
        scope = await self._latest_scope(run_id)
        emitter = self.emitter(run_id)
        await emitter.log("Proceeding to idea generation")

        t0 = time.monotonic()
        loop = IdeaGenerationLoop(
            self._generator, emitter, policy=self._idea_policy, sleep=self._sleep
        )
        ideas = await loop.run(run.research_report, scope.platforms, scope.idea_count)
        self._log_stage("generate_ideas", scope, ideas, time.monotonic() - t0)

        detail = f"Generated {len(ideas)} of {scope.idea_count} ideas"
        return InvocationResult(run_id, RunStatus.DONE, Outcome.COMPLETED, detail)

    # ============================================================
    # Helpers
    # ============================================================

    async def _research_cycle(self, run_id: str, *, refine: bool) -> InvocationResult:
        """Plan through await-approval, starting from ``planning``."""
        run = await self._runs.get(run_id)
        emitter = self.emitter(run_id)

        t0 = time.monotonic()
        plan = await self.plan(run, refine=refine)
        self._log_stage("plan", run.user_query, plan, time.monotonic() - t0)
        await emitter.advance(Trigger.PLAN_READY)

        t0 = time.monotonic()
        candidates = await self.research(run_id, plan, refine=refine)
        self._log_stage("research", plan.queries, candidates, time.monotonic() - t0)

        if not candidates:
            await emitter.log(
                "No relevant trends found. Try refining your search parameters.",
                level="warning",
            )
            await emitter.status("No results found. Please refine the search.")
            run = await emitter.advance(
                Trigger.NO_CANDIDATES,
                approval=Approval.REFINE,
                refinement=NO_RESULTS_REFINEMENT,
            )
            return InvocationResult(
                run_id, run.status, Outcome.NO_CANDIDATES, NO_RESULTS_REFINEMENT
            )

        t0 = time.monotonic()
        report = await self.synthesize(run, plan, candidates)
        self._log_stage("synthesize", candidates, report, time.monotonic() - t0)

        run = await self.await_approval(run_id)
        return InvocationResult(
            run_id, run.status, Outcome.AWAITING_APPROVAL, f"{len(report.trends)} trends"
        )

    async def _generate_and_parse(
        self, prompt: str, parse: Callable[[str], ParseResult]
    ) -> ParseResult:
        try:
            text = await self._generator.generate(prompt)
        except GenerationError as e:
            return ParseResult(error=str(e))
        return parse(text)

    async def _cached_search(
        self,
        emitter: RunEmitter,
        query: str,
        constraints: Constraints,
        *,
        use_cache: bool,
    ) -> list[SearchResult]:
        cached = await self._cache.get(query) if use_cache else None
        if cached:
            await emitter.log(f'Using cached results for: "{query}"')
            return cached

        await emitter.log(f'Fetching fresh results for: "{query}"')
        results = await search_trends(self._search, query, constraints)
        await self._cache.put(query, results)
        return results

    def _is_denied(self, url: str) -> bool:
        return any(entry in url for entry in self._denylist)

    async def _latest_scope(self, run_id: str) -> Scope:
        for event in reversed(await self._events.query(run_id, Surface.MAIN)):
            if isinstance(event.payload, ScopePayload):
                return event.payload.scope
        run = await self._runs.get(run_id)
        return Scope(
            topic=run.user_query, platforms=DEFAULT_PLATFORMS, idea_count=DEFAULT_IDEA_COUNT
        )

    async def _fail(self, emitter: RunEmitter, message: str, error: Exception) -> InvocationResult:
        logger.exception("%s for run %s", message, emitter.run_id)
        try:
            await emitter.error(message, detail=str(error))
            run = await self._runs.get(emitter.run_id)
            if can_transition(run.status, Trigger.FAIL):
                run = await emitter.advance(Trigger.FAIL)
            status = run.status
        except Exception:
            logger.exception("Could not record failure for run %s", emitter.run_id)
            status = RunStatus.ERROR
        return InvocationResult(emitter.run_id, status, Outcome.FAILED, str(error))

    def _start_log(self, entry_point: str, run: Run) -> None:
        if self._run_logger:
            self._run_logger.start_invocation(entry_point, run.id, run.user_query)

    def _log_stage(
        self, stage: str, input_data: object, output_data: object, duration: float
    ) -> None:
        if self._run_logger:
            self._run_logger.log_stage(stage, input_data, output_data, duration)

    def _finish_log(self, result: InvocationResult) -> InvocationResult:
        if self._run_logger:
            path = self._run_logger.finish_invocation(result.status, result.outcome)
            if path:
                logger.info(f"Invocation log written to: {path}")
        return result
