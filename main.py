#!/usr/bin/env python
"""CLI for the trend-ideas research and ideation assistant."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from trend_ideas import (
    Approval,
    Constraints,
    InvalidTransitionError,
    MissingReportError,
    RunStatus,
    Surface,
    create_run,
    submit_decision,
)
from trend_ideas.config import Components, create_from_config, get_default_config_path, load_config
from trend_ideas.data import (
    ErrorPayload,
    Event,
    FindingPayload,
    IdeaPayload,
    LogPayload,
    ReportPayload,
    ResearchReport,
    ScopePayload,
    StatusPayload,
)

logger = logging.getLogger(__name__)

Command = Literal["run", "start", "decide", "events", "purge-cache"]

_DECISIONS = {
    "approve": Approval.APPROVED,
    "refine": Approval.REFINE,
    "restart": Approval.RESTART,
}


class CLIArgs(BaseModel):
    """Validated CLI arguments."""

    command: Command
    config: Path
    query: str | None = None
    run_id: str | None = None
    decision: Literal["approve", "refine", "restart"] | None = None
    surface: Surface | None = None
    refinement: str | None = None
    timeframe: str | None = None
    region: str | None = None
    platforms: list[str] | None = None
    idea_count: int | None = Field(default=None, ge=1)
    include: list[str] = []
    exclude: list[str] = []
    log: bool = False
    log_dir: str = "logs"

    @field_validator("config")
    @classmethod
    def config_must_exist(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"Config file not found: {v}")
        return v

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Query must not be empty")
        return v

    @model_validator(mode="after")
    def command_fields_present(self) -> "CLIArgs":
        if self.command in ("run", "start") and self.query is None:
            raise ValueError(f"'{self.command}' requires a query")
        if self.command == "decide" and (self.run_id is None or self.decision is None):
            raise ValueError("'decide' requires a run id and a decision")
        if self.command == "events" and self.run_id is None:
            raise ValueError("'events' requires a run id")
        return self

    def constraints(self) -> Constraints:
        return Constraints(
            timeframe=self.timeframe,
            region=self.region,
            include=tuple(self.include),
            exclude=tuple(self.exclude),
            platforms=tuple(self.platforms) if self.platforms else None,
            idea_count=self.idea_count,
        )

    def has_constraints(self) -> bool:
        return self.constraints() != Constraints()


def format_report(report: ResearchReport) -> str:
    lines = [f"Research report ({len(report.trends)} trends, {report.generated_at}):"]
    for i, trend in enumerate(report.trends, 1):
        lines.append(f"\n{i}. {trend.title}  (confidence {trend.confidence:.2f})")
        if trend.description:
            lines.append(f"   {trend.description}")
        for source in trend.sources:
            lines.append(f"   - {source.url}")
    return "\n".join(lines)


def format_event(event: Event) -> str:
    payload = event.payload
    prefix = f"[{event.surface}] {event.type:<7}"
    if isinstance(payload, StatusPayload):
        return f"{prefix} {payload.step}"
    if isinstance(payload, LogPayload):
        return f"{prefix} ({payload.level}) {payload.msg}"
    if isinstance(payload, FindingPayload):
        url = payload.source_refs[0].url if payload.source_refs else ""
        return f"{prefix} {payload.trend_candidate} {url}"
    if isinstance(payload, ReportPayload):
        return f"{prefix} {len(payload.report.trends)} trends"
    if isinstance(payload, ScopePayload):
        scope = payload.scope
        return f"{prefix} {', '.join(scope.platforms)} x{scope.idea_count} ({scope.timeframe})"
    if isinstance(payload, IdeaPayload):
        idea = payload.idea
        return f"{prefix} {idea.platform}: {idea.idea} (cites {idea.trend_citation.trend_title})"
    if isinstance(payload, ErrorPayload):
        return f"{prefix} {payload.message}: {payload.detail}"
    return prefix


async def print_ideas(components: Components, run_id: str) -> None:
    ideas = [
        e.payload
        for e in await components.stores.events.query(run_id, Surface.SIDEBAR)
        if isinstance(e.payload, IdeaPayload)
    ]
    print(f"\n{len(ideas)} content ideas:\n")
    for i, payload in enumerate(ideas, 1):
        idea = payload.idea
        print(f"{i}. [{idea.platform}] {idea.idea}")
        citation = idea.trend_citation
        source = f" ({citation.source_url})" if citation.source_url else ""
        print(f"   Trend: {citation.trend_title}{source}")


async def current_constraints(components: Components, run_id: str) -> Constraints:
    """Constraints matching the scope of the last research cycle, for a refine without edits."""
    for event in reversed(await components.stores.events.query(run_id, Surface.MAIN)):
        if isinstance(event.payload, ScopePayload):
            return event.payload.scope.to_constraints()
    return (await components.stores.runs.get(run_id)).constraints


def prompt_decision(*, can_approve: bool = True) -> tuple[Approval, str | None] | None:
    """Ask for a decision on stdin. Returns None to quit.

    Approval is only offered when the run has a report to approve.
    """
    question = "[r]efine, re[s]tart or [q]uit? "
    if can_approve:
        question = "[a]pprove, " + question
    while True:
        answer = input("\n" + question).strip().lower()
        if can_approve and answer in ("a", "approve"):
            return Approval.APPROVED, None
        if answer in ("r", "refine"):
            note = input("Refinement note (optional): ").strip()
            return Approval.REFINE, note or None
        if answer in ("s", "restart"):
            return Approval.RESTART, None
        if answer in ("q", "quit"):
            return None


async def run_interactive(args: CLIArgs, components: Components) -> None:
    orchestrator = components.orchestrator
    runs = components.stores.runs

    run_id = await create_run(runs, args.query, args.constraints())
    logger.info(f"Created run {run_id}")
    result = await orchestrator.start(run_id)

    while True:
        run = await runs.get(run_id)
        logger.info(f"Status: {result.status} ({result.outcome}) {result.detail}")
        if run.status == RunStatus.DONE:
            await print_ideas(components, run_id)
            return
        if run.status == RunStatus.ERROR:
            logger.error(f"Run failed: {result.detail}")
            sys.exit(1)

        if run.research_report is not None:
            print("\n" + format_report(run.research_report))
        else:
            print(f"\nNo report: {run.refinement or 'no candidates'}")

        decision = prompt_decision(can_approve=run.research_report is not None)
        if decision is None:
            logger.info(f"Run {run_id} left awaiting approval")
            return
        approval, note = decision
        constraints = None
        if approval == Approval.REFINE:
            constraints = await current_constraints(components, run_id)
        await submit_decision(runs, run_id, approval, refinement=note, constraints=constraints)
        result = await orchestrator.resume(run_id)


async def run(args: CLIArgs) -> None:
    """Execute one CLI command with the given configuration."""
    config = load_config(args.config)
    components = create_from_config(
        config,
        log_override=args.log if args.log else None,
        log_dir_override=args.log_dir if args.log_dir != "logs" else None,
    )
    logger.info(f"Config: {args.config}")

    if args.command == "run":
        await run_interactive(args, components)
    elif args.command == "start":
        run_id = await create_run(components.stores.runs, args.query, args.constraints())
        result = await components.orchestrator.start(run_id)
        print(f"{run_id} {result.status} {result.outcome} {result.detail}")
    elif args.command == "decide":
        approval = _DECISIONS[args.decision]
        refine_changes = approval == Approval.REFINE and args.has_constraints()
        try:
            await submit_decision(
                components.stores.runs,
                args.run_id,
                approval,
                refinement=args.refinement,
                constraints=args.constraints() if refine_changes else None,
            )
        except (InvalidTransitionError, MissingReportError) as e:
            logger.error(f"Decision rejected: {e}")
            sys.exit(1)
        result = await components.orchestrator.resume(args.run_id)
        print(f"{args.run_id} {result.status} {result.outcome} {result.detail}")
        if result.status == RunStatus.DONE:
            await print_ideas(components, args.run_id)
    elif args.command == "events":
        for event in await components.stores.events.query(args.run_id, args.surface):
            print(format_event(event))
    elif args.command == "purge-cache":
        purged = await components.stores.cache.purge_expired()
        print(f"Purged {purged} expired search cache entries")

    if components.run_logger and components.run_logger.last_log_path:
        logger.info(f"\nLast invocation log: {components.run_logger.last_log_path}")


def _add_constraint_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--timeframe", help='Timeframe such as "7d", "24h" or "year:2025"')
    parser.add_argument("--region", help="Region to focus on (default: Global)")
    parser.add_argument(
        "--platform", dest="platforms", action="append", help="Target platform (repeatable)"
    )
    parser.add_argument("--ideas", dest="idea_count", type=int, help="Number of ideas to generate")
    parser.add_argument(
        "--include", action="append", default=[], help="Keyword to include (repeatable)"
    )
    parser.add_argument(
        "--exclude", action="append", default=[], help="Keyword to exclude (repeatable)"
    )


def main() -> None:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Research trends and generate content ideas.")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to YAML config file (default: configs/default.yaml)",
    )
    parser.add_argument(
        "--log",
        action="store_true",
        default=False,
        help="Enable per-invocation stage logging to JSON files",
    )
    parser.add_argument(
        "--log-dir",
        type=str,
        default="logs",
        help="Directory for log files (default: logs/)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run_parser = sub.add_parser("run", help="Research a query and review it interactively")
    run_parser.add_argument("query", help="e.g. 'AI trends for LinkedIn this week'")
    _add_constraint_flags(run_parser)

    start_parser = sub.add_parser(
        "start", help="Create a run and research it up to the approval checkpoint"
    )
    start_parser.add_argument("query")
    _add_constraint_flags(start_parser)

    decide_parser = sub.add_parser(
        "decide", help="Submit an approval decision and resume the run (persistent store only)"
    )
    decide_parser.add_argument("run_id")
    decide_parser.add_argument("decision", choices=sorted(_DECISIONS))
    decide_parser.add_argument("--note", dest="refinement", help="Refinement note")
    _add_constraint_flags(decide_parser)

    events_parser = sub.add_parser("events", help="Print a run's event log")
    events_parser.add_argument("run_id")
    events_parser.add_argument("--surface", choices=[s.value for s in Surface])

    sub.add_parser("purge-cache", help="Delete expired search cache entries")

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    ns = parser.parse_args()
    config_path: Path = ns.config if ns.config else get_default_config_path()

    try:
        args = CLIArgs(
            command=ns.command,
            config=config_path,
            query=getattr(ns, "query", None),
            run_id=getattr(ns, "run_id", None),
            decision=getattr(ns, "decision", None),
            surface=getattr(ns, "surface", None),
            refinement=getattr(ns, "refinement", None),
            timeframe=getattr(ns, "timeframe", None),
            region=getattr(ns, "region", None),
            platforms=getattr(ns, "platforms", None),
            idea_count=getattr(ns, "idea_count", None),
            include=getattr(ns, "include", []),
            exclude=getattr(ns, "exclude", []),
            log=ns.log,
            log_dir=ns.log_dir,
        )
    except Exception as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        asyncio.run(run(args))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
