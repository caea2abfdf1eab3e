"""Tests for run creation and approval decisions."""

import pytest

from trend_ideas import create_run, submit_decision
from trend_ideas.data import Approval, Constraints, ResearchReport, RunStatus, Trend
from trend_ideas.errors import InvalidTransitionError, MissingReportError, RunNotFoundError


class TestCreateRun:
    async def test_creates_idle_run(self, runs) -> None:
        run_id = await create_run(runs, "  AI trends  ", Constraints(region="EU"))

        run = await runs.get(run_id)
        assert run.status == RunStatus.IDLE
        assert run.user_query == "AI trends"
        assert run.constraints.region == "EU"

    async def test_blank_query_rejected(self, runs) -> None:
        with pytest.raises(ValueError):
            await create_run(runs, "   ")


class TestSubmitDecision:
    @pytest.fixture
    async def waiting_run(self, runs) -> str:
        run_id = await create_run(runs, "AI trends")
        await runs.patch(run_id, status=RunStatus.AWAITING_APPROVAL)
        return run_id

    @pytest.fixture
    async def reported_run(self, runs, waiting_run) -> str:
        report = ResearchReport(
            trends=(Trend(title="Agents", description="d", confidence=0.8),),
            generated_at="2026-03-02T09:30:00+00:00",
        )
        await runs.patch(waiting_run, research_report=report)
        return waiting_run

    async def test_approve_without_report_rejected(self, runs, waiting_run) -> None:
        with pytest.raises(MissingReportError):
            await submit_decision(runs, waiting_run, Approval.APPROVED)

        run = await runs.get(waiting_run)
        assert run.approval is None
        assert run.approved_at is None
        assert run.status == RunStatus.AWAITING_APPROVAL

    async def test_refine_allowed_without_report(self, runs, waiting_run) -> None:
        run = await submit_decision(runs, waiting_run, Approval.REFINE)
        assert run.approval == Approval.REFINE

    async def test_approve(self, runs, reported_run) -> None:
        run = await submit_decision(runs, reported_run, Approval.APPROVED, clock=lambda: 99.0)

        assert run.approval == Approval.APPROVED
        assert run.approved_at == 99.0
        assert run.status == RunStatus.AWAITING_APPROVAL

    async def test_refine_replaces_constraints_and_query(self, runs, waiting_run) -> None:
        constraints = Constraints(timeframe="30d", platforms=("YouTube",))
        run = await submit_decision(
            runs,
            waiting_run,
            Approval.REFINE,
            refinement="Video only",
            constraints=constraints,
            user_query=" AI video tools ",
        )

        assert run.approval == Approval.REFINE
        assert run.refinement == "Video only"
        assert run.constraints == constraints
        assert run.user_query == "AI video tools"

    async def test_accepts_plain_string_decision(self, runs, waiting_run) -> None:
        run = await submit_decision(runs, waiting_run, "restart")
        assert run.approval == Approval.RESTART

    async def test_constraints_require_refine(self, runs, reported_run) -> None:
        with pytest.raises(ValueError):
            await submit_decision(
                runs, reported_run, Approval.APPROVED, constraints=Constraints(region="EU")
            )

    async def test_run_not_waiting(self, runs) -> None:
        run_id = await create_run(runs, "AI trends")
        with pytest.raises(InvalidTransitionError):
            await submit_decision(runs, run_id, Approval.APPROVED)
        assert (await runs.get(run_id)).approval is None

    async def test_unknown_run(self, runs) -> None:
        with pytest.raises(RunNotFoundError):
            await submit_decision(runs, "missing", Approval.APPROVED)
