"""Operations of the external actors around a run: creation and the approval decision."""

import logging
import time
from collections.abc import Callable

from trend_ideas.data import Approval, Constraints, Run
from trend_ideas.errors import InvalidTransitionError, MissingReportError
from trend_ideas.orchestrator.state_machine import Trigger, can_transition
from trend_ideas.store.base import RunStore

logger = logging.getLogger(__name__)

_DECISION_TRIGGERS = {
    Approval.APPROVED: Trigger.APPROVE,
    Approval.REFINE: Trigger.REFINE,
    Approval.RESTART: Trigger.RESTART,
}


async def create_run(
    runs: RunStore, user_query: str, constraints: Constraints | None = None
) -> str:
    """Create an ``idle`` run and return its id."""
    query = user_query.strip()
    if not query:
        raise ValueError("user_query must not be empty")
    run_id = await runs.insert(user_query=query, constraints=constraints or Constraints())
    logger.info("Created run %s for %r", run_id, query)
    return run_id


async def submit_decision(
    runs: RunStore,
    run_id: str,
    approval: Approval,
    *,
    refinement: str | None = None,
    constraints: Constraints | None = None,
    user_query: str | None = None,
    clock: Callable[[], float] = time.time,
) -> Run:
    """Record a human decision on a run waiting at the approval checkpoint.

    A refine decision may replace the run's constraints and query; these
    become the scope of the next research cycle.

    Raises:
        RunNotFoundError: If the run does not exist.
        InvalidTransitionError: If the run is not waiting for approval.
        MissingReportError: If an approval arrives for a run without a report.
        ValueError: If constraints or a query are given without a refine decision.
    """
    approval = Approval(approval)
    run = await runs.get(run_id)
    trigger = _DECISION_TRIGGERS[approval]
    if not can_transition(run.status, trigger):
        raise InvalidTransitionError(run.status, trigger)
    if approval == Approval.APPROVED and run.research_report is None:
        raise MissingReportError(f"Run {run_id} has no research report to approve")
    if approval !=Approval.REFINE and (constraints is not None or user_query is not None):
        raise ValueError("Only a refine decision can change constraints or the query")

    fields: dict[str, object] = {"approval": approval, "approved_at": clock()}
    if refinement:
        fields["refinement"] = refinement
    if constraints is not None:
        fields["constraints"] = constraints
    if user_query is not None and user_query.strip():
        fields["user_query"] = user_query.strip()

    logger.info("Run %s decision: %s", run_id, approval)
    return await runs.patch(run_id, **fields)
