"""Run lifecycle as an explicit transition table.

Pure functions only: stage effects live in the orchestrator, which routes
every status write through :func:`transition`.
"""

from enum import StrEnum

from trend_ideas.data import RunStatus
from trend_ideas.errors import InvalidTransitionError


class Trigger(StrEnum):
    START = "start"
    PLAN_READY = "plan_ready"
    REPORT_READY = "report_ready"
    NO_CANDIDATES = "no_candidates"
    REPORT_EMITTED = "report_emitted"
    APPROVE = "approve"
    REFINE = "refine"
    RESTART = "restart"
    IDEAS_DONE = "ideas_done"
    FAIL = "fail"


TERMINAL_STATUSES = frozenset({RunStatus.DONE, RunStatus.ERROR})

TRANSITIONS: dict[tuple[RunStatus, Trigger], RunStatus] = {
    (RunStatus.IDLE, Trigger.START): RunStatus.PLANNING,
    (RunStatus.PLANNING, Trigger.PLAN_READY): RunStatus.RESEARCHING,
    (RunStatus.RESEARCHING, Trigger.REPORT_READY): RunStatus.REPORT_READY,
    (RunStatus.RESEARCHING, Trigger.NO_CANDIDATES): RunStatus.AWAITING_APPROVAL,
    (RunStatus.REPORT_READY, Trigger.REPORT_EMITTED): RunStatus.AWAITING_APPROVAL,
    (RunStatus.AWAITING_APPROVAL, Trigger.APPROVE): RunStatus.IDEATING,
    (RunStatus.AWAITING_APPROVAL, Trigger.REFINE): RunStatus.PLANNING,
    (RunStatus.AWAITING_APPROVAL, Trigger.RESTART): RunStatus.PLANNING,
    (RunStatus.IDEATING, Trigger.IDEAS_DONE): RunStatus.DONE,
}

# Any non-terminal stage may fail.
for _status in RunStatus:
    if _status not in TERMINAL_STATUSES:
        TRANSITIONS[(_status, Trigger.FAIL)] = RunStatus.ERROR


def can_transition(status: RunStatus, trigger: Trigger) -> bool:
    return (status, trigger) in TRANSITIONS


def transition(status: RunStatus, trigger: Trigger) -> RunStatus:
    """Return the status reached from ``status`` on ``trigger``.

    Raises:
        InvalidTransitionError: If the edge does not exist.
    """
    try:
        return TRANSITIONS[(status, trigger)]
    except KeyError:
        raise InvalidTransitionError(status, trigger) from None
