"""
hr_engines.routing -- Stage routing and step numbering.

Responsibility:
    Decide which state a routed transition lands in for a given requester
    role (skipping approval stages that do not apply), list the effective
    approval route, and map statuses to their "step N of M" position.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import hr_kernel/domain types.

Invariants enforced:
    - A stage applies to a requester when the role is in ``applies_to``
      (if set) and not in ``skip_for``.
    - The first non-pending state of the approval sequence (the approved
      outcome) is never skipped.
    - ``step_position`` is a total function over a workflow's states and
      is never stored.

Failure modes:
    - ValueError for a status the workflow does not declare, or a routed
      transition whose target is missing from the approval sequence
      (a workflow definition bug).
"""

from __future__ import annotations

from hr_engines.tracer import traced_engine
from hr_kernel.domain.dtos import StepPosition
from hr_kernel.domain.values import RequestStatus, Role, step_name
from hr_kernel.domain.workflow import Stage, Transition, Workflow

_NEGATIVE_OUTCOMES = frozenset({
    RequestStatus.REJECTED,
    RequestStatus.ARCHIVED,
    RequestStatus.CANCELLED,
})


def stage_applies(stage: Stage, requester_role: Role) -> bool:
    """Whether ``stage`` is part of the route for this requester role."""
    if not stage.is_pending:
        return True
    if stage.applies_to is not None and requester_role not in stage.applies_to:
        return False
    return requester_role not in stage.skip_for


@traced_engine("routing", "1.0", fingerprint_fields=("requester_role",))
def next_state(
    workflow: Workflow,
    transition: Transition,
    *,
    requester_role: Role,
) -> RequestStatus:
    """Target state of ``transition`` for a requester with ``requester_role``."""
    if not transition.routed:
        return transition.to_state

    sequence = workflow.approval_sequence
    if transition.to_state not in sequence:
        raise ValueError(
            f"{workflow.name}: routed target {transition.to_state} "
            "is not in the approval sequence"
        )
    start = sequence.index(transition.to_state)
    for status in sequence[start:]:
        stage = workflow.stage(status)
        if stage is None or stage_applies(stage, requester_role):
            return status
    return sequence[-1]


def effective_route(workflow: Workflow, requester_role: Role) -> tuple[RequestStatus, ...]:
    """Approval states a requester with ``requester_role`` will pass through."""
    route: list[RequestStatus] = []
    for status in workflow.approval_sequence:
        stage = workflow.stage(status)
        if stage is None or stage_applies(stage, requester_role):
            route.append(status)
    return tuple(route)


def step_position(workflow: Workflow, status: RequestStatus | str) -> StepPosition:
    """Position of ``status`` in the workflow's approval progression."""
    status = RequestStatus(status)
    if status not in workflow.states:
        raise ValueError(f"{workflow.name}: unknown status {status}")

    pending = [s.status for s in workflow.pending_stages]
    total = len(pending)
    label = step_name(status)

    match status:
        case _ if status in _NEGATIVE_OUTCOMES:
            return StepPosition(index=None, total=total, label=label)
        case _ if status == workflow.initial_state:
            return StepPosition(index=0, total=total, label=label)
        case _ if status in pending:
            return StepPosition(index=pending.index(status) + 1, total=total, label=label)
        case (
            RequestStatus.APPROVED_OPEN
            | RequestStatus.HIRING_IN_PROGRESS
            | RequestStatus.APPROVED
            | RequestStatus.COMPLETED
        ):
            return StepPosition(index=total, total=total, label=label)
        case _:
            raise ValueError(f"{workflow.name}: no step position for {status}")
