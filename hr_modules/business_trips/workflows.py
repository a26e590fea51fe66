"""Business Trip Workflows.

State machine for business travel: manager, HR and finance approval.  The
requester may cancel at any point until the trip is completed.
"""

from hr_kernel.domain.values import (
    ActorRule,
    ApprovalAction,
    RequestStatus,
    Role,
    WorkflowType,
)
from hr_kernel.domain.workflow import Stage, Transition, Workflow
from hr_kernel.logging_config import get_logger

logger = get_logger("modules.business_trips.workflows")

S = RequestStatus
A = ApprovalAction


TRIP_STAGES = (
    Stage(
        S.PENDING_MANAGER,
        Role.MANAGER,
        applies_to=frozenset({Role.EMPLOYEE, Role.MANAGER}),
    ),
    Stage(S.PENDING_HR, Role.HOD_HR, skip_for=frozenset({Role.HOD_HR})),
    Stage(S.PENDING_FINANCE, Role.HOD_FINANCE, skip_for=frozenset({Role.HOD_FINANCE})),
    Stage(S.APPROVED, Role.HOD_HR, is_pending=False),
)

TRIP_APPROVAL_SEQUENCE = (
    S.PENDING_MANAGER,
    S.PENDING_HR,
    S.PENDING_FINANCE,
    S.APPROVED,
)


def _pending_stage_transitions(status: RequestStatus, approve_to: RequestStatus) -> tuple[Transition, ...]:
    return (
        Transition(status, approve_to, A.APPROVE, routed=True),
        Transition(status, S.REJECTED, A.REJECT),
        Transition(status, S.DRAFT, A.REQUEST_CHANGE, bumps_revision=True),
        Transition(status, status, A.HOLD, holds=True),
        Transition(status, S.CANCELLED, A.CANCEL, actor=ActorRule.REQUESTER),
    )


TRIP_WORKFLOW = Workflow(
    name="business_trip",
    workflow_type=WorkflowType.BUSINESS_TRIP,
    description="Business travel approval lifecycle",
    initial_state=S.DRAFT,
    states=(
        S.DRAFT,
        S.PENDING_MANAGER,
        S.PENDING_HR,
        S.PENDING_FINANCE,
        S.APPROVED,
        S.COMPLETED,
        S.REJECTED,
        S.CANCELLED,
    ),
    transitions=(
        Transition(S.DRAFT, S.PENDING_MANAGER, A.SUBMIT, actor=ActorRule.REQUESTER, routed=True),
        Transition(S.DRAFT, S.CANCELLED, A.CANCEL, actor=ActorRule.REQUESTER),
        *_pending_stage_transitions(S.PENDING_MANAGER, S.PENDING_HR),
        *_pending_stage_transitions(S.PENDING_HR, S.PENDING_FINANCE),
        *_pending_stage_transitions(S.PENDING_FINANCE, S.APPROVED),
        Transition(S.APPROVED, S.COMPLETED, A.APPROVE),
        Transition(S.APPROVED, S.CANCELLED, A.CANCEL, actor=ActorRule.REQUESTER),
    ),
    stages=TRIP_STAGES,
    approval_sequence=TRIP_APPROVAL_SEQUENCE,
    terminal_states=(S.COMPLETED, S.REJECTED, S.CANCELLED),
)

logger.info(
    "business_trip_workflow_registered",
    extra={
        "workflow_name": TRIP_WORKFLOW.name,
        "state_count": len(TRIP_WORKFLOW.states),
        "transition_count": len(TRIP_WORKFLOW.transitions),
        "initial_state": TRIP_WORKFLOW.initial_state,
    },
)
