"""Manpower Request Workflows.

State machine for headcount requisitions: manager, HR, finance and CEO
approval, followed by the hiring lifecycle owned by HR.
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

logger = get_logger("modules.manpower.workflows")

S = RequestStatus
A = ApprovalAction


# -----------------------------------------------------------------------------
# Stages
# -----------------------------------------------------------------------------

MANPOWER_STAGES = (
    Stage(S.PENDING_MANAGER, Role.MANAGER, applies_to=frozenset({Role.EMPLOYEE})),
    Stage(S.PENDING_HR, Role.HOD_HR, skip_for=frozenset({Role.HOD_HR})),
    Stage(S.PENDING_FINANCE, Role.HOD_FINANCE, skip_for=frozenset({Role.HOD_FINANCE})),
    Stage(S.PENDING_CEO, Role.CEO, skip_for=frozenset({Role.CEO})),
    Stage(S.APPROVED_OPEN, Role.HOD_HR, is_pending=False),
    Stage(S.HIRING_IN_PROGRESS, Role.HOD_HR, is_pending=False),
    Stage(S.REJECTED, Role.HOD_HR, is_pending=False),
)

MANPOWER_APPROVAL_SEQUENCE = (
    S.PENDING_MANAGER,
    S.PENDING_HR,
    S.PENDING_FINANCE,
    S.PENDING_CEO,
    S.APPROVED_OPEN,
)


def _pending_stage_transitions(status: RequestStatus, approve_to: RequestStatus) -> tuple[Transition, ...]:
    """APPROVE / REJECT / ARCHIVE / REQUEST_CHANGE / HOLD out of one stage."""
    return (
        Transition(status, approve_to, A.APPROVE, routed=True),
        Transition(status, S.REJECTED, A.REJECT),
        Transition(status, S.ARCHIVED, A.ARCHIVE),
        Transition(status, S.DRAFT, A.REQUEST_CHANGE, bumps_revision=True),
        Transition(status, status, A.HOLD, holds=True),
    )


# -----------------------------------------------------------------------------
# Manpower Request Workflow
# -----------------------------------------------------------------------------

MANPOWER_WORKFLOW = Workflow(
    name="manpower_request",
    workflow_type=WorkflowType.MANPOWER,
    description="Headcount requisition approval and hiring lifecycle",
    initial_state=S.DRAFT,
    states=(
        S.DRAFT,
        S.PENDING_MANAGER,
        S.PENDING_HR,
        S.PENDING_FINANCE,
        S.PENDING_CEO,
        S.APPROVED_OPEN,
        S.HIRING_IN_PROGRESS,
        S.COMPLETED,
        S.REJECTED,
        S.ARCHIVED,
    ),
    transitions=(
        Transition(S.DRAFT, S.PENDING_MANAGER, A.SUBMIT, actor=ActorRule.REQUESTER, routed=True),
        *_pending_stage_transitions(S.PENDING_MANAGER, S.PENDING_HR),
        *_pending_stage_transitions(S.PENDING_HR, S.PENDING_FINANCE),
        *_pending_stage_transitions(S.PENDING_FINANCE, S.PENDING_CEO),
        *_pending_stage_transitions(S.PENDING_CEO, S.APPROVED_OPEN),
        # post-terminal exceptions
        Transition(S.APPROVED_OPEN, S.HIRING_IN_PROGRESS, A.APPROVE),
        Transition(S.HIRING_IN_PROGRESS, S.COMPLETED, A.APPROVE),
        Transition(S.REJECTED, S.ARCHIVED, A.ARCHIVE),
    ),
    stages=MANPOWER_STAGES,
    approval_sequence=MANPOWER_APPROVAL_SEQUENCE,
    terminal_states=(S.APPROVED_OPEN, S.COMPLETED, S.REJECTED, S.ARCHIVED),
)

logger.info(
    "manpower_workflow_registered",
    extra={
        "workflow_name": MANPOWER_WORKFLOW.name,
        "state_count": len(MANPOWER_WORKFLOW.states),
        "transition_count": len(MANPOWER_WORKFLOW.transitions),
        "initial_state": MANPOWER_WORKFLOW.initial_state,
    },
)
