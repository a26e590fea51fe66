"""Separation Workflows.

State machine for employee offboarding.  HR approves the separation, which
opens the clearance board; the request can only be completed once every
required clearance item is cleared.
"""

from hr_kernel.domain.values import (
    ActorRule,
    ApprovalAction,
    RequestStatus,
    Role,
    WorkflowType,
)
from hr_kernel.domain.workflow import Guard, Stage, Transition, Workflow
from hr_kernel.logging_config import get_logger

logger = get_logger("modules.separations.workflows")

S = RequestStatus
A = ApprovalAction


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

CLEARANCE_COMPLETE = Guard(
    name="clearance_complete",
    description="Every required clearance checklist item is cleared",
)

logger.info(
    "separation_workflow_guards_defined",
    extra={"guards": [CLEARANCE_COMPLETE.name]},
)


# -----------------------------------------------------------------------------
# Separation Workflow
# -----------------------------------------------------------------------------

SEPARATION_STAGES = (
    Stage(S.SUBMITTED, Role.HOD_HR),
    Stage(S.APPROVED, Role.HOD_HR, is_pending=False),
)

SEPARATION_WORKFLOW = Workflow(
    name="separation",
    workflow_type=WorkflowType.SEPARATION,
    description="Employee separation and clearance lifecycle",
    initial_state=S.DRAFT,
    states=(
        S.DRAFT,
        S.SUBMITTED,
        S.APPROVED,
        S.COMPLETED,
        S.REJECTED,
    ),
    transitions=(
        Transition(S.DRAFT, S.SUBMITTED, A.SUBMIT, actor=ActorRule.REQUESTER),
        Transition(S.SUBMITTED, S.APPROVED, A.APPROVE),
        Transition(S.SUBMITTED, S.REJECTED, A.REJECT),
        Transition(S.SUBMITTED, S.SUBMITTED, A.HOLD, holds=True),
        Transition(S.APPROVED, S.COMPLETED, A.APPROVE, guard=CLEARANCE_COMPLETE),
    ),
    stages=SEPARATION_STAGES,
    approval_sequence=(S.SUBMITTED, S.APPROVED),
    terminal_states=(S.COMPLETED, S.REJECTED),
)

# Entering this state opens the clearance board
CLEARANCE_START_STATE = S.APPROVED

logger.info(
    "separation_workflow_registered",
    extra={
        "workflow_name": SEPARATION_WORKFLOW.name,
        "state_count": len(SEPARATION_WORKFLOW.states),
        "transition_count": len(SEPARATION_WORKFLOW.transitions),
        "initial_state": SEPARATION_WORKFLOW.initial_state,
    },
)
