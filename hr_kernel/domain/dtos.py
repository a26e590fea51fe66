"""
Data transfer objects (``hr_kernel.domain.dtos``).

Responsibility
--------------
Frozen records passed across layer boundaries: what selectors return,
what the transition executor reports, and what the pure engines consume.
Never ORM instances.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from hr_kernel.domain.values import (
    ApprovalAction,
    ChecklistItemSource,
    ChecklistStatus,
    ClearanceLane,
    RequestStatus,
    Role,
    WorkflowType,
)


# =========================================================================
# Org hierarchy
# =========================================================================


@dataclass(frozen=True)
class SlotInfo:
    """Read model of a position slot."""

    slot_id: UUID
    code: str
    name: str
    role: Role
    department: str | None = None
    is_department_head: bool = False
    is_workflow_stage_owner: bool = False
    active: bool = True


@dataclass(frozen=True)
class AssignmentInfo:
    """Read model of a user occupying a slot for a period."""

    assignment_id: UUID
    slot_id: UUID
    user_id: UUID
    is_primary: bool
    starts_at: datetime
    ends_at: datetime | None = None


@dataclass(frozen=True)
class ReportingEdge:
    """Directed child -> parent edge between two slots."""

    child_slot_id: UUID
    parent_slot_id: UUID


@dataclass(frozen=True)
class ResolvedApprover:
    """Outcome of approver resolution for one stage.

    ``via`` is ``"shortcut"`` for department-head / stage-owner lookups and
    ``"walk"`` for an upward reporting-line walk.
    """

    slot_id: UUID
    user_id: UUID
    role: Role
    via: str
    hops: int = 0


@dataclass(frozen=True)
class UserInfo:
    user_id: UUID
    name: str
    email: str
    role: Role
    active: bool = True


# =========================================================================
# Requests and history
# =========================================================================


@dataclass(frozen=True)
class RequestSummary:
    """Current state of a workflow request."""

    request_id: UUID
    workflow_type: WorkflowType
    requester_id: UUID
    requester_slot_id: UUID | None
    status: RequestStatus
    version: int
    revision_version: int
    is_on_hold: bool
    current_approver_id: UUID | None
    current_approver_slot_id: UUID | None
    required_approver_role: Role | None
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a successful transition command."""

    request_id: UUID
    action: ApprovalAction
    from_status: RequestStatus
    new_status: RequestStatus
    new_version: int
    revision_version: int
    is_on_hold: bool
    step_name: str
    current_approver_id: UUID | None = None
    snapshot_version: int | None = None
    outbox_enqueued: bool = False


@dataclass(frozen=True)
class ApprovalLogRecord:
    """One entry of a request's approval history."""

    log_id: UUID
    request_id: UUID
    actor_id: UUID
    actor_slot_id: UUID | None
    action: ApprovalAction
    comment: str | None
    step_name: str
    from_status: RequestStatus
    to_status: RequestStatus
    version: int
    performed_at: datetime
    ip_address: str | None = None


@dataclass(frozen=True)
class RequestVersionRecord:
    """Immutable snapshot of a request at a version boundary."""

    request_id: UUID
    version_number: int
    snapshot_data: dict[str, Any]
    payload_hash: str
    created_at: datetime
    created_by_id: UUID | None = None


# =========================================================================
# Clearance
# =========================================================================


@dataclass(frozen=True)
class ChecklistItemRecord:
    """Read model of a clearance checklist item."""

    item_id: UUID
    separation_id: UUID
    lane: ClearanceLane
    title: str
    required: bool
    status: ChecklistStatus
    sort_order: int = 0
    description: str | None = None
    due_at: datetime | None = None
    remarks: str | None = None
    checked_by_id: UUID | None = None
    checked_at: datetime | None = None
    source: ChecklistItemSource = ChecklistItemSource.TEMPLATE


@dataclass(frozen=True)
class LaneProgress:
    lane: ClearanceLane
    total: int
    cleared: int
    rejected: int
    total_required: int
    cleared_required: int

    @property
    def is_complete(self) -> bool:
        return self.cleared_required == self.total_required


@dataclass(frozen=True)
class ClearanceProgress:
    """Clearance completion across all lanes, computed on read."""

    lanes: tuple[LaneProgress, ...]
    total_required: int
    cleared_required: int

    @property
    def ratio(self) -> float:
        if self.total_required == 0:
            return 1.0
        return self.cleared_required / self.total_required

    @property
    def is_complete(self) -> bool:
        return self.cleared_required == self.total_required

    def lane(self, lane: ClearanceLane) -> LaneProgress | None:
        for lp in self.lanes:
            if lp.lane == lane:
                return lp
        return None


@dataclass(frozen=True)
class StepPosition:
    """Where a status sits in a workflow's approval progression.

    ``index`` is 0 for drafts, 1..total for approval stages, ``total`` once
    approved, and None for rejected / archived / cancelled requests.
    """

    index: int | None
    total: int
    label: str
