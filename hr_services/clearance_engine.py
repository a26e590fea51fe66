"""
hr_services.clearance_engine -- Parallel clearance lanes for separations.

Responsibility:
    Seeds a separation's clearance checklist from templates, lets lane
    owners clear or reject items, lets HR/ADMIN add items, and reports
    progress.  Progress is computed on read by the pure
    ``hr_engines.clearance.compute_progress``; nothing is stored.

Architecture position:
    Services layer.  Called directly by the API layer for checklist
    commands and by the transition executor (clearance start on
    separation approval, and the ``clearance_complete`` guard).

Invariants enforced:
    - Lane authorization: the actor's role must map to the item's lane in
      the injected ``lane_roles`` mapping, or be an override role.
    - REJECTED needs non-blank remarks.
    - Checklist commands never write the parent request.
    - Once the separation is COMPLETED or REJECTED its checklist is
      frozen; further updates raise ``InvalidTransitionError``.
    - ``start_clearance`` is idempotent: template items are seeded once.
    - Every mutation writes an ``AuditLog`` row.

Failure modes:
    - ``ChecklistItemNotFoundError`` / ``RequestNotFoundError`` /
      ``UserNotFoundError`` for missing references.
    - ``LaneAccessDeniedError`` for a role outside the lane.
    - ``RemarksRequiredError`` / ``UnknownValueError`` / ``ValidationError``
      for bad input.
    - ``InvalidTransitionError`` for a checklist of a finished separation.

Audit relevance:
    ``CHECKLIST_CLEARED`` / ``CHECKLIST_REJECTED`` / ``CHECKLIST_PENDING``
    entries record who signed off each item and when.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import NoReturn
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hr_config.schema import ChecklistTemplate
from hr_engines.clearance import can_act_on_lane, compute_progress, lanes_for_role
from hr_kernel.domain.clock import Clock, SystemClock
from hr_kernel.domain.dtos import ChecklistItemRecord, ClearanceProgress
from hr_kernel.domain.values import (
    ChecklistItemSource,
    ChecklistStatus,
    ClearanceLane,
    Role,
    WorkflowType,
    parse_value,
)
from hr_kernel.exceptions import (
    ChecklistItemNotFoundError,
    InvalidTransitionError,
    LaneAccessDeniedError,
    RemarksRequiredError,
    RequestNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from hr_kernel.logging_config import get_logger
from hr_kernel.models.audit_log import AuditAction
from hr_kernel.models.clearance import ClearanceChecklistItem
from hr_kernel.models.request import WorkflowRequest
from hr_kernel.selectors.clearance_selector import ClearanceSelector
from hr_kernel.selectors.org_selector import OrgSelector
from hr_kernel.services.audit_service import AuditService
from hr_modules.separations import SEPARATION_WORKFLOW

logger = get_logger("services.clearance_engine")

ENTITY_TYPE = "clearance_checklist_item"

_AUDIT_ACTIONS = {
    ChecklistStatus.CLEARED: AuditAction.CHECKLIST_CLEARED,
    ChecklistStatus.REJECTED: AuditAction.CHECKLIST_REJECTED,
    ChecklistStatus.PENDING: AuditAction.CHECKLIST_PENDING,
}


class ClearanceLaneEngine:
    """Checklist commands and progress for separation clearance."""

    def __init__(
        self,
        session: Session,
        lane_roles: Mapping[Role, frozenset[ClearanceLane]],
        override_roles: Iterable[Role],
        clock: Clock | None = None,
        templates: Iterable[ChecklistTemplate] = (),
    ):
        self._session = session
        self._lane_roles = dict(lane_roles)
        self._override_roles = frozenset(override_roles)
        self._clock = clock or SystemClock()
        self._templates = tuple(templates)
        self._audit = AuditService(session, self._clock)
        self._selector = ClearanceSelector(session)
        self._org = OrgSelector(session)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_clearance(self, separation_id: UUID, actor_id: UUID) -> list[ChecklistItemRecord]:
        """Seed template items for a separation (no-op if already seeded)."""
        self._load_separation(separation_id)

        seeded = self._session.scalar(
            select(func.count(ClearanceChecklistItem.id)).where(
                ClearanceChecklistItem.separation_id == separation_id,
                ClearanceChecklistItem.source == ChecklistItemSource.TEMPLATE.value,
            )
        )
        if seeded:
            logger.info(
                "clearance_already_started",
                extra={"separation_id": str(separation_id), "item_count": seeded},
            )
            return self._selector.items(separation_id)

        now = self._clock.now()
        for template in self._templates:
            self._session.add(
                ClearanceChecklistItem(
                    separation_id=separation_id,
                    lane=template.lane.value,
                    title=template.title,
                    description=template.description,
                    required=template.required,
                    status=ChecklistStatus.PENDING.value,
                    due_at=(
                        now + timedelta(days=template.due_offset_days)
                        if template.due_offset_days is not None
                        else None
                    ),
                    source=ChecklistItemSource.TEMPLATE.value,
                    sort_order=template.order,
                    created_at=now,
                    updated_at=now,
                    created_by_id=actor_id,
                )
            )
        self._session.flush()

        self._audit.record(
            entity_type="separation",
            entity_id=separation_id,
            action=AuditAction.CLEARANCE_STARTED,
            actor_id=actor_id,
            details={"item_count": len(self._templates)},
        )
        logger.info(
            "clearance_started",
            extra={"separation_id": str(separation_id), "item_count": len(self._templates)},
        )
        return self._selector.items(separation_id)

    def update_checklist_item(
        self,
        item_id: UUID,
        actor_id: UUID,
        new_status: ChecklistStatus | str,
        remarks: str | None = None,
    ) -> ChecklistItemRecord:
        item = self._session.get(ClearanceChecklistItem, item_id)
        if item is None:
            raise ChecklistItemNotFoundError(item_id)

        lane = ClearanceLane(item.lane)
        role = self._actor_role(actor_id)
        if not can_act_on_lane(role, lane, self._lane_roles, self._override_roles):
            self._deny(actor_id, role, lane)

        new_status = parse_value(ChecklistStatus, new_status, "checklist status")
        self._ensure_open(self._load_separation(item.separation_id), new_status.value)
        if new_status is ChecklistStatus.REJECTED and not (remarks and remarks.strip()):
            raise RemarksRequiredError(item_id)

        previous = item.status
        now = self._clock.now()
        item.status = new_status.value
        if remarks is not None:
            item.remarks = remarks
        item.checked_by_id = actor_id
        item.checked_at = now
        item.updated_at = now
        item.updated_by_id = actor_id
        self._session.flush()

        self._audit.record(
            entity_type=ENTITY_TYPE,
            entity_id=item.id,
            action=_AUDIT_ACTIONS[new_status],
            actor_id=actor_id,
            details={
                "separation_id": item.separation_id,
                "lane": lane,
                "from_status": previous,
                "to_status": new_status,
                "remarks": remarks,
            },
        )
        logger.info(
            "checklist_item_updated",
            extra={
                "item_id": str(item.id),
                "separation_id": str(item.separation_id),
                "lane": lane.value,
                "from_status": previous,
                "to_status": new_status.value,
            },
        )
        return item.to_dto()

    def add_checklist_item(
        self,
        separation_id: UUID,
        actor_id: UUID,
        lane: ClearanceLane | str,
        title: str,
        required: bool = True,
        description: str | None = None,
        due_at: datetime | None = None,
    ) -> ChecklistItemRecord:
        """Add a custom item to a lane.  HR/ADMIN only."""
        lane = parse_value(ClearanceLane, lane, "clearance lane")
        role = self._actor_role(actor_id)
        if role not in self._override_roles:
            self._deny(actor_id, role, lane)
        self._ensure_open(self._load_separation(separation_id), "ADD_ITEM")
        if not title or not title.strip():
            raise ValidationError("Checklist item title must not be blank")

        last_order = self._session.scalar(
            select(func.max(ClearanceChecklistItem.sort_order)).where(
                ClearanceChecklistItem.separation_id == separation_id,
                ClearanceChecklistItem.lane == lane.value,
            )
        )
        now = self._clock.now()
        item = ClearanceChecklistItem(
            separation_id=separation_id,
            lane=lane.value,
            title=title.strip(),
            description=description,
            required=required,
            status=ChecklistStatus.PENDING.value,
            due_at=due_at,
            source=ChecklistItemSource.CUSTOM.value,
            sort_order=(last_order + 1) if last_order is not None else 0,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )
        self._session.add(item)
        self._session.flush()

        self._audit.record(
            entity_type=ENTITY_TYPE,
            entity_id=item.id,
            action=AuditAction.CHECKLIST_ITEM_ADDED,
            actor_id=actor_id,
            details={
                "separation_id": separation_id,
                "lane": lane,
                "title": item.title,
                "required": required,
            },
        )
        logger.info(
            "checklist_item_added",
            extra={
                "item_id": str(item.id),
                "separation_id": str(separation_id),
                "lane": lane.value,
                "required": required,
            },
        )
        return item.to_dto()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def progress(self, separation_id: UUID) -> ClearanceProgress:
        return compute_progress(self._selector.items(separation_id))

    def is_clearance_complete(self, separation_id: UUID) -> bool:
        return self.progress(separation_id).is_complete

    def lanes_for(self, actor_id: UUID) -> frozenset[ClearanceLane]:
        """Lanes the actor may act on."""
        return lanes_for_role(self._actor_role(actor_id), self._lane_roles, self._override_roles)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_separation(self, separation_id: UUID) -> WorkflowRequest:
        request = self._session.get(WorkflowRequest, separation_id)
        if request is None or request.workflow_type != WorkflowType.SEPARATION.value:
            raise RequestNotFoundError(separation_id)
        return request

    def _ensure_open(self, separation: WorkflowRequest, action: str) -> None:
        """Checklists of a completed or rejected separation are frozen."""
        if SEPARATION_WORKFLOW.is_terminal(separation.status):
            raise InvalidTransitionError(
                SEPARATION_WORKFLOW.name,
                separation.status,
                action,
                reason="clearance is closed for a finished separation",
            )

    def _actor_role(self, actor_id: UUID) -> Role:
        user = self._org.user(actor_id)
        if user is None:
            raise UserNotFoundError(actor_id)
        return user.role

    def _deny(self, actor_id: UUID, role: Role, lane: ClearanceLane) -> NoReturn:
        logger.warning(
            "authorization_denied",
            extra={
                "actor_id": str(actor_id),
                "actor_role": role.value,
                "lane": lane.value,
            },
        )
        raise LaneAccessDeniedError(actor_id, role.value, lane.value)
