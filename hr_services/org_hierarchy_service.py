"""
hr_services.org_hierarchy_service -- Writes to the slot-based org chart.

Responsibility:
    Creates users and position slots, assigns users to slots for a
    period, and maintains child -> parent reporting lines.  The approver
    resolver reads what this service writes.

Architecture position:
    Services layer.  Flush-only: the caller owns commit/rollback.  Cycle
    detection and occupancy checks are the pure functions in
    ``hr_engines.hierarchy``.

Invariants enforced:
    - The reporting-line graph stays acyclic: an edge that would close a
      cycle (including a self-loop) is rejected before it is written.
    - A slot has at most one primary assignment covering any instant.
    - Assignment and reporting-line changes write an ``AuditLog`` row.

Failure modes:
    - ``SlotNotFoundError`` / ``UserNotFoundError`` /
      ``AssignmentNotFoundError`` for unknown ids.
    - ``ReportingLineCycleError`` for a cyclic edge.
    - ``DuplicatePrimaryAssignmentError`` for overlapping primaries.
    - ``ValidationError`` for an empty or inverted assignment period.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hr_engines.hierarchy import would_create_cycle
from hr_kernel.domain.clock import Clock, as_utc
from hr_kernel.domain.dtos import AssignmentInfo, ReportingEdge, SlotInfo, UserInfo
from hr_kernel.domain.values import Role
from hr_kernel.exceptions import (
    AssignmentNotFoundError,
    DuplicatePrimaryAssignmentError,
    ReportingLineCycleError,
    SlotNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from hr_kernel.logging_config import get_logger
from hr_kernel.models.audit_log import AuditAction
from hr_kernel.models.org import PositionSlot, SlotAssignment, SlotReportingLine, UserAccount
from hr_kernel.selectors.org_selector import OrgSelector
from hr_kernel.services.audit_service import AuditService
from hr_kernel.services.base import BaseService

logger = get_logger("services.org_hierarchy")

ASSIGNMENT_ENTITY = "slot_assignment"
REPORTING_LINE_ENTITY = "slot_reporting_line"


def _periods_overlap(
    a_start: datetime,
    a_end: datetime | None,
    b_start: datetime,
    b_end: datetime | None,
) -> bool:
    # half-open periods, None = open-ended
    a_start, a_end, b_start, b_end = as_utc(a_start), as_utc(a_end), as_utc(b_start), as_utc(b_end)
    if a_end is not None and a_end <= b_start:
        return False
    if b_end is not None and b_end <= a_start:
        return False
    return True


class OrgHierarchyService(BaseService[PositionSlot]):
    """Maintains users, slots, assignments and reporting lines."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._org = OrgSelector(session)
        self._audit = AuditService(session, self.clock)

    # ------------------------------------------------------------------
    # Users and slots
    # ------------------------------------------------------------------

    def create_user(
        self,
        name: str,
        email: str,
        role: Role | str,
        actor_id: UUID,
        active: bool = True,
    ) -> UserInfo:
        now = self.clock.now()
        user = UserAccount(
            name=name,
            email=email,
            role=Role(role).value,
            active=active,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )
        self.session.add(user)
        self.session.flush()
        logger.info("user_created", extra={"user_id": str(user.id), "role": user.role})
        return user.to_dto()

    def create_slot(
        self,
        code: str,
        name: str,
        role: Role | str,
        actor_id: UUID,
        department: str | None = None,
        is_department_head: bool = False,
        is_workflow_stage_owner: bool = False,
        active: bool = True,
    ) -> SlotInfo:
        now = self.clock.now()
        slot = PositionSlot(
            code=code,
            name=name,
            department=department,
            role=Role(role).value,
            is_department_head=is_department_head,
            is_workflow_stage_owner=is_workflow_stage_owner,
            active=active,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )
        self.session.add(slot)
        self.session.flush()
        logger.info(
            "slot_created",
            extra={"slot_id": str(slot.id), "slot_code": code, "role": slot.role},
        )
        return slot.to_dto()

    def deactivate_slot(self, slot_id: UUID, actor_id: UUID) -> SlotInfo:
        """Mark a slot inactive; the resolver walks through it from now on."""
        slot = self._get_slot(slot_id)
        slot.active = False
        slot.updated_at = self.clock.now()
        slot.updated_by_id = actor_id
        self.session.flush()
        logger.info("slot_deactivated", extra={"slot_id": str(slot_id)})
        return slot.to_dto()

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def assign_user(
        self,
        slot_id: UUID,
        user_id: UUID,
        actor_id: UUID,
        starts_at: datetime | None = None,
        ends_at: datetime | None = None,
        is_primary: bool = True,
    ) -> AssignmentInfo:
        """Put ``user_id`` into ``slot_id`` for ``[starts_at, ends_at)``.

        ``starts_at`` defaults to now.  A primary assignment may not
        overlap another primary assignment of the same slot.
        """
        self._get_slot(slot_id)
        if self.session.get(UserAccount, user_id) is None:
            raise UserNotFoundError(user_id)

        starts_at = as_utc(starts_at) if starts_at is not None else self.clock.now()
        ends_at = as_utc(ends_at)
        if ends_at is not None and ends_at <= starts_at:
            raise ValidationError("Assignment must end after it starts")

        if is_primary:
            for existing in self._org.assignments_for_slot(slot_id):
                if existing.is_primary and _periods_overlap(
                    existing.starts_at, existing.ends_at, starts_at, ends_at,
                ):
                    logger.warning(
                        "duplicate_primary_rejected",
                        extra={
                            "slot_id": str(slot_id),
                            "user_id": str(user_id),
                            "existing_user_id": str(existing.user_id),
                        },
                    )
                    raise DuplicatePrimaryAssignmentError(slot_id, existing.user_id)

        assignment = SlotAssignment(
            slot_id=slot_id,
            user_id=user_id,
            is_primary=is_primary,
            starts_at=starts_at,
            ends_at=ends_at,
            created_by_id=actor_id,
        )
        self.session.add(assignment)
        self.session.flush()

        self._audit.record(
            entity_type=ASSIGNMENT_ENTITY,
            entity_id=assignment.id,
            action=AuditAction.ASSIGNMENT_CREATED,
            actor_id=actor_id,
            details={
                "slot_id": slot_id,
                "user_id": user_id,
                "is_primary": is_primary,
                "starts_at": starts_at,
                "ends_at": ends_at,
            },
        )
        logger.info(
            "assignment_created",
            extra={
                "assignment_id": str(assignment.id),
                "slot_id": str(slot_id),
                "user_id": str(user_id),
                "is_primary": is_primary,
            },
        )
        return assignment.to_dto()

    def end_assignment(
        self,
        assignment_id: UUID,
        actor_id: UUID,
        ends_at: datetime | None = None,
    ) -> AssignmentInfo:
        """Close an assignment at ``ends_at`` (default now)."""
        assignment = self.session.get(SlotAssignment, assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError(assignment_id)

        ends_at = as_utc(ends_at) if ends_at is not None else self.clock.now()
        if ends_at <= as_utc(assignment.starts_at):
            raise ValidationError("Assignment must end after it starts")

        assignment.ends_at = ends_at
        self.session.flush()

        self._audit.record(
            entity_type=ASSIGNMENT_ENTITY,
            entity_id=assignment.id,
            action=AuditAction.ASSIGNMENT_ENDED,
            actor_id=actor_id,
            details={"slot_id": assignment.slot_id, "ends_at": ends_at},
        )
        logger.info(
            "assignment_ended",
            extra={"assignment_id": str(assignment_id), "slot_id": str(assignment.slot_id)},
        )
        return assignment.to_dto()

    # ------------------------------------------------------------------
    # Reporting lines
    # ------------------------------------------------------------------

    def add_reporting_line(
        self,
        child_slot_id: UUID,
        parent_slot_id: UUID,
        actor_id: UUID,
    ) -> ReportingEdge:
        """Record that ``child_slot_id`` reports to ``parent_slot_id``.

        Adding an edge that already exists is a no-op.
        """
        self._get_slot(child_slot_id)
        self._get_slot(parent_slot_id)

        if self._org.has_edge(child_slot_id, parent_slot_id):
            return ReportingEdge(child_slot_id=child_slot_id, parent_slot_id=parent_slot_id)

        if would_create_cycle(self._org.parent_map(), child_slot_id, parent_slot_id):
            logger.warning(
                "reporting_line_cycle_rejected",
                extra={
                    "child_slot_id": str(child_slot_id),
                    "parent_slot_id": str(parent_slot_id),
                },
            )
            raise ReportingLineCycleError(child_slot_id, parent_slot_id)

        line = SlotReportingLine(
            child_slot_id=child_slot_id,
            parent_slot_id=parent_slot_id,
            created_by_id=actor_id,
        )
        self.session.add(line)
        self.session.flush()

        self._audit.record(
            entity_type=REPORTING_LINE_ENTITY,
            entity_id=line.id,
            action=AuditAction.REPORTING_LINE_ADDED,
            actor_id=actor_id,
            details={"child_slot_id": child_slot_id, "parent_slot_id": parent_slot_id},
        )
        logger.info(
            "reporting_line_added",
            extra={"child_slot_id": str(child_slot_id), "parent_slot_id": str(parent_slot_id)},
        )
        return line.to_dto()

    def remove_reporting_line(
        self,
        child_slot_id: UUID,
        parent_slot_id: UUID,
        actor_id: UUID,
    ) -> bool:
        """Delete an edge; returns False if it did not exist."""
        line = self.session.scalar(
            select(SlotReportingLine).where(
                SlotReportingLine.child_slot_id == child_slot_id,
                SlotReportingLine.parent_slot_id == parent_slot_id,
            )
        )
        if line is None:
            return False

        line_id = line.id
        self.session.delete(line)
        self.session.flush()

        self._audit.record(
            entity_type=REPORTING_LINE_ENTITY,
            entity_id=line_id,
            action=AuditAction.REPORTING_LINE_REMOVED,
            actor_id=actor_id,
            details={"child_slot_id": child_slot_id, "parent_slot_id": parent_slot_id},
        )
        logger.info(
            "reporting_line_removed",
            extra={"child_slot_id": str(child_slot_id), "parent_slot_id": str(parent_slot_id)},
        )
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_slot(self, slot_id: UUID) -> PositionSlot:
        slot = self.session.get(PositionSlot, slot_id)
        if slot is None:
            raise SlotNotFoundError(slot_id)
        return slot
