"""
Module: hr_kernel.selectors.org_selector
Responsibility: Read-only queries over the slot-based org hierarchy:
    slots, users, assignments and reporting-line edges, returned as
    frozen DTOs for the approver resolver and the hierarchy service.
Architecture position: Kernel > Selectors.  Extends BaseSelector.

Invariants enforced:
    - Deterministic ordering: slots come back ordered by ``code``; a
      slot's parents are ordered by parent ``code``.  The resolver's walk
      order, and therefore its answer, never depends on row order.
    - Read-only.  Safe for any number of concurrent readers.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import or_, select

from hr_kernel.domain.dtos import AssignmentInfo, ReportingEdge, SlotInfo, UserInfo
from hr_kernel.domain.values import Role
from hr_kernel.models.org import PositionSlot, SlotAssignment, SlotReportingLine, UserAccount
from hr_kernel.selectors.base import BaseSelector


class OrgSelector(BaseSelector[PositionSlot]):
    """Queries for slots, users, assignments and reporting lines."""

    # ------------------------------------------------------------------
    # Slots and users
    # ------------------------------------------------------------------

    def slot(self, slot_id: UUID) -> SlotInfo | None:
        row = self.session.get(PositionSlot, slot_id)
        return row.to_dto() if row is not None else None

    def slots(self, slot_ids: list[UUID]) -> dict[UUID, SlotInfo]:
        if not slot_ids:
            return {}
        rows = self.session.scalars(select(PositionSlot).where(PositionSlot.id.in_(slot_ids)))
        return {row.id: row.to_dto() for row in rows}

    def slot_by_code(self, code: str) -> SlotInfo | None:
        row = self.session.scalar(select(PositionSlot).where(PositionSlot.code == code))
        return row.to_dto() if row is not None else None

    def user(self, user_id: UUID) -> UserInfo | None:
        row = self.session.get(UserAccount, user_id)
        return row.to_dto() if row is not None else None

    def stage_owner_slots(self, role: Role) -> list[SlotInfo]:
        """Active slots of ``role`` flagged as department head or stage owner."""
        rows = self.session.scalars(
            select(PositionSlot)
            .where(
                PositionSlot.role == Role(role).value,
                PositionSlot.active.is_(True),
                or_(
                    PositionSlot.is_department_head.is_(True),
                    PositionSlot.is_workflow_stage_owner.is_(True),
                ),
            )
            .order_by(PositionSlot.code)
        )
        return [row.to_dto() for row in rows]

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def assignment(self, assignment_id: UUID) -> AssignmentInfo | None:
        row = self.session.get(SlotAssignment, assignment_id)
        return row.to_dto() if row is not None else None

    def assignments_for_slot(self, slot_id: UUID) -> list[AssignmentInfo]:
        rows = self.session.scalars(
            select(SlotAssignment)
            .where(SlotAssignment.slot_id == slot_id)
            .order_by(SlotAssignment.starts_at)
        )
        return [row.to_dto() for row in rows]

    def assignments_for_slots(self, slot_ids: list[UUID]) -> dict[UUID, list[AssignmentInfo]]:
        result: dict[UUID, list[AssignmentInfo]] = {sid: [] for sid in slot_ids}
        if not slot_ids:
            return result
        rows = self.session.scalars(
            select(SlotAssignment)
            .where(SlotAssignment.slot_id.in_(slot_ids))
            .order_by(SlotAssignment.starts_at)
        )
        for row in rows:
            result[row.slot_id].append(row.to_dto())
        return result

    def assignments_for_user(self, user_id: UUID) -> list[AssignmentInfo]:
        rows = self.session.scalars(
            select(SlotAssignment)
            .where(SlotAssignment.user_id == user_id)
            .order_by(SlotAssignment.starts_at)
        )
        return [row.to_dto() for row in rows]

    # ------------------------------------------------------------------
    # Reporting lines
    # ------------------------------------------------------------------

    def edges(self) -> list[ReportingEdge]:
        """All reporting lines, ordered by child then parent slot code."""
        child = PositionSlot.__table__.alias("child")
        parent = PositionSlot.__table__.alias("parent")
        rows = self.session.execute(
            select(SlotReportingLine.child_slot_id, SlotReportingLine.parent_slot_id)
            .join(child, child.c.id == SlotReportingLine.child_slot_id)
            .join(parent, parent.c.id == SlotReportingLine.parent_slot_id)
            .order_by(child.c.code, parent.c.code)
        )
        return [
            ReportingEdge(child_slot_id=c, parent_slot_id=p)
            for c, p in rows
        ]

    def parent_map(self) -> dict[UUID, tuple[UUID, ...]]:
        """``child -> parents`` with parents in slot-code order."""
        parents: dict[UUID, list[UUID]] = {}
        for edge in self.edges():
            parents.setdefault(edge.child_slot_id, []).append(edge.parent_slot_id)
        return {child: tuple(ps) for child, ps in parents.items()}

    def has_edge(self, child_slot_id: UUID, parent_slot_id: UUID) -> bool:
        return self.session.scalar(
            select(SlotReportingLine.id).where(
                SlotReportingLine.child_slot_id == child_slot_id,
                SlotReportingLine.parent_slot_id == parent_slot_id,
            )
        ) is not None
