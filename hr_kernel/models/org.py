"""
Module: hr_kernel.models.org
Responsibility: ORM persistence for the slot-based org hierarchy: user
    accounts, position slots, time-bounded slot assignments, and
    child -> parent reporting lines.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Slot codes and user emails are unique.
    - A reporting line is unique per (child, parent) and never a self-loop
      (check constraint).  Acyclicity is enforced by OrgHierarchyService at
      insertion time.
    - At most one active primary assignment per slot: enforced by
      OrgHierarchyService at write time; readers still pick
      deterministically if legacy data violates it.

Failure modes:
    - IntegrityError on duplicate slot code / email / reporting line.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import Base, TrackedBase, UUIDString
from hr_kernel.domain.clock import as_utc
from hr_kernel.domain.dtos import AssignmentInfo, ReportingEdge, SlotInfo, UserInfo
from hr_kernel.domain.values import Role

_ROLE_VALUES = ", ".join(f"'{r.value}'" for r in Role)


class UserAccount(TrackedBase):
    """A person who can request, approve, or clear.

    ``role`` is the system role used for override checks (ADMIN) and for
    clearance lane access.
    """

    __tablename__ = "user_accounts"

    __table_args__ = (
        CheckConstraint(f"role IN ({_ROLE_VALUES})", name="ck_user_accounts_role"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default=Role.EMPLOYEE.value)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_dto(self) -> UserInfo:
        return UserInfo(
            user_id=self.id,
            name=self.name,
            email=self.email,
            role=Role(self.role),
            active=self.active,
        )


class PositionSlot(TrackedBase):
    """A seat in the org chart, independent of who occupies it."""

    __tablename__ = "position_slots"

    __table_args__ = (
        CheckConstraint(f"role IN ({_ROLE_VALUES})", name="ck_position_slots_role"),
        Index("ix_position_slots_role", "role"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default=Role.EMPLOYEE.value)
    is_department_head: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_workflow_stage_owner: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def to_dto(self) -> SlotInfo:
        return SlotInfo(
            slot_id=self.id,
            code=self.code,
            name=self.name,
            role=Role(self.role),
            department=self.department,
            is_department_head=self.is_department_head,
            is_workflow_stage_owner=self.is_workflow_stage_owner,
            active=self.active,
        )


class SlotAssignment(Base):
    """A user occupying a slot from ``starts_at`` until ``ends_at``.

    ``ends_at = NULL`` means open-ended (currently active).
    """

    __tablename__ = "slot_assignments"

    __table_args__ = (
        Index("ix_slot_assignments_slot", "slot_id", "is_primary"),
        Index("ix_slot_assignments_user", "user_id"),
        CheckConstraint(
            "ends_at IS NULL OR ends_at > starts_at",
            name="ck_slot_assignments_period",
        ),
    )

    slot_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("position_slots.id"), nullable=False,
    )
    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("user_accounts.id"), nullable=False,
    )
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    def to_dto(self) -> AssignmentInfo:
        return AssignmentInfo(
            assignment_id=self.id,
            slot_id=self.slot_id,
            user_id=self.user_id,
            is_primary=self.is_primary,
            starts_at=as_utc(self.starts_at),
            ends_at=as_utc(self.ends_at),
        )


class SlotReportingLine(Base):
    """Directed edge: ``child_slot_id`` reports to ``parent_slot_id``."""

    __tablename__ = "slot_reporting_lines"

    __table_args__ = (
        UniqueConstraint(
            "child_slot_id", "parent_slot_id",
            name="uq_slot_reporting_lines_edge",
        ),
        CheckConstraint(
            "child_slot_id <> parent_slot_id",
            name="ck_slot_reporting_lines_no_self_loop",
        ),
        Index("ix_slot_reporting_lines_child", "child_slot_id"),
    )

    child_slot_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("position_slots.id"), nullable=False,
    )
    parent_slot_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("position_slots.id"), nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    def to_dto(self) -> ReportingEdge:
        return ReportingEdge(
            child_slot_id=self.child_slot_id,
            parent_slot_id=self.parent_slot_id,
        )
