"""
Module: hr_kernel.models.clearance
Responsibility: ORM persistence for separation clearance checklist items.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ``lane``, ``status`` and ``source`` are limited to their enums by
      check constraints.
    - Template items are seeded at most once per (separation, lane, title).

Audit relevance:
    Every status change is mirrored by an AuditLog row
    (``CHECKLIST_{status}``) written by the clearance lane engine.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import TrackedBase, UUIDString
from hr_kernel.domain.clock import as_utc
from hr_kernel.domain.dtos import ChecklistItemRecord
from hr_kernel.domain.values import (
    ChecklistItemSource,
    ChecklistStatus,
    ClearanceLane,
)

_LANE_VALUES = ", ".join(f"'{v.value}'" for v in ClearanceLane)
_STATUS_VALUES = ", ".join(f"'{v.value}'" for v in ChecklistStatus)
_SOURCE_VALUES = ", ".join(f"'{v.value}'" for v in ChecklistItemSource)


class ClearanceChecklistItem(TrackedBase):
    """One task within a clearance lane of a separation."""

    __tablename__ = "clearance_checklist_items"

    __table_args__ = (
        CheckConstraint(f"lane IN ({_LANE_VALUES})", name="ck_clearance_items_lane"),
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_clearance_items_status"),
        CheckConstraint(f"source IN ({_SOURCE_VALUES})", name="ck_clearance_items_source"),
        Index("ix_clearance_items_separation_lane", "separation_id", "lane", "sort_order"),
    )

    separation_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("workflow_requests.id"), nullable=False,
    )
    lane: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ChecklistStatus.PENDING.value,
    )
    due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    checked_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ChecklistItemSource.TEMPLATE.value,
    )
    sort_order: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def to_dto(self) -> ChecklistItemRecord:
        return ChecklistItemRecord(
            item_id=self.id,
            separation_id=self.separation_id,
            lane=ClearanceLane(self.lane),
            title=self.title,
            required=self.required,
            status=ChecklistStatus(self.status),
            sort_order=self.sort_order,
            description=self.description,
            due_at=as_utc(self.due_at),
            remarks=self.remarks,
            checked_by_id=self.checked_by_id,
            checked_at=as_utc(self.checked_at),
            source=ChecklistItemSource(self.source),
        )
