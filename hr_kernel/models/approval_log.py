"""
Module: hr_kernel.models.approval_log
Responsibility: ORM persistence for the approval log -- one row per
    successful transition.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: UPDATE and DELETE are blocked by db/immutability.py.
    - One row per accepted request version: UNIQUE(request_id, version).

Audit relevance:
    Ordering by ``performed_at`` (then ``version``) reconstructs the full
    approval chain of a request.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import Base, UUIDString
from hr_kernel.domain.clock import as_utc
from hr_kernel.domain.dtos import ApprovalLogRecord
from hr_kernel.domain.values import ApprovalAction, RequestStatus

_ACTION_VALUES = ", ".join(f"'{a.value}'" for a in ApprovalAction)


class ApprovalLog(Base):
    """Immutable record of one successful transition."""

    __tablename__ = "approval_logs"

    __table_args__ = (
        CheckConstraint(f"action IN ({_ACTION_VALUES})", name="ck_approval_logs_action"),
        UniqueConstraint("request_id", "version", name="uq_approval_logs_request_version"),
        Index("ix_approval_logs_request_performed", "request_id", "performed_at"),
    )

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("workflow_requests.id"), nullable=False,
    )
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    actor_slot_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    action: Mapped[str] = mapped_column(String(30), nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    step_name: Mapped[str] = mapped_column(String(100), nullable=False)
    from_status: Mapped[str] = mapped_column(String(30), nullable=False)
    to_status: Mapped[str] = mapped_column(String(30), nullable=False)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False)
    performed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    def to_dto(self) -> ApprovalLogRecord:
        return ApprovalLogRecord(
            log_id=self.id,
            request_id=self.request_id,
            actor_id=self.actor_id,
            actor_slot_id=self.actor_slot_id,
            action=ApprovalAction(self.action),
            comment=self.comment,
            step_name=self.step_name,
            from_status=RequestStatus(self.from_status),
            to_status=RequestStatus(self.to_status),
            version=self.version,
            performed_at=as_utc(self.performed_at),
            ip_address=self.ip_address,
        )
