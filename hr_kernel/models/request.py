"""
Module: hr_kernel.models.request
Responsibility: ORM persistence for workflow requests (manpower requests,
    business trips, separations) in a single table keyed by
    ``workflow_type``.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ``version`` is the optimistic lock.  It changes only through the
      conditional UPDATE issued by the transition executor and the draft
      editor (``WHERE id = :id AND version = :expected``), one step at a
      time.
    - ``status`` values are limited by a check constraint to the union of
      all workflow states; the per-workflow subset is enforced by the
      state machine.
    - ``revision_version`` counts REQUEST_CHANGE loops and is independent of
      ``version``.

Failure modes:
    - ConflictError (raised by services) when the conditional UPDATE
      matches no row.

Audit relevance:
    ``current_approver_*`` and ``required_approver_role`` are an advisory
    cache refreshed on every stage entry.  Authorization always re-resolves
    the approver from the live hierarchy.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import TrackedBase, UUIDString
from hr_kernel.domain.clock import as_utc
from hr_kernel.domain.dtos import RequestSummary
from hr_kernel.domain.values import RequestStatus, Role, WorkflowType

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in RequestStatus)
_TYPE_VALUES = ", ".join(f"'{t.value}'" for t in WorkflowType)


class WorkflowRequest(TrackedBase):
    """A request moving through an approval workflow."""

    __tablename__ = "workflow_requests"

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_workflow_requests_status"),
        CheckConstraint(
            f"workflow_type IN ({_TYPE_VALUES})", name="ck_workflow_requests_type",
        ),
        CheckConstraint("version >= 0", name="ck_workflow_requests_version"),
        Index("ix_workflow_requests_type_status", "workflow_type", "status"),
        Index("ix_workflow_requests_requester", "requester_id"),
        Index("ix_workflow_requests_current_approver", "current_approver_id"),
    )

    workflow_type: Mapped[str] = mapped_column(String(30), nullable=False)
    requester_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("user_accounts.id"), nullable=False,
    )
    requester_slot_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("position_slots.id"), nullable=True,
    )
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    revision_version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    is_on_hold: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    current_approver_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    current_approver_slot_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    required_approver_role: Mapped[str | None] = mapped_column(String(30), nullable=True)

    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def to_dto(self) -> RequestSummary:
        return RequestSummary(
            request_id=self.id,
            workflow_type=WorkflowType(self.workflow_type),
            requester_id=self.requester_id,
            requester_slot_id=self.requester_slot_id,
            status=RequestStatus(self.status),
            version=self.version,
            revision_version=self.revision_version,
            is_on_hold=self.is_on_hold,
            current_approver_id=self.current_approver_id,
            current_approver_slot_id=self.current_approver_slot_id,
            required_approver_role=(
                Role(self.required_approver_role) if self.required_approver_role else None
            ),
            payload=dict(self.payload or {}),
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
        )

    def snapshot_data(self) -> dict[str, Any]:
        """Full point-in-time copy of the request for RequestVersion rows."""
        return {
            "request_id": str(self.id),
            "workflow_type": self.workflow_type,
            "status": self.status,
            "version": self.version,
            "revision_version": self.revision_version,
            "is_on_hold": self.is_on_hold,
            "requester_id": str(self.requester_id),
            "current_approver_id": (
                str(self.current_approver_id) if self.current_approver_id else None
            ),
            "required_approver_role": self.required_approver_role,
            "payload": dict(self.payload or {}),
        }
