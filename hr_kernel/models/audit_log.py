"""
Module: hr_kernel.models.audit_log
Responsibility: ORM persistence for the generic audit log: checklist
    updates, checklist additions, clearance seeding, and reporting-line
    edits.  Request transitions are recorded in approval_logs instead.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: UPDATE and DELETE are blocked by db/immutability.py.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import Base, UUIDString


class AuditAction(str, Enum):
    """Audited actions outside the approval log."""

    CHECKLIST_CLEARED = "CHECKLIST_CLEARED"
    CHECKLIST_REJECTED = "CHECKLIST_REJECTED"
    CHECKLIST_PENDING = "CHECKLIST_PENDING"
    CHECKLIST_ITEM_ADDED = "CHECKLIST_ITEM_ADDED"
    CLEARANCE_STARTED = "CLEARANCE_STARTED"
    REPORTING_LINE_ADDED = "REPORTING_LINE_ADDED"
    REPORTING_LINE_REMOVED = "REPORTING_LINE_REMOVED"
    ASSIGNMENT_CREATED = "ASSIGNMENT_CREATED"
    ASSIGNMENT_ENDED = "ASSIGNMENT_ENDED"


class AuditLog(Base):
    """Immutable record of an audited mutation."""

    __tablename__ = "audit_logs"

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict,
    )
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    performed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
