"""
Module: hr_kernel.models.outbox
Responsibility: ORM persistence for the notification outbox.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ``idempotency_key`` is unique: one row per (request, stage, recipient).
    - The core inserts PENDING rows only.  Delivery state changes belong to
      the external consumer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import Base, UUIDString
from hr_kernel.domain.values import OutboxStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in OutboxStatus)


class NotificationOutbox(Base):
    """A notification waiting for the delivery worker."""

    __tablename__ = "notification_outbox"

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_notification_outbox_status"),
        Index("ix_notification_outbox_dispatch", "status", "next_attempt_at"),
    )

    idempotency_key: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    recipient_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    request_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OutboxStatus.PENDING.value,
    )
    attempt_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    next_attempt_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
