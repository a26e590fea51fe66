"""
Module: hr_kernel.models.request_version
Responsibility: ORM persistence for immutable request snapshots.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - UNIQUE(request_id, version_number): numbers never repeat per request.
    - Append-only: UPDATE and DELETE are blocked by db/immutability.py.
    - ``payload_hash`` is the SHA-256 of the canonical snapshot JSON.
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
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import Base, UUIDString
from hr_kernel.domain.clock import as_utc
from hr_kernel.domain.dtos import RequestVersionRecord


class RequestVersion(Base):
    """Full-payload snapshot of a request at a version boundary."""

    __tablename__ = "request_versions"

    __table_args__ = (
        UniqueConstraint(
            "request_id", "version_number",
            name="uq_request_versions_number",
        ),
        CheckConstraint("version_number >= 1", name="ck_request_versions_positive"),
    )

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("workflow_requests.id"), nullable=False,
    )
    version_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    snapshot_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def to_dto(self) -> RequestVersionRecord:
        return RequestVersionRecord(
            request_id=self.request_id,
            version_number=self.version_number,
            snapshot_data=dict(self.snapshot_data),
            payload_hash=self.payload_hash,
            created_at=as_utc(self.created_at),
            created_by_id=self.created_by_id,
        )
