"""
SnapshotService -- immutable point-in-time copies of a request.

Responsibility:
    Writes ``RequestVersion`` rows: a full JSON copy of a request's state
    with a strictly increasing per-request ``version_number`` and a
    SHA-256 hash of the canonical snapshot.

Architecture position:
    Kernel > Services -- imperative shell, called by the transition
    executor and the request service inside their atomic unit.

Invariants enforced:
    - ``version_number`` = (highest existing number for the request) + 1,
      starting at 1.  The unique ``(request_id, version_number)``
      constraint turns a concurrent duplicate into an IntegrityError that
      rolls back the whole unit.
    - Rows are immutable once written (ORM listeners).
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - IntegrityError when two writers race for the same version number;
      the optimistic lock on the request normally rules this out.

Audit relevance:
    Snapshots are the historical record of what a request looked like at
    each accepted change.  They are never read-modified.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func, select

from hr_kernel.logging_config import get_logger
from hr_kernel.models.request_version import RequestVersion
from hr_kernel.services.base import BaseService
from hr_kernel.utils.hashing import hash_payload, to_json_safe

logger = get_logger("services.snapshot")


class SnapshotService(BaseService[RequestVersion]):
    """Appends ``RequestVersion`` rows."""

    def next_version_number(self, request_id: UUID) -> int:
        current = self.session.scalar(
            select(func.max(RequestVersion.version_number)).where(
                RequestVersion.request_id == request_id
            )
        )
        return (current or 0) + 1

    def snapshot(
        self,
        request_id: UUID,
        snapshot_data: dict[str, Any],
        actor_id: UUID | None = None,
    ) -> int:
        """Store a snapshot and return its version number."""
        data = to_json_safe(snapshot_data)
        version_number = self.next_version_number(request_id)
        row = RequestVersion(
            request_id=request_id,
            version_number=version_number,
            snapshot_data=data,
            payload_hash=hash_payload(data),
            created_at=self.clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(row)
        self.session.flush()

        logger.debug(
            "snapshot_written",
            extra={
                "request_id": str(request_id),
                "version_number": version_number,
                "payload_hash": row.payload_hash,
            },
        )
        return version_number
