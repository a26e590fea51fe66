"""
AuditService -- append-only audit trail for non-transition mutations.

Responsibility:
    Records checklist updates, checklist additions, clearance seeding and
    org hierarchy edits as immutable ``AuditLog`` rows.  Request
    transitions are recorded in the approval log by the transition
    executor instead.

Architecture position:
    Kernel > Services -- imperative shell, called by the clearance lane
    engine and ``OrgHierarchyService``.

Invariants enforced:
    - Append-only: audit rows are never modified or deleted (ORM
      listeners in ``db/immutability.py``).
    - Every row carries the SHA-256 hash of its canonical details.
    - Flush-only: never commits or rolls back the session.

Audit relevance:
    This IS the audit service for everything the approval log does not
    cover.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hr_kernel.domain.clock import Clock
from hr_kernel.logging_config import get_logger
from hr_kernel.models.audit_log import AuditAction, AuditLog
from hr_kernel.services.base import BaseService
from hr_kernel.utils.hashing import hash_payload, to_json_safe

logger = get_logger("services.audit")


class AuditService(BaseService[AuditLog]):
    """Writes and reads generic audit entries."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)

    def record(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        actor_id: UUID,
        details: dict[str, Any] | None = None,
    ) -> AuditLog:
        safe_details = to_json_safe(details or {})
        entry = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction(action).value,
            actor_id=actor_id,
            details=safe_details,
            payload_hash=hash_payload(safe_details),
            performed_at=self.clock.now(),
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "audit_recorded",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "audit_action": entry.action,
                "actor_id": str(actor_id),
            },
        )
        return entry

    def entries_for(self, entity_type: str, entity_id: UUID) -> list[AuditLog]:
        """Audit entries of one entity, oldest first."""
        return list(
            self.session.scalars(
                select(AuditLog)
                .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
                .order_by(AuditLog.performed_at, AuditLog.id)
            )
        )
