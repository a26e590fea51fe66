"""
OutboxService -- insert-only notification outbox.

Responsibility:
    Queues one ``PENDING`` ``NotificationOutbox`` row per
    (request, stage, recipient).  Delivery belongs to an external worker;
    this service never sends anything and never waits on delivery.

Architecture position:
    Kernel > Services -- imperative shell, called by the transition
    executor as the last step of its atomic unit.

Invariants enforced:
    - Idempotency: the key ``"{request_id}:{stage}:{recipient_id}"`` is
      unique.  A second enqueue with the same key is skipped and reported
      as ``False``, never raised.
    - Flush-only: never commits or rolls back the session.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select

from hr_kernel.domain.values import OutboxStatus
from hr_kernel.logging_config import get_logger
from hr_kernel.models.outbox import NotificationOutbox
from hr_kernel.services.base import BaseService
from hr_kernel.utils.hashing import to_json_safe
from hr_kernel.utils.idempotency import generate_notification_key

logger = get_logger("services.outbox")


class OutboxService(BaseService[NotificationOutbox]):
    """Enqueues notification rows for the external delivery worker."""

    def enqueue(
        self,
        request_id: UUID,
        stage: str,
        recipient_id: UUID,
        event_type: str,
        payload: dict[str, Any] | None = None,
        not_before: datetime | None = None,
    ) -> bool:
        """Insert a PENDING row; False if the key was already queued."""
        key = generate_notification_key(request_id, stage, recipient_id)
        existing = self.session.scalar(
            select(NotificationOutbox.id).where(NotificationOutbox.idempotency_key == key)
        )
        if existing is not None:
            logger.info(
                "outbox_duplicate_skipped",
                extra={"idempotency_key": key, "request_id": str(request_id)},
            )
            return False

        now = self.clock.now()
        self.session.add(
            NotificationOutbox(
                idempotency_key=key,
                recipient_id=recipient_id,
                request_id=request_id,
                event_type=event_type,
                payload=to_json_safe(payload or {}),
                status=OutboxStatus.PENDING.value,
                attempt_count=0,
                next_attempt_at=not_before or now,
                created_at=now,
            )
        )
        self.session.flush()

        logger.info(
            "outbox_enqueued",
            extra={
                "idempotency_key": key,
                "request_id": str(request_id),
                "recipient_id": str(recipient_id),
                "event_type": event_type,
            },
        )
        return True

    def pending(self, limit: int = 100) -> list[NotificationOutbox]:
        """Rows waiting for delivery, oldest first."""
        return list(
            self.session.scalars(
                select(NotificationOutbox)
                .where(NotificationOutbox.status == OutboxStatus.PENDING.value)
                .order_by(NotificationOutbox.created_at, NotificationOutbox.idempotency_key)
                .limit(limit)
            )
        )
