"""Kernel write services.  Flush-only; the caller owns the transaction."""

from hr_kernel.services.audit_service import AuditService
from hr_kernel.services.base import BaseService
from hr_kernel.services.outbox_service import OutboxService
from hr_kernel.services.snapshot_service import SnapshotService

__all__ = [
    "AuditService",
    "BaseService",
    "OutboxService",
    "SnapshotService",
]
