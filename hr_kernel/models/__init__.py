"""SQLAlchemy ORM models for the HR kernel."""

from hr_kernel.models.approval_log import ApprovalLog
from hr_kernel.models.audit_log import AuditAction, AuditLog
from hr_kernel.models.clearance import ClearanceChecklistItem
from hr_kernel.models.org import (
    PositionSlot,
    SlotAssignment,
    SlotReportingLine,
    UserAccount,
)
from hr_kernel.models.outbox import NotificationOutbox
from hr_kernel.models.request import WorkflowRequest
from hr_kernel.models.request_version import RequestVersion

__all__ = [
    "ApprovalLog",
    "AuditAction",
    "AuditLog",
    "ClearanceChecklistItem",
    "NotificationOutbox",
    "PositionSlot",
    "RequestVersion",
    "SlotAssignment",
    "SlotReportingLine",
    "UserAccount",
    "WorkflowRequest",
    "import_all_models",
]


def import_all_models() -> tuple[type, ...]:
    """Return every mapped model so Base.metadata holds all tables."""
    return (
        UserAccount,
        PositionSlot,
        SlotAssignment,
        SlotReportingLine,
        WorkflowRequest,
        ApprovalLog,
        RequestVersion,
        NotificationOutbox,
        ClearanceChecklistItem,
        AuditLog,
    )
