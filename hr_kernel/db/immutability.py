"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The approval history is the evidence of who approved what, and when.  Once
written, an approval log entry, a request snapshot, or an audit log entry
must never change: corrections happen through new transitions that leave
their own trail.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
We register listeners that intercept these events:

    session.flush()
         |
         v
    [before_update event] --> _block_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _block_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity             | When Immutable          | Why
-------------------|-------------------------|----------------------------------
ApprovalLog        | ALWAYS (from creation)  | Reconstructs the approval chain
RequestVersion     | ALWAYS (from creation)  | Point-in-time audit snapshot
AuditLog           | ALWAYS (from creation)  | Checklist / hierarchy audit trail

Bulk ``update()`` / ``delete()`` statements bypass mapper events; no
service issues them against these tables.
"""

from sqlalchemy import event

from hr_kernel.exceptions import ImmutabilityViolationError
from hr_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(target, operation: str) -> None:
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    verb = "modified" if operation == "UPDATE" else "deleted"
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=f"{entity_type} records are append-only and cannot be {verb}",
    )


def _block_update(mapper, connection, target):
    """Prevent any update to an append-only record."""
    _block(target, "UPDATE")


def _block_delete(mapper, connection, target):
    """Prevent deletion of an append-only record."""
    _block(target, "DELETE")


def _append_only_models() -> tuple:
    from hr_kernel.models.approval_log import ApprovalLog
    from hr_kernel.models.audit_log import AuditLog
    from hr_kernel.models.request_version import RequestVersion

    return (ApprovalLog, RequestVersion, AuditLog)


def register_immutability_listeners() -> None:
    """
    Register all immutability enforcement event listeners.

    Call during application initialization, after models are importable
    and before any database writes.  Safe to call more than once.
    """
    for model in _append_only_models():
        if not event.contains(model, "before_update", _block_update):
            event.listen(model, "before_update", _block_update)
        if not event.contains(model, "before_delete", _block_delete):
            event.listen(model, "before_delete", _block_delete)


def _safe_remove_listener(target, event_name, listener_fn) -> None:
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that must violate immutability to
    verify detection.
    """
    for model in _append_only_models():
        _safe_remove_listener(model, "before_update", _block_update)
        _safe_remove_listener(model, "before_delete", _block_delete)
