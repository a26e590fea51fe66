"""
hr_services.versioning -- Optimistic-lock write for workflow requests.

Responsibility:
    The single place that changes ``WorkflowRequest.version``: a
    conditional ``UPDATE ... SET version = version + 1 WHERE id = :id AND
    version = :expected``.  Used by the transition executor and the
    request service.

Invariants enforced:
    - ``version`` moves by exactly one per accepted write.
    - Two writers holding the same expected version cannot both succeed:
      the second UPDATE matches no row and raises ``ConflictError``
      carrying the version now stored.

Failure modes:
    - ``ConflictError`` when the row matched nothing (stale version, or
      the row changed between the caller's read and this write).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from hr_kernel.exceptions import ConflictError
from hr_kernel.logging_config import get_logger
from hr_kernel.models.request import WorkflowRequest

logger = get_logger("services.versioning")


def apply_versioned_update(
    session: Session,
    request: WorkflowRequest,
    expected_version: int,
    values: dict[str, Any],
) -> int:
    """Apply ``values`` and bump the version; return the new version."""
    stmt = (
        update(WorkflowRequest)
        .where(
            WorkflowRequest.id == request.id,
            WorkflowRequest.version == expected_version,
        )
        .values(version=WorkflowRequest.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:
        current = session.scalar(
            select(WorkflowRequest.version).where(WorkflowRequest.id == request.id)
        )
        logger.warning(
            "optimistic_lock_conflict",
            extra={
                "request_id": str(request.id),
                "expected_version": expected_version,
                "current_version": current,
            },
        )
        raise ConflictError(request.id, expected_version, current if current is not None else -1)

    session.refresh(request)
    return request.version
