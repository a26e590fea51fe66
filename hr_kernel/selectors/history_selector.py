"""
Module: hr_kernel.selectors.history_selector
Responsibility: The history / audit read interface: a request's approval
    chain and its version snapshots.
Architecture position: Kernel > Selectors.  Extends BaseSelector.

Invariants enforced:
    - Approval history is ordered by ``performed_at`` and then by the
      request version the entry produced, so entries written within the
      same clock tick still come back in the order they happened.
    - Versions are ordered by ``version_number``.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from hr_kernel.domain.dtos import ApprovalLogRecord, RequestSummary, RequestVersionRecord
from hr_kernel.models.approval_log import ApprovalLog
from hr_kernel.models.request import WorkflowRequest
from hr_kernel.models.request_version import RequestVersion
from hr_kernel.selectors.base import BaseSelector


class HistorySelector(BaseSelector[ApprovalLog]):
    """Read access to approval logs and request snapshots."""

    def request(self, request_id: UUID) -> RequestSummary | None:
        row = self.session.get(WorkflowRequest, request_id)
        return row.to_dto() if row is not None else None

    def approval_history(self, request_id: UUID) -> list[ApprovalLogRecord]:
        rows = self.session.scalars(
            select(ApprovalLog)
            .where(ApprovalLog.request_id == request_id)
            .order_by(ApprovalLog.performed_at, ApprovalLog.version)
        )
        return [row.to_dto() for row in rows]

    def versions(self, request_id: UUID) -> list[RequestVersionRecord]:
        rows = self.session.scalars(
            select(RequestVersion)
            .where(RequestVersion.request_id == request_id)
            .order_by(RequestVersion.version_number)
        )
        return [row.to_dto() for row in rows]

    def version(self, request_id: UUID, version_number: int) -> RequestVersionRecord | None:
        row = self.session.scalar(
            select(RequestVersion).where(
                RequestVersion.request_id == request_id,
                RequestVersion.version_number == version_number,
            )
        )
        return row.to_dto() if row is not None else None

    def latest_version(self, request_id: UUID) -> RequestVersionRecord | None:
        row = self.session.scalar(
            select(RequestVersion)
            .where(RequestVersion.request_id == request_id)
            .order_by(RequestVersion.version_number.desc())
            .limit(1)
        )
        return row.to_dto() if row is not None else None
