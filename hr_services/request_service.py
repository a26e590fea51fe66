"""
hr_services.request_service -- Draft creation and editing.

Responsibility:
    Opens new requests in their workflow's initial state and lets the
    requester edit the payload while the request is still a draft.
    Everything after the draft stage goes through the transition
    executor.

Architecture position:
    Services layer.  Flush-only: the caller owns commit/rollback.

Invariants enforced:
    - A new request starts at ``version = 0`` and ``revision_version = 0``
      with no snapshot.
    - Only the requester may edit, only in the initial state, and each
      edit bumps ``version`` through the optimistic-lock write and writes
      a snapshot in the same atomic unit.
    - Payloads are validated against the workflow's payload type before
      they are stored.

Failure modes:
    - ``UserNotFoundError``, ``RequestNotFoundError``.
    - ``PayloadValidationError`` for a malformed payload.
    - ``ConflictError`` for a stale ``expected_version``.
    - ``UnauthorizedActorError`` for a non-requester edit.
    - ``InvalidTransitionError`` for an edit outside the draft state.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from hr_engines.hierarchy import is_assignment_active
from hr_kernel.domain.clock import Clock, SystemClock, as_utc
from hr_kernel.domain.dtos import RequestSummary
from hr_kernel.domain.values import WorkflowType
from hr_kernel.exceptions import (
    ConflictError,
    InvalidTransitionError,
    RequestNotFoundError,
    UnauthorizedActorError,
    UserNotFoundError,
)
from hr_kernel.logging_config import LogContext, get_logger
from hr_kernel.models.request import WorkflowRequest
from hr_kernel.selectors.org_selector import OrgSelector
from hr_kernel.services.snapshot_service import SnapshotService
from hr_modules.registry import Payload, encode_payload, get_workflow
from hr_services.versioning import apply_versioned_update

logger = get_logger("services.request")

UPDATE_DRAFT_ACTION = "UPDATE_DRAFT"


class RequestService:
    """Creates and edits draft requests."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._org = OrgSelector(session)
        self._snapshots = SnapshotService(session, self._clock)

    def create_draft(
        self,
        workflow_type: WorkflowType | str,
        requester_id: UUID,
        payload: Payload | dict[str, Any],
        requester_slot_id: UUID | None = None,
    ) -> RequestSummary:
        """Open a request in the workflow's initial state at version 0.

        ``requester_slot_id`` defaults to the slot the requester currently
        occupies as primary.
        """
        workflow_type = WorkflowType(workflow_type)
        if self._org.user(requester_id) is None:
            raise UserNotFoundError(requester_id)
        data = encode_payload(workflow_type, payload)
        if requester_slot_id is None:
            requester_slot_id = self.current_slot_of(requester_id)

        workflow = get_workflow(workflow_type)
        now = self._clock.now()
        request = WorkflowRequest(
            workflow_type=workflow_type.value,
            requester_id=requester_id,
            requester_slot_id=requester_slot_id,
            status=workflow.initial_state.value,
            version=0,
            revision_version=0,
            is_on_hold=False,
            payload=data,
            created_at=now,
            updated_at=now,
            created_by_id=requester_id,
        )
        self._session.add(request)
        self._session.flush()

        logger.info(
            "draft_created",
            extra={
                "request_id": str(request.id),
                "workflow_type": workflow_type.value,
                "requester_id": str(requester_id),
            },
        )
        return request.to_dto()

    def update_draft(
        self,
        request_id: UUID,
        actor_id: UUID,
        payload: Payload | dict[str, Any],
        expected_version: int,
    ) -> RequestSummary:
        """Replace a draft's payload; bumps version and writes a snapshot."""
        request = self._session.get(WorkflowRequest, request_id)
        if request is None:
            raise RequestNotFoundError(request_id)

        with LogContext.bind(request_id=str(request_id), actor_id=str(actor_id)):
            if expected_version != request.version:
                raise ConflictError(request_id, expected_version, request.version)

            workflow = get_workflow(request.workflow_type)
            if actor_id != request.requester_id:
                logger.warning(
                    "authorization_denied",
                    extra={"action": UPDATE_DRAFT_ACTION, "current_status": request.status},
                )
                raise UnauthorizedActorError(
                    actor_id, UPDATE_DRAFT_ACTION, request.status,
                    "only the requester may edit a draft",
                )
            if request.status != workflow.initial_state:
                raise InvalidTransitionError(
                    workflow.name, request.status, UPDATE_DRAFT_ACTION,
                    reason="only drafts can be edited",
                )
            data = encode_payload(request.workflow_type, payload)

            with self._session.begin_nested():
                new_version = apply_versioned_update(
                    self._session,
                    request,
                    expected_version,
                    {
                        "payload": data,
                        "updated_at": self._clock.now(),
                        "updated_by_id": actor_id,
                    },
                )
                snapshot_version = self._snapshots.snapshot(
                    request.id, request.snapshot_data(), actor_id,
                )

            logger.info(
                "draft_updated",
                extra={"new_version": new_version, "snapshot_version": snapshot_version},
            )
            return request.to_dto()

    def current_slot_of(self, user_id: UUID) -> UUID | None:
        """Slot the user holds as active primary; most recent start wins."""
        now = self._clock.now()
        active = [
            a for a in self._org.assignments_for_user(user_id)
            if a.is_primary and is_assignment_active(a, now)
        ]
        if not active:
            return None
        return max(active, key=lambda a: (as_utc(a.starts_at), str(a.assignment_id))).slot_id
