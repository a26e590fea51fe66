"""
hr_services.transition_executor -- Workflow transition execution.

Responsibility:
    Applies one approval action to one request: checks the optimistic
    version, legality against the workflow table (including guards and
    the hold flag), the actor's authority, and the comment rule; then
    moves the request, appends the approval log entry, writes a snapshot
    and queues a notification.  Thin coordinator -- routing is delegated
    to ``hr_engines.routing``, approver lookup to ``ApproverResolver``,
    snapshots to ``SnapshotService``, notifications to ``OutboxService``,
    clearance to ``ClearanceLaneEngine``.

Architecture position:
    Services layer.  May import from hr_engines/ (pure engines),
    hr_modules/ (workflow definitions), hr_config/, and hr_kernel/.

Invariants enforced:
    - ``version`` +1 per accepted transition, via a conditional UPDATE on
      ``(id, version)``.  Of two callers holding the same version exactly
      one succeeds; the other gets ``ConflictError``.
    - Everything after the version check runs in one savepoint.  Any
      error rolls it back, leaving status, version, logs, snapshots,
      checklist and outbox exactly as they were.
    - Live approver resolution is authoritative for authorization; the
      ``current_approver_*`` columns are only a cache for inbox queries.
    - One ``ApprovalLog`` row and one ``RequestVersion`` row per accepted
      transition.
    - REJECT and REQUEST_CHANGE need a non-blank comment.

Failure modes:
    - ``RequestNotFoundError``, ``ConflictError``,
      ``InvalidTransitionError`` / ``TransitionGuardError``,
      ``UnauthorizedActorError``, ``CommentRequiredError``,
      ``PayloadValidationError``, ``UnknownValueError``,
      ``NoApproverFoundError``.
    None is retried; all propagate to the caller.

Audit relevance:
    Every attempt, successful or not, emits one ``workflow_transition``
    trace record (trace_type ``WORKFLOW_TRANSITION``) with the outcome
    code and duration.  Forbidden attempts are additionally logged at
    WARNING as ``authorization_denied``.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Callable, NoReturn
from uuid import UUID

from sqlalchemy.orm import Session

from hr_config import get_active_config
from hr_config.schema import WorkflowConfig
from hr_engines.routing import next_state
from hr_kernel.domain.clock import Clock, SystemClock
from hr_kernel.domain.dtos import RequestSummary, TransitionResult, UserInfo
from hr_kernel.domain.values import (
    COMMENT_REQUIRED_ACTIONS,
    ActorRule,
    ApprovalAction,
    RequestStatus,
    Role,
    WorkflowType,
    log_step_name,
    parse_value,
    step_name,
)
from hr_kernel.domain.workflow import Guard, Transition, Workflow
from hr_kernel.exceptions import (
    CommentRequiredError,
    ConflictError,
    ForbiddenError,
    HRKernelError,
    InvalidTransitionError,
    NoApproverFoundError,
    NotFoundError,
    PayloadValidationError,
    RequestNotFoundError,
    TransitionGuardError,
    UnauthorizedActorError,
    ValidationError,
)
from hr_kernel.logging_config import LogContext, get_logger
from hr_kernel.models.approval_log import ApprovalLog
from hr_kernel.models.request import WorkflowRequest
from hr_kernel.selectors.org_selector import OrgSelector
from hr_kernel.services.outbox_service import OutboxService
from hr_kernel.services.snapshot_service import SnapshotService
from hr_modules.registry import decode_payload, encode_payload, get_workflow
from hr_modules.separations import CLEARANCE_START_STATE
from hr_services.approver_resolver import ApproverResolver
from hr_services.clearance_engine import ClearanceLaneEngine
from hr_services.versioning import apply_versioned_update

logger = get_logger("services.transition_executor")

# Trace message and outcome codes for structured logging and traceability
TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_CONFLICT = "conflict"
OUTCOME_FORBIDDEN = "forbidden"
OUTCOME_INVALID_TRANSITION = "invalid_transition"
OUTCOME_GUARD_FAILED = "guard_failed"
OUTCOME_VALIDATION_FAILED = "validation_failed"
OUTCOME_NO_APPROVER = "no_approver"
OUTCOME_NOT_FOUND = "not_found"
OUTCOME_ERROR = "error"


def _outcome_for(exc: HRKernelError) -> str:
    """Map an error to its trace outcome code (most specific first)."""
    if isinstance(exc, ConflictError):
        return OUTCOME_CONFLICT
    if isinstance(exc, ForbiddenError):
        return OUTCOME_FORBIDDEN
    if isinstance(exc, TransitionGuardError):
        return OUTCOME_GUARD_FAILED
    if isinstance(exc, InvalidTransitionError):
        return OUTCOME_INVALID_TRANSITION
    if isinstance(exc, ValidationError):
        return OUTCOME_VALIDATION_FAILED
    if isinstance(exc, NoApproverFoundError):
        return OUTCOME_NO_APPROVER
    if isinstance(exc, NotFoundError):
        return OUTCOME_NOT_FOUND
    return OUTCOME_ERROR


def _emit_workflow_trace(
    workflow_name: str,
    action: str,
    request_id: UUID,
    from_state: str | None,
    outcome: str,
    reason: str,
    duration_ms: float,
    to_state: str | None = None,
    new_version: int | None = None,
) -> None:
    """Emit a structured workflow transition record for traceability."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "ts": datetime.now(UTC).isoformat(),
        "workflow": workflow_name,
        "action": action,
        "entity_id": str(request_id),
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
    }
    if to_state is not None:
        record["to_state"] = to_state
    if new_version is not None:
        record["new_version"] = new_version
    logger.info("workflow_transition", extra=record)


# ---------------------------------------------------------------------------
# Guard evaluation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GuardContext:
    """What a guard evaluator sees."""

    request: RequestSummary
    actor_id: UUID
    action: ApprovalAction


class GuardExecutor:
    """Evaluates workflow guards by name.

    Guards are declared on transitions (name + description).  This executor
    holds the evaluation logic per guard name.  A guard with no registered
    evaluator fails closed.
    """

    def __init__(self) -> None:
        self._evaluators: dict[str, Callable[[GuardContext], bool]] = {}

    def register(self, guard_name: str, evaluator: Callable[[GuardContext], bool]) -> None:
        self._evaluators[guard_name] = evaluator

    def evaluate(self, guard: Guard, context: GuardContext) -> bool:
        fn = self._evaluators.get(guard.name)
        if fn is None:
            logger.warning("guard_no_evaluator", extra={"guard_name": guard.name})
            return False
        return bool(fn(context))


def default_guard_executor(clearance: ClearanceLaneEngine) -> GuardExecutor:
    """Return a GuardExecutor with the built-in evaluators registered."""
    ex = GuardExecutor()
    ex.register(
        "clearance_complete",
        lambda ctx: clearance.is_clearance_complete(ctx.request.request_id),
    )
    return ex


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


@dataclass
class _Attempt:
    """Mutable trace fields filled in as the attempt progresses."""

    workflow_name: str = "unknown"
    from_state: str | None = None


class TransitionExecutor:
    """Executes approval actions on workflow requests."""

    def __init__(
        self,
        session: Session,
        resolver: ApproverResolver | None = None,
        clock: Clock | None = None,
        guard_executor: GuardExecutor | None = None,
        config: WorkflowConfig | None = None,
        clearance_engine: ClearanceLaneEngine | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._resolver = resolver or ApproverResolver(
            session, self._clock, self._config.supervisory_roles,
        )
        self._clearance = clearance_engine or ClearanceLaneEngine(
            session,
            lane_roles=self._config.lane_roles,
            override_roles=self._config.clearance_override_roles,
            clock=self._clock,
            templates=self._config.checklist_templates,
        )
        self._guards = guard_executor or default_guard_executor(self._clearance)
        self._override_roles = self._config.transition_override_roles
        self._org = OrgSelector(session)
        self._snapshots = SnapshotService(session, self._clock)
        self._outbox = OutboxService(session, self._clock)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def submit(
        self,
        request_id: UUID,
        actor_id: UUID,
        expected_version: int = 0,
        comment: str | None = None,
        ip_address: str | None = None,
        payload: Any = None,
    ) -> TransitionResult:
        return self.transition(
            request_id,
            actor_id,
            ApprovalAction.SUBMIT,
            expected_version,
            comment=comment,
            ip_address=ip_address,
            payload=payload,
        )

    def transition(
        self,
        request_id: UUID,
        actor_id: UUID,
        action: ApprovalAction | str,
        expected_version: int,
        comment: str | None = None,
        ip_address: str | None = None,
        payload: Any = None,
    ) -> TransitionResult:
        """Apply ``action`` to the request at ``expected_version``."""
        t0 = time.monotonic()
        action_name = getattr(action, "value", str(action))
        attempt = _Attempt()

        with LogContext.bind(request_id=str(request_id), actor_id=str(actor_id)):
            try:
                action = parse_value(ApprovalAction, action, "action")
                result = self._execute(
                    attempt, request_id, actor_id, action, expected_version,
                    comment, ip_address, payload,
                )
            except HRKernelError as exc:
                _emit_workflow_trace(
                    workflow_name=attempt.workflow_name,
                    action=action_name,
                    request_id=request_id,
                    from_state=attempt.from_state,
                    outcome=_outcome_for(exc),
                    reason=str(exc),
                    duration_ms=(time.monotonic() - t0) * 1000,
                )
                raise

            _emit_workflow_trace(
                workflow_name=attempt.workflow_name,
                action=action.value,
                request_id=request_id,
                from_state=attempt.from_state,
                to_state=result.new_status.value,
                outcome=OUTCOME_SUCCESS,
                reason="transition applied",
                duration_ms=(time.monotonic() - t0) * 1000,
                new_version=result.new_version,
            )
            return result

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _execute(
        self,
        attempt: _Attempt,
        request_id: UUID,
        actor_id: UUID,
        action: ApprovalAction,
        expected_version: int,
        comment: str | None,
        ip_address: str | None,
        payload: Any,
    ) -> TransitionResult:
        # 1. Load
        request = self._session.get(WorkflowRequest, request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        workflow = get_workflow(request.workflow_type)
        status = RequestStatus(request.status)
        attempt.workflow_name = workflow.name
        attempt.from_state = status.value

        # 2. Optimistic version check
        if expected_version != request.version:
            raise ConflictError(request_id, expected_version, request.version)

        with self._session.begin_nested():
            # 3. Legality
            transition = self._legal_transition(workflow, request, status, action)

            # 4. Authorization
            actor = self._org.user(actor_id)
            actor_slot_id = self._authorize(workflow, request, status, transition, actor_id, actor)

            # 5. Guard and input validation
            if transition.guard is not None:
                context = GuardContext(request=request.to_dto(), actor_id=actor_id, action=action)
                if not self._guards.evaluate(transition.guard, context):
                    raise TransitionGuardError(
                        workflow.name, status.value, action.value, transition.guard.name,
                    )
            if action in COMMENT_REQUIRED_ACTIONS and not (comment and comment.strip()):
                raise CommentRequiredError(action.value)
            new_payload = self._validated_payload(request, action, payload)

            # 6. Target state, approver cache, conditional update
            requester_role = self._requester_role(request)
            new_status = next_state(workflow, transition, requester_role=requester_role)
            values = self._state_values(workflow, request, transition, new_status, actor_id)
            if new_payload is not None:
                values["payload"] = new_payload
            new_version = apply_versioned_update(
                self._session, request, expected_version, values,
            )

            # 7. Approval log
            entry = ApprovalLog(
                request_id=request.id,
                actor_id=actor_id,
                actor_slot_id=actor_slot_id,
                action=action.value,
                comment=comment,
                step_name=log_step_name(action, status),
                from_status=status.value,
                to_status=new_status.value,
                version=new_version,
                performed_at=self._clock.now(),
                ip_address=ip_address,
            )
            self._session.add(entry)
            self._session.flush()

            # 8. Snapshot
            snapshot_version = self._snapshots.snapshot(
                request.id, request.snapshot_data(), actor_id,
            )

            # Separation approval opens the clearance board
            if (
                request.workflow_type == WorkflowType.SEPARATION.value
                and new_status == CLEARANCE_START_STATE
                and status != new_status
            ):
                self._clearance.start_clearance(request.id, actor_id)

            # 9. Outbox
            enqueued = self._enqueue_notification(workflow, request, transition, new_status, action)

        logger.info(
            "transition_applied",
            extra={
                "workflow": workflow.name,
                "action": action.value,
                "from_state": status.value,
                "to_state": new_status.value,
                "new_version": new_version,
                "snapshot_version": snapshot_version,
            },
        )
        return TransitionResult(
            request_id=request.id,
            action=action,
            from_status=status,
            new_status=new_status,
            new_version=new_version,
            revision_version=request.revision_version,
            is_on_hold=request.is_on_hold,
            step_name=step_name(new_status),
            current_approver_id=request.current_approver_id,
            snapshot_version=snapshot_version,
            outbox_enqueued=enqueued,
        )

    def _legal_transition(
        self,
        workflow: Workflow,
        request: WorkflowRequest,
        status: RequestStatus,
        action: ApprovalAction,
    ) -> Transition:
        transition = workflow.find_transition(status, action)
        if transition is None:
            reason = "request is in a terminal state" if workflow.is_terminal(status) else None
            raise InvalidTransitionError(workflow.name, status.value, action.value, reason=reason)
        if transition.holds and request.is_on_hold:
            raise InvalidTransitionError(
                workflow.name, status.value, action.value, reason="request is already on hold",
            )
        return transition

    def _authorize(
        self,
        workflow: Workflow,
        request: WorkflowRequest,
        status: RequestStatus,
        transition: Transition,
        actor_id: UUID,
        actor: UserInfo | None,
    ) -> UUID | None:
        """Return the slot the actor acts through, or raise Forbidden."""
        action = transition.action.value
        if actor is None or not actor.active:
            self._deny(actor_id, action, status, "unknown or inactive actor")

        if actor.role in self._override_roles:
            logger.info(
                "authorization_override",
                extra={"action": action, "actor_role": actor.role.value},
            )
            return None

        if transition.actor is ActorRule.REQUESTER:
            if actor.user_id != request.requester_id:
                self._deny(actor_id, action, status, "only the requester may do this")
            return request.requester_slot_id

        stage = workflow.stage(status)
        if stage is None:
            self._deny(actor_id, action, status, "no stage owner defined")
        approver = self._resolver.resolve(
            request.requester_slot_id, stage.owner_role, stage=status.value,
        )
        if approver.user_id != actor.user_id:
            self._deny(actor_id, action, status, "actor is not the resolved approver")
        return approver.slot_id

    def _deny(self, actor_id: UUID, action: str, status: RequestStatus, reason: str) -> NoReturn:
        logger.warning(
            "authorization_denied",
            extra={"action": action, "current_status": status.value, "reason": reason},
        )
        raise UnauthorizedActorError(actor_id, action, status.value, reason)

    def _validated_payload(
        self,
        request: WorkflowRequest,
        action: ApprovalAction,
        payload: Any,
    ) -> dict[str, Any] | None:
        """New payload to store, or None to keep the current one.

        A payload may only accompany SUBMIT.  Submitting re-validates
        whatever payload the request will carry.
        """
        if payload is not None and action is not ApprovalAction.SUBMIT:
            raise PayloadValidationError(
                request.workflow_type, [f"payload cannot be changed by {action.value}"],
            )
        if action is not ApprovalAction.SUBMIT:
            return None
        if payload is not None:
            return encode_payload(request.workflow_type, payload)
        decode_payload(request.workflow_type, request.payload or {})
        return None

    def _requester_role(self, request: WorkflowRequest) -> Role:
        """Position role used for route skipping.

        The requester's slot role when known, otherwise their system role.
        """
        if request.requester_slot_id is not None:
            slot = self._org.slot(request.requester_slot_id)
            if slot is not None:
                return slot.role
        user = self._org.user(request.requester_id)
        return user.role if user is not None else Role.EMPLOYEE

    def _state_values(
        self,
        workflow: Workflow,
        request: WorkflowRequest,
        transition: Transition,
        new_status: RequestStatus,
        actor_id: UUID,
    ) -> dict[str, Any]:
        values: dict[str, Any] = {
            "status": new_status.value,
            "is_on_hold": transition.holds,
            "updated_at": self._clock.now(),
            "updated_by_id": actor_id,
        }
        if transition.bumps_revision:
            values["revision_version"] = request.revision_version + 1
        if transition.holds:
            # same stage, same approver
            return values

        stage = workflow.stage(new_status)
        if stage is not None and stage.is_pending:
            approver = self._resolver.resolve(
                request.requester_slot_id, stage.owner_role, stage=new_status.value,
            )
            values.update(
                current_approver_id=approver.user_id,
                current_approver_slot_id=approver.slot_id,
                required_approver_role=stage.owner_role.value,
            )
        else:
            values.update(
                current_approver_id=None,
                current_approver_slot_id=None,
                required_approver_role=stage.owner_role.value if stage is not None else None,
            )
        return values

    def _enqueue_notification(
        self,
        workflow: Workflow,
        request: WorkflowRequest,
        transition: Transition,
        new_status: RequestStatus,
        action: ApprovalAction,
    ) -> bool:
        stage = workflow.stage(new_status)
        revision = f"r{request.revision_version}"
        if transition.holds:
            recipient, event_type = request.requester_id, "request_on_hold"
            stage_key = f"{new_status.value}.{action.value}.{revision}"
        elif transition.bumps_revision:
            recipient, event_type = request.requester_id, "changes_requested"
            stage_key = f"{new_status.value}.{action.value}.{revision}"
        elif stage is not None and stage.is_pending and request.current_approver_id is not None:
            recipient, event_type = request.current_approver_id, "approval_requested"
            stage_key = f"{new_status.value}.{revision}"
        else:
            recipient, event_type = request.requester_id, f"request_{new_status.value.lower()}"
            stage_key = f"{new_status.value}.{revision}"

        return self._outbox.enqueue(
            request_id=request.id,
            stage=stage_key,
            recipient_id=recipient,
            event_type=event_type,
            payload={
                "workflow_type": request.workflow_type,
                "status": new_status,
                "action": action,
                "version": request.version,
                "step_name": step_name(new_status),
            },
        )
