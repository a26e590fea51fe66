"""
Typed Exception Hierarchy for the HR Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Approval routing fails in a handful of well-defined ways, and every caller
(API layer, batch imports, tests) needs to tell them apart without parsing
message strings:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        executor.transition(request_id, actor_id, "APPROVE", expected_version=3)
    except ConflictError as e:
        refetch_and_show(current_version=e.current_version)
    except ForbiddenError as e:
        api_response(status=403, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from HRKernelError:

    HRKernelError (base)
    |
    +-- NotFoundError
    |   +-- RequestNotFoundError
    |   +-- ChecklistItemNotFoundError
    |   +-- SlotNotFoundError
    |   +-- UserNotFoundError
    |   +-- AssignmentNotFoundError
    |
    +-- ConcurrencyError
    |   +-- ConflictError
    |
    +-- ForbiddenError
    |   +-- UnauthorizedActorError
    |   +-- LaneAccessDeniedError
    |
    +-- InvalidTransitionError
    |   +-- TransitionGuardError
    |
    +-- ValidationError
    |   +-- CommentRequiredError
    |   +-- RemarksRequiredError
    |   +-- PayloadValidationError
    |   +-- UnknownValueError
    |
    +-- ConfigurationError
    |   +-- NoApproverFoundError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- HierarchyIntegrityError
        +-- ReportingLineCycleError
        +-- DuplicatePrimaryAssignmentError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                         | When Raised
----------------|------------------------------|----------------------------------------
Not found       | REQUEST_NOT_FOUND            | Request id doesn't exist
                | CHECKLIST_ITEM_NOT_FOUND     | Checklist item id doesn't exist
                | SLOT_NOT_FOUND               | Position slot id doesn't exist
                | USER_NOT_FOUND               | User id doesn't exist
                | ASSIGNMENT_NOT_FOUND         | Slot assignment id doesn't exist
----------------|------------------------------|----------------------------------------
Concurrency     | CONFLICT                     | expected_version != stored version
----------------|------------------------------|----------------------------------------
Forbidden       | UNAUTHORIZED_ACTOR           | Actor is not the stage approver
                | LANE_ACCESS_DENIED           | Actor's role is not mapped to the lane
----------------|------------------------------|----------------------------------------
Transition      | INVALID_TRANSITION           | (state, action) not in the table
                | TRANSITION_GUARD_FAILED      | Guarded transition, guard not met
----------------|------------------------------|----------------------------------------
Validation      | COMMENT_REQUIRED             | REJECT / REQUEST_CHANGE without comment
                | REMARKS_REQUIRED             | Checklist REJECTED without remarks
                | PAYLOAD_VALIDATION_FAILED    | Malformed request payload
                | UNKNOWN_VALUE                | Action, status or lane name not recognised
----------------|------------------------------|----------------------------------------
Configuration   | NO_APPROVER_FOUND            | Hierarchy has no approver for stage
----------------|------------------------------|----------------------------------------
Integrity       | IMMUTABILITY_VIOLATION       | Update/delete of an append-only row
                | REPORTING_LINE_CYCLE         | Edge would close a cycle
                | DUPLICATE_PRIMARY_ASSIGNMENT | Second active primary on a slot

All errors are local to a single command. None are retried inside the core.
"""

from uuid import UUID


class HRKernelError(Exception):
    """Base exception for all HR kernel errors."""

    code: str = "HR_KERNEL_ERROR"


# =============================================================================
# Not found
# =============================================================================


class NotFoundError(HRKernelError):
    """A referenced entity does not exist."""

    code: str = "NOT_FOUND"


class RequestNotFoundError(NotFoundError):
    """Workflow request does not exist."""

    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, request_id: str | UUID):
        self.request_id = str(request_id)
        super().__init__(f"Request not found: {request_id}")


class ChecklistItemNotFoundError(NotFoundError):
    """Clearance checklist item does not exist."""

    code: str = "CHECKLIST_ITEM_NOT_FOUND"

    def __init__(self, item_id: str | UUID):
        self.item_id = str(item_id)
        super().__init__(f"Checklist item not found: {item_id}")


class SlotNotFoundError(NotFoundError):
    """Position slot does not exist."""

    code: str = "SLOT_NOT_FOUND"

    def __init__(self, slot_id: str | UUID):
        self.slot_id = str(slot_id)
        super().__init__(f"Position slot not found: {slot_id}")


class UserNotFoundError(NotFoundError):
    """User account does not exist."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str | UUID):
        self.user_id = str(user_id)
        super().__init__(f"User not found: {user_id}")


class AssignmentNotFoundError(NotFoundError):
    """Slot assignment does not exist."""

    code: str = "ASSIGNMENT_NOT_FOUND"

    def __init__(self, assignment_id: str | UUID):
        self.assignment_id = str(assignment_id)
        super().__init__(f"Slot assignment not found: {assignment_id}")


# =============================================================================
# Concurrency
# =============================================================================


class ConcurrencyError(HRKernelError):
    """Base exception for concurrency errors."""

    code: str = "CONCURRENCY_ERROR"


class ConflictError(ConcurrencyError):
    """Optimistic lock mismatch on a request.

    Carries the stored version so the caller can refetch and decide
    whether to retry.
    """

    code: str = "CONFLICT"

    def __init__(self, request_id: str | UUID, expected_version: int, current_version: int):
        self.request_id = str(request_id)
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            f"Version conflict on request {request_id}: "
            f"expected {expected_version}, current {current_version}"
        )


# =============================================================================
# Authorization
# =============================================================================


class ForbiddenError(HRKernelError):
    """Actor lacks authority for the attempted operation."""

    code: str = "FORBIDDEN"


class UnauthorizedActorError(ForbiddenError):
    """Actor is not permitted to take this action at the current stage."""

    code: str = "UNAUTHORIZED_ACTOR"

    def __init__(
        self,
        actor_id: str | UUID,
        action: str,
        status: str,
        reason: str,
    ):
        self.actor_id = str(actor_id)
        self.action = action
        self.status = status
        self.reason = reason
        super().__init__(
            f"Actor {actor_id} may not {action} at {status}: {reason}"
        )


class LaneAccessDeniedError(ForbiddenError):
    """Actor's role is not mapped to the checklist lane."""

    code: str = "LANE_ACCESS_DENIED"

    def __init__(self, actor_id: str | UUID, role: str, lane: str):
        self.actor_id = str(actor_id)
        self.role = role
        self.lane = lane
        super().__init__(f"Role {role} may not act on clearance lane {lane}")


# =============================================================================
# State machine
# =============================================================================


class InvalidTransitionError(HRKernelError):
    """Action is not legal in the request's current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, current_state: str, action: str, reason: str | None = None):
        self.workflow = workflow
        self.current_state = current_state
        self.action = action
        self.reason = reason
        message = f"Action {action} is not allowed from {current_state} in workflow {workflow}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TransitionGuardError(InvalidTransitionError):
    """Transition exists but its guard is not satisfied."""

    code: str = "TRANSITION_GUARD_FAILED"

    def __init__(self, workflow: str, current_state: str, action: str, guard_name: str):
        self.guard_name = guard_name
        super().__init__(
            workflow, current_state, action, reason=f"guard '{guard_name}' not satisfied"
        )


# =============================================================================
# Validation
# =============================================================================


class ValidationError(HRKernelError):
    """Command input failed validation."""

    code: str = "VALIDATION_ERROR"


class CommentRequiredError(ValidationError):
    """REJECT and REQUEST_CHANGE need a non-blank comment."""

    code: str = "COMMENT_REQUIRED"

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"A comment is required for {action}")


class RemarksRequiredError(ValidationError):
    """Rejecting a checklist item needs non-blank remarks."""

    code: str = "REMARKS_REQUIRED"

    def __init__(self, item_id: str | UUID):
        self.item_id = str(item_id)
        super().__init__(f"Remarks are required to reject checklist item {item_id}")


class PayloadValidationError(ValidationError):
    """Request payload is malformed for its workflow type."""

    code: str = "PAYLOAD_VALIDATION_FAILED"

    def __init__(self, workflow_type: str, errors: list[str]):
        self.workflow_type = workflow_type
        self.errors = list(errors)
        super().__init__(
            f"Invalid {workflow_type} payload: " + "; ".join(self.errors)
        )


class UnknownValueError(ValidationError):
    """A command named an action, status or lane that does not exist."""

    code: str = "UNKNOWN_VALUE"

    def __init__(self, field: str, value: object, allowed: list[str]):
        self.field = field
        self.value = str(value)
        self.allowed = list(allowed)
        super().__init__(
            f"Unknown {field} '{value}'; expected one of: " + ", ".join(self.allowed)
        )


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(HRKernelError):
    """Org or workflow configuration cannot satisfy the command."""

    code: str = "CONFIGURATION_ERROR"


class NoApproverFoundError(ConfigurationError):
    """Hierarchy resolution found nobody to approve the stage.

    Fatal for the transition: the request must not proceed with an
    arbitrary fallback approver.
    """

    code: str = "NO_APPROVER_FOUND"

    def __init__(self, stage: str, required_role: str, requester_slot_id: str | UUID | None):
        self.stage = stage
        self.required_role = required_role
        self.requester_slot_id = str(requester_slot_id) if requester_slot_id else None
        super().__init__(
            f"No approver with role {required_role} found for stage {stage} "
            f"(requester slot {self.requester_slot_id})"
        )


# =============================================================================
# Integrity
# =============================================================================


class ImmutabilityError(HRKernelError):
    """Base exception for immutability errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


class HierarchyIntegrityError(HRKernelError):
    """Org hierarchy write would break a structural invariant."""

    code: str = "HIERARCHY_INTEGRITY_ERROR"


class ReportingLineCycleError(HierarchyIntegrityError):
    """Adding the reporting line would create a cycle."""

    code: str = "REPORTING_LINE_CYCLE"

    def __init__(self, child_slot_id: str | UUID, parent_slot_id: str | UUID):
        self.child_slot_id = str(child_slot_id)
        self.parent_slot_id = str(parent_slot_id)
        super().__init__(
            f"Reporting line {child_slot_id} -> {parent_slot_id} would create a cycle"
        )


class DuplicatePrimaryAssignmentError(HierarchyIntegrityError):
    """Slot already has an active primary occupant in the period."""

    code: str = "DUPLICATE_PRIMARY_ASSIGNMENT"

    def __init__(self, slot_id: str | UUID, existing_user_id: str | UUID):
        self.slot_id = str(slot_id)
        self.existing_user_id = str(existing_user_id)
        super().__init__(
            f"Slot {slot_id} already has an active primary occupant ({existing_user_id})"
        )
