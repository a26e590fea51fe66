"""
Core enumerations (``hr_kernel.domain.values``).

Responsibility
--------------
The closed vocabularies shared by every layer: workflow types, request
statuses, approval actions, org roles, clearance lanes, and outbox
delivery states.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``RequestStatus`` is the union of every workflow's state set; each
  ``Workflow`` declares which subset it uses.
* ``step_name`` is total over ``RequestStatus``: adding a status without a
  label raises instead of silently falling through.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from hr_kernel.exceptions import UnknownValueError

E = TypeVar("E", bound=Enum)


class WorkflowType(str, Enum):
    """Kinds of request that go through an approval workflow."""

    MANPOWER = "MANPOWER"
    BUSINESS_TRIP = "BUSINESS_TRIP"
    SEPARATION = "SEPARATION"


class RequestStatus(str, Enum):
    """Request lifecycle states across all workflow types."""

    DRAFT = "DRAFT"
    PENDING_MANAGER = "PENDING_MANAGER"
    PENDING_HR = "PENDING_HR"
    PENDING_FINANCE = "PENDING_FINANCE"
    PENDING_CEO = "PENDING_CEO"
    SUBMITTED = "SUBMITTED"
    APPROVED_OPEN = "APPROVED_OPEN"
    HIRING_IN_PROGRESS = "HIRING_IN_PROGRESS"
    APPROVED = "APPROVED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"
    CANCELLED = "CANCELLED"


class ApprovalAction(str, Enum):
    """Actions recorded on the approval log."""

    SUBMIT = "SUBMIT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    REQUEST_CHANGE = "REQUEST_CHANGE"
    HOLD = "HOLD"
    ARCHIVE = "ARCHIVE"
    CANCEL = "CANCEL"


# Actions that need a non-blank comment
COMMENT_REQUIRED_ACTIONS: frozenset[ApprovalAction] = frozenset({
    ApprovalAction.REJECT,
    ApprovalAction.REQUEST_CHANGE,
})


class Role(str, Enum):
    """Org role, used both for position slots and user accounts."""

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    HOD = "HOD"
    HOD_HR = "HOD_HR"
    HOD_FINANCE = "HOD_FINANCE"
    HOD_IT = "HOD_IT"
    CEO = "CEO"
    ADMIN = "ADMIN"


class ActorRule(str, Enum):
    """Who may fire a transition."""

    REQUESTER = "REQUESTER"
    STAGE_APPROVER = "STAGE_APPROVER"


class ClearanceLane(str, Enum):
    """Independent clearance tracks for a separation."""

    OPERATIONS = "OPERATIONS"
    IT = "IT"
    FINANCE = "FINANCE"
    ADMIN_ASSETS = "ADMIN_ASSETS"
    INSURANCE = "INSURANCE"
    USED_CARS = "USED_CARS"
    HR_PAYROLL = "HR_PAYROLL"


class ChecklistStatus(str, Enum):
    PENDING = "PENDING"
    CLEARED = "CLEARED"
    REJECTED = "REJECTED"


class ChecklistItemSource(str, Enum):
    TEMPLATE = "TEMPLATE"
    CUSTOM = "CUSTOM"


class SeparationType(str, Enum):
    RESIGNATION = "RESIGNATION"
    TERMINATION = "TERMINATION"
    RETIREMENT = "RETIREMENT"
    END_OF_CONTRACT = "END_OF_CONTRACT"


class OutboxStatus(str, Enum):
    """Delivery state of a notification outbox row."""

    PENDING = "PENDING"
    SENDING = "SENDING"
    SENT = "SENT"
    FAILED = "FAILED"


SUBMISSION_STEP_NAME = "Submission"


def step_name(status: RequestStatus) -> str:
    """Display label for the stage a request is in."""
    match RequestStatus(status):
        case RequestStatus.DRAFT:
            return "Draft"
        case RequestStatus.PENDING_MANAGER:
            return "Manager Review"
        case RequestStatus.PENDING_HR | RequestStatus.SUBMITTED:
            return "HR Review"
        case RequestStatus.PENDING_FINANCE:
            return "Finance Review"
        case RequestStatus.PENDING_CEO:
            return "CEO Review"
        case RequestStatus.APPROVED_OPEN | RequestStatus.APPROVED:
            return "Approved"
        case RequestStatus.HIRING_IN_PROGRESS:
            return "Hiring"
        case RequestStatus.COMPLETED:
            return "Completed"
        case RequestStatus.REJECTED:
            return "Rejected"
        case RequestStatus.ARCHIVED:
            return "Archived"
        case RequestStatus.CANCELLED:
            return "Cancelled"
        case _:
            raise ValueError(f"No step name for status: {status}")


def log_step_name(action: ApprovalAction, status: RequestStatus) -> str:
    """Step name recorded on an approval log entry."""
    if ApprovalAction(action) is ApprovalAction.SUBMIT:
        return SUBMISSION_STEP_NAME
    return step_name(status)


def parse_value(enum_cls: type[E], value: E | str, field: str) -> E:
    """Coerce command input to ``enum_cls`` or raise ``UnknownValueError``."""
    try:
        return enum_cls(value)
    except ValueError:
        raise UnknownValueError(field, value, [m.value for m in enum_cls]) from None
