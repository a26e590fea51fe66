"""
Pure domain layer.

Frozen value objects and enums with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

The one sanctioned boundary is ``SystemClock``.
"""

from hr_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from hr_kernel.domain.values import (
    ActorRule,
    ApprovalAction,
    ChecklistItemSource,
    ChecklistStatus,
    ClearanceLane,
    OutboxStatus,
    RequestStatus,
    Role,
    SeparationType,
    WorkflowType,
    parse_value,
)
from hr_kernel.domain.workflow import Guard, Stage, Transition, Workflow

__all__ = [
    "ActorRule",
    "ApprovalAction",
    "ChecklistItemSource",
    "ChecklistStatus",
    "ClearanceLane",
    "Clock",
    "DeterministicClock",
    "Guard",
    "OutboxStatus",
    "RequestStatus",
    "Role",
    "SeparationType",
    "Stage",
    "SystemClock",
    "Transition",
    "Workflow",
    "WorkflowType",
    "parse_value",
]
