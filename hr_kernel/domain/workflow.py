"""
Canonical workflow types (``hr_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for request state machines.  Used by every workflow
module (manpower, business trips, separations) so that Guard, Stage,
Transition, and Workflow are defined once.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* At most one transition per ``(from_state, action)`` pair, so legality
  lookup is deterministic.
* Every state in ``approval_sequence`` is declared in ``states`` and has a
  ``Stage`` entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hr_kernel.domain.values import (
    ActorRule,
    ApprovalAction,
    RequestStatus,
    Role,
    WorkflowType,
)


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the executor's guard
    registry does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Stage:
    """A state in which somebody other than the requester must act.

    ``owner_role`` is the capability the acting approver must hold.
    ``is_pending`` marks an approval stage (counted in step numbering,
    eligible for HOLD).  ``applies_to`` limits the stage to requesters
    with one of the listed position roles; ``skip_for`` removes it for
    the listed roles.  Both only matter for states reached by routing.
    """
    status: RequestStatus
    owner_role: Role
    is_pending: bool = True
    applies_to: frozenset[Role] | None = None
    skip_for: frozenset[Role] = field(default_factory=frozenset)


@dataclass(frozen=True)
class Transition:
    """A legal ``(from_state, action) -> to_state`` edge.

    ``routed=True`` means ``to_state`` is only the nominal target: the
    router advances along the workflow's approval sequence past stages
    that do not apply to the requester.  ``bumps_revision`` marks the
    REQUEST_CHANGE loop back to draft; ``holds`` marks the HOLD
    self-loop that suspends the stage without leaving it.
    """
    from_state: RequestStatus
    to_state: RequestStatus
    action: ApprovalAction
    actor: ActorRule = ActorRule.STAGE_APPROVER
    guard: Guard | None = None
    routed: bool = False
    bumps_revision: bool = False
    holds: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for one request type.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` block every action that has no explicit
    post-terminal transition in the table.
    """
    name: str
    workflow_type: WorkflowType
    description: str
    initial_state: RequestStatus
    states: tuple[RequestStatus, ...]
    transitions: tuple[Transition, ...]
    stages: tuple[Stage, ...] = ()
    approval_sequence: tuple[RequestStatus, ...] = ()
    terminal_states: tuple[RequestStatus, ...] = ()

    def __post_init__(self) -> None:
        states = set(self.states)
        if self.initial_state not in states:
            raise ValueError(
                f"{self.name}: initial_state {self.initial_state} not in states"
            )
        seen: set[tuple[RequestStatus, ApprovalAction]] = set()
        for t in self.transitions:
            if t.from_state not in states or t.to_state not in states:
                raise ValueError(
                    f"{self.name}: transition {t.from_state} -{t.action}-> "
                    f"{t.to_state} references an undeclared state"
                )
            key = (t.from_state, t.action)
            if key in seen:
                raise ValueError(
                    f"{self.name}: duplicate transition for {t.from_state}/{t.action}"
                )
            seen.add(key)
        stage_states = {s.status for s in self.stages}
        for status in self.approval_sequence:
            if status not in states:
                raise ValueError(f"{self.name}: {status} in approval_sequence but not in states")
            if status not in stage_states:
                raise ValueError(f"{self.name}: {status} in approval_sequence has no Stage")
        for status in self.terminal_states:
            if status not in states:
                raise ValueError(f"{self.name}: terminal state {status} not in states")

    def find_transition(
        self, state: RequestStatus | str, action: ApprovalAction | str
    ) -> Transition | None:
        """Return the transition for ``(state, action)`` or None if illegal."""
        for t in self.transitions:
            if t.from_state == state and t.action == action:
                return t
        return None

    def actions_from(self, state: RequestStatus | str) -> tuple[ApprovalAction, ...]:
        """Actions that are legal from ``state``, in declaration order."""
        return tuple(t.action for t in self.transitions if t.from_state == state)

    def stage(self, status: RequestStatus | str) -> Stage | None:
        for s in self.stages:
            if s.status == status:
                return s
        return None

    def is_terminal(self, status: RequestStatus | str) -> bool:
        return status in self.terminal_states

    @property
    def pending_stages(self) -> tuple[Stage, ...]:
        """Approval stages in sequence order."""
        return tuple(
            s for s in (self.stage(st) for st in self.approval_sequence)
            if s is not None and s.is_pending
        )
