"""
hr_services.approver_resolver -- Finds who must act on an approval stage.

Responsibility:
    Given the requester's position slot and the role a stage requires,
    return the slot and user that must approve.  Role-gated HOD and CEO
    stages are answered from department-head / stage-owner slots; every
    other stage (and any shortcut miss) walks the reporting lines upward
    from the requester's slot.

Architecture position:
    Services layer.  Reads through ``OrgSelector``; the walk, the
    occupancy check and the primary pick are pure functions in
    ``hr_engines.hierarchy``.

Invariants enforced:
    - Only the active primary occupant of a slot (at ``clock.now()``)
      can be the approver.  Ended or future assignments never receive
      approval tasks.
    - Deterministic: shortcut candidates are taken in slot-code order,
      walk parents in slot-code order, duplicate primaries by most recent
      start then assignment id.
    - Never falls back to an arbitrary user.

Failure modes:
    - ``NoApproverFoundError`` when neither the shortcut nor the walk
      yields an occupied matching slot.  Callers treat this as a blocking
      configuration error.

Audit relevance:
    ``approver_resolved`` records how each approver was found
    (shortcut or walk, hop count), so a routing decision can be
    reconstructed from the logs.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from hr_engines.hierarchy import pick_primary_occupant, walk_up
from hr_kernel.domain.clock import Clock, SystemClock
from hr_kernel.domain.dtos import AssignmentInfo, ResolvedApprover
from hr_kernel.domain.values import Role
from hr_kernel.exceptions import NoApproverFoundError
from hr_kernel.logging_config import get_logger
from hr_kernel.selectors.org_selector import OrgSelector

logger = get_logger("services.approver_resolver")

# Stages answered from flagged slots before walking the chain
SHORTCUT_ROLES: frozenset[Role] = frozenset({
    Role.HOD_HR,
    Role.HOD_FINANCE,
    Role.HOD_IT,
    Role.CEO,
})

DEFAULT_SUPERVISORY_ROLES: frozenset[Role] = frozenset(Role) - {Role.EMPLOYEE}


class ApproverResolver:
    """Resolves stage approvers over the slot-based org hierarchy.

    Side-effect free: only reads.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        supervisory_roles: Iterable[Role] | None = None,
    ):
        self._org = OrgSelector(session)
        self._clock = clock or SystemClock()
        self._supervisory_roles = frozenset(
            DEFAULT_SUPERVISORY_ROLES if supervisory_roles is None else supervisory_roles
        )

    def capability_matches(self, slot_role: Role, required_role: Role) -> bool:
        """Whether a slot of ``slot_role`` can act for ``required_role``.

        The MANAGER capability is satisfied by any supervisory role; every
        other capability needs the exact role.
        """
        if required_role is Role.MANAGER:
            return slot_role in self._supervisory_roles
        return slot_role == required_role

    def primary_occupant(self, slot_id: UUID, at: datetime | None = None) -> AssignmentInfo | None:
        at = at or self._clock.now()
        return pick_primary_occupant(self._org.assignments_for_slot(slot_id), at)

    def is_primary_occupant(self, user_id: UUID, slot_id: UUID) -> bool:
        occupant = self.primary_occupant(slot_id)
        return occupant is not None and occupant.user_id == user_id

    def resolve(
        self,
        requester_slot_id: UUID | None,
        required_role: Role | str,
        stage: str | None = None,
    ) -> ResolvedApprover:
        """Return the approver for ``stage`` or raise NoApproverFoundError."""
        required_role = Role(required_role)
        stage_name = stage or required_role.value
        at = self._clock.now()

        if required_role in SHORTCUT_ROLES:
            resolved = self._resolve_shortcut(required_role, at)
            if resolved is not None:
                self._log_resolved(resolved, stage_name, requester_slot_id)
                return resolved

        if requester_slot_id is not None:
            resolved = self._resolve_walk(requester_slot_id, required_role, at)
            if resolved is not None:
                self._log_resolved(resolved, stage_name, requester_slot_id)
                return resolved

        logger.warning(
            "approver_not_found",
            extra={
                "stage": stage_name,
                "required_role": required_role.value,
                "requester_slot_id": str(requester_slot_id) if requester_slot_id else None,
            },
        )
        raise NoApproverFoundError(stage_name, required_role.value, requester_slot_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_shortcut(self, required_role: Role, at: datetime) -> ResolvedApprover | None:
        slots = self._org.stage_owner_slots(required_role)
        assignments = self._org.assignments_for_slots([s.slot_id for s in slots])
        for slot in slots:
            occupant = pick_primary_occupant(assignments[slot.slot_id], at)
            if occupant is not None:
                return ResolvedApprover(
                    slot_id=slot.slot_id,
                    user_id=occupant.user_id,
                    role=slot.role,
                    via="shortcut",
                )
        return None

    def _resolve_walk(
        self,
        requester_slot_id: UUID,
        required_role: Role,
        at: datetime,
    ) -> ResolvedApprover | None:
        ancestors = list(walk_up(requester_slot_id, self._org.parent_map()))
        if not ancestors:
            return None
        slot_ids = [slot_id for slot_id, _ in ancestors]
        slots = self._org.slots(slot_ids)
        assignments = self._org.assignments_for_slots(slot_ids)

        for slot_id, hops in ancestors:
            slot = slots.get(slot_id)
            if slot is None or not slot.active:
                continue
            if not self.capability_matches(slot.role, required_role):
                continue
            occupant = pick_primary_occupant(assignments[slot_id], at)
            if occupant is None:
                # vacant: keep walking through it
                continue
            return ResolvedApprover(
                slot_id=slot_id,
                user_id=occupant.user_id,
                role=slot.role,
                via="walk",
                hops=hops,
            )
        return None

    def _log_resolved(
        self,
        resolved: ResolvedApprover,
        stage: str,
        requester_slot_id: UUID | None,
    ) -> None:
        logger.info(
            "approver_resolved",
            extra={
                "stage": stage,
                "approver_slot_id": str(resolved.slot_id),
                "approver_user_id": str(resolved.user_id),
                "approver_role": resolved.role.value,
                "via": resolved.via,
                "hops": resolved.hops,
                "requester_slot_id": str(requester_slot_id) if requester_slot_id else None,
            },
        )
