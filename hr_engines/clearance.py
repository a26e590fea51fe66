"""
hr_engines.clearance -- Clearance lane progress and lane access.

Responsibility:
    Compute per-lane and overall clearance progress from checklist items,
    and decide whether a role may act on a lane given an injected
    role -> lanes mapping.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A separation is complete iff every required item in every lane is
      CLEARED.  Optional items never block completion.
    - With no required items the ratio is 1.0 (nothing outstanding).
    - Every lane appears in the result, in ``ClearanceLane`` order, even
      when it has no items.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from hr_engines.tracer import traced_engine
from hr_kernel.domain.dtos import ChecklistItemRecord, ClearanceProgress, LaneProgress
from hr_kernel.domain.values import ChecklistStatus, ClearanceLane, Role


@traced_engine("clearance_progress", "1.0")
def compute_progress(items: Iterable[ChecklistItemRecord]) -> ClearanceProgress:
    """Aggregate checklist items into lane and overall progress."""
    counts: dict[ClearanceLane, list[int]] = {lane: [0, 0, 0, 0, 0] for lane in ClearanceLane}
    for item in items:
        c = counts[ClearanceLane(item.lane)]
        cleared = item.status == ChecklistStatus.CLEARED
        c[0] += 1
        c[1] += 1 if cleared else 0
        c[2] += 1 if item.status == ChecklistStatus.REJECTED else 0
        if item.required:
            c[3] += 1
            c[4] += 1 if cleared else 0

    lanes = tuple(
        LaneProgress(
            lane=lane,
            total=c[0],
            cleared=c[1],
            rejected=c[2],
            total_required=c[3],
            cleared_required=c[4],
        )
        for lane, c in counts.items()
    )
    return ClearanceProgress(
        lanes=lanes,
        total_required=sum(lp.total_required for lp in lanes),
        cleared_required=sum(lp.cleared_required for lp in lanes),
    )


def lanes_for_role(
    role: Role,
    lane_roles: Mapping[Role, frozenset[ClearanceLane]],
    override_roles: frozenset[Role] = frozenset(),
) -> frozenset[ClearanceLane]:
    """Lanes a role may act on; override roles get every lane."""
    if role in override_roles:
        return frozenset(ClearanceLane)
    return frozenset(lane_roles.get(role, frozenset()))


def can_act_on_lane(
    role: Role,
    lane: ClearanceLane,
    lane_roles: Mapping[Role, frozenset[ClearanceLane]],
    override_roles: frozenset[Role] = frozenset(),
) -> bool:
    return ClearanceLane(lane) in lanes_for_role(role, lane_roles, override_roles)
