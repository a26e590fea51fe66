"""
Module: hr_engines
Responsibility:
    Package entrypoint that re-exports the pure calculation engines used by
    the service layer: org hierarchy walks, stage routing, and clearance
    progress.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import hr_kernel/domain (and sibling engine modules).
    MUST NOT import hr_services or hr_modules.

Invariants enforced:
    - Purity: engines never read the clock; instants are passed in.
    - Determinism: identical inputs always produce identical outputs.
"""

from hr_engines.clearance import can_act_on_lane, compute_progress, lanes_for_role
from hr_engines.hierarchy import (
    build_parent_map,
    find_cycle,
    is_assignment_active,
    pick_primary_occupant,
    walk_up,
    would_create_cycle,
)
from hr_engines.routing import effective_route, next_state, stage_applies, step_position

__all__ = [
    "build_parent_map",
    "can_act_on_lane",
    "compute_progress",
    "effective_route",
    "find_cycle",
    "is_assignment_active",
    "lanes_for_role",
    "next_state",
    "pick_primary_occupant",
    "stage_applies",
    "step_position",
    "walk_up",
    "would_create_cycle",
]
