"""
hr_engines.hierarchy -- Pure org-hierarchy algorithms.

Responsibility:
    Assignment activity checks, deterministic primary-occupant selection,
    reporting-line cycle detection, and the upward walk used by approver
    resolution.  Callers load slots, assignments and edges; this module
    only computes.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import hr_kernel/domain types.

Invariants enforced:
    - The upward walk terminates on any input: a visited set stops it on
      cyclic data even though cycles are rejected at write time.
    - Primary selection is deterministic: most recently started active
      primary wins, ties broken by assignment id.
    - Purity: the evaluation instant is always passed in.

Failure modes:
    - None raised here.  "No occupant" and "no match" are returned as None
      and turned into typed errors by the resolver.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import datetime
from uuid import UUID

from hr_kernel.domain.clock import as_utc
from hr_kernel.domain.dtos import AssignmentInfo, ReportingEdge


def is_assignment_active(assignment: AssignmentInfo, at: datetime) -> bool:
    """True if the assignment covers ``at`` (``ends_at`` is exclusive)."""
    at = as_utc(at)
    starts_at = as_utc(assignment.starts_at)
    ends_at = as_utc(assignment.ends_at)
    if starts_at > at:
        return False
    return ends_at is None or ends_at > at


def pick_primary_occupant(
    assignments: Iterable[AssignmentInfo],
    at: datetime,
) -> AssignmentInfo | None:
    """Return the active primary assignment of a slot, or None if vacant.

    If more than one active primary exists (legacy data), the most
    recently started wins; equal start times fall back to the assignment
    id so the answer never depends on row order.
    """
    candidates = [
        a for a in assignments
        if a.is_primary and is_assignment_active(a, at)
    ]
    if not candidates:
        return None
    return max(
        candidates,
        key=lambda a: (as_utc(a.starts_at), str(a.assignment_id)),
    )


def build_parent_map(edges: Iterable[ReportingEdge]) -> dict[UUID, tuple[UUID, ...]]:
    """Group edges into ``child -> parents`` preserving input order."""
    parents: dict[UUID, list[UUID]] = {}
    for edge in edges:
        bucket = parents.setdefault(edge.child_slot_id, [])
        if edge.parent_slot_id not in bucket:
            bucket.append(edge.parent_slot_id)
    return {child: tuple(ps) for child, ps in parents.items()}


def walk_up(
    start_slot_id: UUID,
    parent_map: Mapping[UUID, Sequence[UUID]],
    max_depth: int | None = None,
) -> Iterator[tuple[UUID, int]]:
    """Yield ``(slot_id, hops)`` for every ancestor of ``start_slot_id``.

    Breadth-first, so nearer ancestors come first; among parents of the
    same slot the ``parent_map`` order is kept.  The start slot itself is
    not yielded.  Each slot is yielded at most once.
    """
    visited: set[UUID] = {start_slot_id}
    queue: deque[tuple[UUID, int]] = deque([(start_slot_id, 0)])
    while queue:
        slot_id, hops = queue.popleft()
        if max_depth is not None and hops >= max_depth:
            continue
        for parent_id in parent_map.get(slot_id, ()):
            if parent_id in visited:
                continue
            visited.add(parent_id)
            yield parent_id, hops + 1
            queue.append((parent_id, hops + 1))


def would_create_cycle(
    parent_map: Mapping[UUID, Sequence[UUID]],
    child_slot_id: UUID,
    parent_slot_id: UUID,
) -> bool:
    """True if adding ``child -> parent`` closes a cycle.

    A cycle appears exactly when ``child`` is already ``parent`` itself or
    one of its ancestors.
    """
    if child_slot_id == parent_slot_id:
        return True
    return any(
        slot_id == child_slot_id
        for slot_id, _ in walk_up(parent_slot_id, parent_map)
    )


def find_cycle(parent_map: Mapping[UUID, Sequence[UUID]]) -> list[UUID] | None:
    """Return one cycle in the graph as a slot list, or None if acyclic.

    Used by integrity checks over data loaded from storage.
    """
    white, grey, black = 0, 1, 2
    colour: dict[UUID, int] = {}
    path: list[UUID] = []

    def visit(node: UUID) -> list[UUID] | None:
        colour[node] = grey
        path.append(node)
        for parent in parent_map.get(node, ()):
            state = colour.get(parent, white)
            if state == grey:
                return path[path.index(parent):] + [parent]
            if state == white:
                found = visit(parent)
                if found:
                    return found
        path.pop()
        colour[node] = black
        return None

    for node in sorted(parent_map, key=str):
        if colour.get(node, white) == white:
            found = visit(node)
            if found:
                return found
    return None
