"""
Module: hr_kernel.selectors.clearance_selector
Responsibility: Read-only access to a separation's clearance checklist,
    flat or grouped by lane.
Architecture position: Kernel > Selectors.  Extends BaseSelector.

Invariants enforced:
    - Items come back in lane order (``ClearanceLane`` declaration order),
      then ``sort_order``, then title.
    - ``by_lane`` has a key for every lane, empty lanes included.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from hr_kernel.domain.dtos import ChecklistItemRecord
from hr_kernel.domain.values import ClearanceLane
from hr_kernel.models.clearance import ClearanceChecklistItem
from hr_kernel.selectors.base import BaseSelector

_LANE_ORDER = {lane: i for i, lane in enumerate(ClearanceLane)}


class ClearanceSelector(BaseSelector[ClearanceChecklistItem]):
    """Queries for clearance checklist items."""

    def item(self, item_id: UUID) -> ChecklistItemRecord | None:
        row = self.session.get(ClearanceChecklistItem, item_id)
        return row.to_dto() if row is not None else None

    def items(self, separation_id: UUID) -> list[ChecklistItemRecord]:
        rows = self.session.scalars(
            select(ClearanceChecklistItem).where(
                ClearanceChecklistItem.separation_id == separation_id
            )
        )
        records = [row.to_dto() for row in rows]
        records.sort(key=lambda r: (_LANE_ORDER[r.lane], r.sort_order, r.title))
        return records

    def by_lane(self, separation_id: UUID) -> dict[ClearanceLane, list[ChecklistItemRecord]]:
        grouped: dict[ClearanceLane, list[ChecklistItemRecord]] = {
            lane: [] for lane in ClearanceLane
        }
        for record in self.items(separation_id):
            grouped[record.lane].append(record)
        return grouped

    def has_items(self, separation_id: UUID) -> bool:
        return self.session.scalar(
            select(ClearanceChecklistItem.id)
            .where(ClearanceChecklistItem.separation_id == separation_id)
            .limit(1)
        ) is not None
