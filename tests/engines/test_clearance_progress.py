"""
Tests for the pure clearance engine.

Tests cover:
- compute_progress: per-lane counts, optional items, empty checklist
- lanes_for_role / can_act_on_lane with the injected mapping
"""

from uuid import uuid4

from hypothesis import given
from hypothesis import strategies as st

from hr_engines.clearance import can_act_on_lane, compute_progress, lanes_for_role
from hr_kernel.domain.dtos import ChecklistItemRecord
from hr_kernel.domain.values import ChecklistStatus, ClearanceLane, Role

SEPARATION_ID = uuid4()

LANE_ROLES = {
    Role.HOD_IT: frozenset({ClearanceLane.IT}),
    Role.HOD_FINANCE: frozenset({ClearanceLane.FINANCE, ClearanceLane.INSURANCE}),
}
OVERRIDE = frozenset({Role.HOD_HR, Role.ADMIN})


def make_item(
    lane: ClearanceLane = ClearanceLane.IT,
    status: ChecklistStatus = ChecklistStatus.PENDING,
    required: bool = True,
) -> ChecklistItemRecord:
    return ChecklistItemRecord(
        item_id=uuid4(),
        separation_id=SEPARATION_ID,
        lane=lane,
        title="Item",
        required=required,
        status=status,
    )


class TestComputeProgress:
    def test_empty_checklist_is_complete(self):
        progress = compute_progress([])
        assert progress.ratio == 1.0
        assert progress.is_complete
        assert len(progress.lanes) == len(ClearanceLane)

    def test_lanes_in_enum_order(self):
        progress = compute_progress([make_item(ClearanceLane.HR_PAYROLL)])
        assert [lp.lane for lp in progress.lanes] == list(ClearanceLane)

    def test_counts_per_lane(self):
        items = [
            make_item(ClearanceLane.IT, ChecklistStatus.CLEARED),
            make_item(ClearanceLane.IT, ChecklistStatus.REJECTED),
            make_item(ClearanceLane.IT, ChecklistStatus.PENDING, required=False),
            make_item(ClearanceLane.FINANCE, ChecklistStatus.PENDING),
        ]
        progress = compute_progress(items)
        it = progress.lane(ClearanceLane.IT)
        assert (it.total, it.cleared, it.rejected) == (3, 1, 1)
        assert (it.total_required, it.cleared_required) == (2, 1)
        assert not it.is_complete
        assert progress.total_required == 3
        assert progress.cleared_required == 1
        assert progress.ratio == 1 / 3

    def test_optional_items_never_block(self):
        items = [
            make_item(ClearanceLane.IT, ChecklistStatus.CLEARED),
            make_item(ClearanceLane.ADMIN_ASSETS, ChecklistStatus.PENDING, required=False),
        ]
        assert compute_progress(items).is_complete

    def test_rejected_required_item_blocks(self):
        items = [make_item(ClearanceLane.IT, ChecklistStatus.REJECTED)]
        assert not compute_progress(items).is_complete

    @given(
        st.lists(
            st.tuples(
                st.sampled_from(list(ClearanceLane)),
                st.sampled_from(list(ChecklistStatus)),
                st.booleans(),
            ),
            max_size=30,
        )
    )
    def test_complete_iff_every_required_item_cleared(self, specs):
        items = [make_item(lane, status, required) for lane, status, required in specs]
        expected = all(i.status == ChecklistStatus.CLEARED for i in items if i.required)
        progress = compute_progress(items)
        assert progress.is_complete == expected
        assert 0.0 <= progress.ratio <= 1.0


class TestLaneAccess:
    def test_mapped_role_gets_its_lanes(self):
        assert lanes_for_role(Role.HOD_FINANCE, LANE_ROLES, OVERRIDE) == frozenset(
            {ClearanceLane.FINANCE, ClearanceLane.INSURANCE}
        )

    def test_unmapped_role_gets_nothing(self):
        assert lanes_for_role(Role.EMPLOYEE, LANE_ROLES, OVERRIDE) == frozenset()

    def test_override_role_gets_every_lane(self):
        assert lanes_for_role(Role.ADMIN, LANE_ROLES, OVERRIDE) == frozenset(ClearanceLane)

    def test_can_act_on_lane(self):
        assert can_act_on_lane(Role.HOD_IT, ClearanceLane.IT, LANE_ROLES, OVERRIDE)
        assert not can_act_on_lane(Role.HOD_IT, ClearanceLane.FINANCE, LANE_ROLES, OVERRIDE)
        assert can_act_on_lane(Role.HOD_HR, ClearanceLane.FINANCE, LANE_ROLES, OVERRIDE)
