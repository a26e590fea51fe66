"""
Tests for ClearanceLaneEngine.

Tests cover:
- Separation approval seeds the checklist once, from templates
- Lane authorization per role, with HR/ADMIN override
- Remarks required on REJECTED
- Custom items (override roles only)
- Completion gate on the separation workflow
- Unknown status and lane names
- Frozen checklist once the separation is finished
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from hr_kernel.domain.values import (
    ApprovalAction,
    ChecklistItemSource,
    ChecklistStatus,
    ClearanceLane,
    RequestStatus,
    WorkflowType,
)
from hr_kernel.exceptions import (
    ChecklistItemNotFoundError,
    InvalidTransitionError,
    LaneAccessDeniedError,
    RemarksRequiredError,
    RequestNotFoundError,
    TransitionGuardError,
    UnknownValueError,
    ValidationError,
)
from hr_kernel.models.audit_log import AuditAction
from hr_kernel.models.request import WorkflowRequest
from hr_kernel.selectors.clearance_selector import ClearanceSelector
from hr_kernel.services.audit_service import AuditService
from tests.conftest import make_separation_payload

A = ApprovalAction


@pytest.fixture
def separation(executor, request_service, org):
    draft = request_service.create_draft(
        WorkflowType.SEPARATION,
        org.user_id("employee"),
        make_separation_payload(org.user_id("employee")),
    )
    executor.submit(draft.request_id, org.user_id("employee"), expected_version=0)
    executor.transition(draft.request_id, org.user_id("hr"), A.APPROVE, 1)
    return draft.request_id


def _item(session, separation_id, title):
    return next(i for i in ClearanceSelector(session).items(separation_id) if i.title == title)


class TestStartClearance:
    def test_approval_seeds_template_items(self, session, separation, workflow_config):
        items = ClearanceSelector(session).items(separation)
        assert len(items) == len(workflow_config.checklist_templates) == 18
        assert sum(1 for i in items if i.required) == 11
        assert all(i.status is ChecklistStatus.PENDING for i in items)
        assert all(i.source is ChecklistItemSource.TEMPLATE for i in items)

    def test_due_dates_from_offsets(self, session, separation, deterministic_clock):
        now = deterministic_clock.now()
        assert _item(session, separation, "Handover of ongoing work").due_at == now + timedelta(days=7)
        assert _item(session, separation, "Final settlement calculated").due_at == now + timedelta(days=3)
        assert _item(session, separation, "Printer").due_at is None

    def test_start_is_idempotent(self, session, clearance_engine, separation, org):
        items = clearance_engine.start_clearance(separation, org.user_id("hr"))
        assert len(items) == 18
        audit = AuditService(session).entries_for("separation", separation)
        assert [e.action for e in audit] == [AuditAction.CLEARANCE_STARTED.value]

    def test_only_separations_have_clearance(self, clearance_engine, request_service, org, trip_payload):
        trip = request_service.create_draft(
            WorkflowType.BUSINESS_TRIP, org.user_id("employee"), trip_payload,
        )
        with pytest.raises(RequestNotFoundError):
            clearance_engine.start_clearance(trip.request_id, org.user_id("hr"))


class TestLaneAccess:
    def test_lane_owner_clears_item(self, session, clearance_engine, separation, org, deterministic_clock):
        item = _item(session, separation, "Computer / Laptop")
        updated = clearance_engine.update_checklist_item(
            item.item_id, org.user_id("it"), ChecklistStatus.CLEARED,
        )
        assert updated.status is ChecklistStatus.CLEARED
        assert updated.checked_by_id == org.user_id("it")
        assert updated.checked_at == deterministic_clock.now()

    def test_other_lane_denied(self, session, clearance_engine, separation, org, captured_logs):
        item = _item(session, separation, "Outstanding Loans")
        with pytest.raises(LaneAccessDeniedError) as exc_info:
            clearance_engine.update_checklist_item(
                item.item_id, org.user_id("it"), ChecklistStatus.CLEARED,
            )
        assert exc_info.value.lane == "FINANCE"
        assert _item(session, separation, "Outstanding Loans").status is ChecklistStatus.PENDING
        denied = [r for r in captured_logs() if r["message"] == "authorization_denied"]
        assert denied and denied[-1]["lane"] == "FINANCE"

    def test_employee_has_no_lanes(self, session, clearance_engine, separation, org):
        assert clearance_engine.lanes_for(org.user_id("employee")) == frozenset()
        item = _item(session, separation, "ID Badge")
        with pytest.raises(LaneAccessDeniedError):
            clearance_engine.update_checklist_item(
                item.item_id, org.user_id("employee"), ChecklistStatus.CLEARED,
            )

    def test_override_roles_reach_every_lane(self, clearance_engine, org):
        assert clearance_engine.lanes_for(org.user_id("hr")) == frozenset(ClearanceLane)
        assert clearance_engine.lanes_for(org.user_id("admin")) == frozenset(ClearanceLane)

    def test_finance_head_lanes(self, clearance_engine, org):
        assert clearance_engine.lanes_for(org.user_id("finance")) == frozenset(
            {ClearanceLane.FINANCE, ClearanceLane.INSURANCE, ClearanceLane.USED_CARS}
        )

    def test_unknown_item(self, clearance_engine, org):
        with pytest.raises(ChecklistItemNotFoundError):
            clearance_engine.update_checklist_item(uuid4(), org.user_id("hr"), ChecklistStatus.CLEARED)


class TestRemarks:
    @pytest.mark.parametrize("remarks", [None, "", "  "])
    def test_reject_needs_remarks(self, session, clearance_engine, separation, org, remarks):
        item = _item(session, separation, "Outstanding Loans")
        with pytest.raises(RemarksRequiredError):
            clearance_engine.update_checklist_item(
                item.item_id, org.user_id("finance"), ChecklistStatus.REJECTED, remarks=remarks,
            )

    def test_reject_with_remarks_is_audited(self, session, clearance_engine, separation, org):
        item = _item(session, separation, "Outstanding Loans")
        updated = clearance_engine.update_checklist_item(
            item.item_id, org.user_id("finance"), ChecklistStatus.REJECTED, remarks="Loan balance open",
        )
        assert updated.remarks == "Loan balance open"
        entries = AuditService(session).entries_for("clearance_checklist_item", item.item_id)
        assert [e.action for e in entries] == [AuditAction.CHECKLIST_REJECTED.value]
        assert entries[0].details["from_status"] == "PENDING"
        assert entries[0].details["to_status"] == "REJECTED"

    def test_checklist_updates_leave_request_alone(self, session, clearance_engine, separation, org):
        before = session.get(WorkflowRequest, separation).version
        item = _item(session, separation, "ID Badge")
        clearance_engine.update_checklist_item(item.item_id, org.user_id("hr"), ChecklistStatus.CLEARED)
        assert session.get(WorkflowRequest, separation).version == before


class TestCustomItems:
    def test_hr_adds_item_at_end_of_lane(self, session, clearance_engine, separation, org):
        last = max(
            i.sort_order for i in ClearanceSelector(session).by_lane(separation)[ClearanceLane.IT]
        )
        item = clearance_engine.add_checklist_item(
            separation, org.user_id("hr"), ClearanceLane.IT, "  VPN token  ",
        )
        assert item.title == "VPN token"
        assert item.source is ChecklistItemSource.CUSTOM
        assert item.sort_order == last + 1
        assert item.required
        assert ClearanceSelector(session).by_lane(separation)[ClearanceLane.IT][-1].title == "VPN token"

    def test_non_separation_request(self, clearance_engine, request_service, org, manpower_payload):
        draft = request_service.create_draft(
            WorkflowType.MANPOWER, org.user_id("employee"), manpower_payload,
        )
        with pytest.raises(RequestNotFoundError):
            clearance_engine.add_checklist_item(draft.request_id, org.user_id("hr"), ClearanceLane.IT, "X")

    def test_lane_owner_cannot_add(self, clearance_engine, separation, org):
        with pytest.raises(LaneAccessDeniedError):
            clearance_engine.add_checklist_item(separation, org.user_id("it"), ClearanceLane.IT, "VPN token")

    def test_blank_title(self, clearance_engine, separation, org):
        with pytest.raises(ValidationError):
            clearance_engine.add_checklist_item(separation, org.user_id("admin"), ClearanceLane.IT, "   ")

    def test_custom_required_item_counts(self, clearance_engine, separation, org):
        clearance_engine.add_checklist_item(separation, org.user_id("hr"), ClearanceLane.HR_PAYROLL, "Exit interview")
        assert clearance_engine.progress(separation).total_required == 12


class TestCompletionGate:
    def test_completion_waits_for_required_items(
        self, session, executor, clearance_engine, separation, org,
    ):
        with pytest.raises(TransitionGuardError) as exc_info:
            executor.transition(separation, org.user_id("hr"), A.APPROVE, 2)
        assert exc_info.value.guard_name == "clearance_complete"

        progress = clearance_engine.progress(separation)
        assert progress.cleared_required == 0
        assert progress.ratio == 0.0

        for item in ClearanceSelector(session).items(separation):
            if item.required:
                clearance_engine.update_checklist_item(
                    item.item_id, org.user_id("admin"), ChecklistStatus.CLEARED,
                )

        progress = clearance_engine.progress(separation)
        assert progress.is_complete
        assert progress.ratio == 1.0

        result = executor.transition(separation, org.user_id("hr"), A.APPROVE, 2)
        assert result.new_status is RequestStatus.COMPLETED

    def test_optional_items_do_not_block(self, session, clearance_engine, separation, org):
        for item in ClearanceSelector(session).items(separation):
            if item.required:
                clearance_engine.update_checklist_item(
                    item.item_id, org.user_id("hr"), ChecklistStatus.CLEARED,
                )
        progress = clearance_engine.progress(separation)
        assert progress.is_complete
        assert progress.lane(ClearanceLane.ADMIN_ASSETS).cleared < progress.lane(ClearanceLane.ADMIN_ASSETS).total


class TestUnknownValues:
    def test_unknown_status_is_a_validation_error(self, session, clearance_engine, separation, org):
        item = _item(session, separation, "ID Badge")
        with pytest.raises(UnknownValueError) as exc_info:
            clearance_engine.update_checklist_item(item.item_id, org.user_id("hr"), "WAIVED")
        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.field == "checklist status"
        assert "CLEARED" in exc_info.value.allowed
        assert ClearanceSelector(session).item(item.item_id).status is ChecklistStatus.PENDING

    def test_status_accepts_plain_string(self, session, clearance_engine, separation, org):
        item = _item(session, separation, "ID Badge")
        updated = clearance_engine.update_checklist_item(item.item_id, org.user_id("hr"), "CLEARED")
        assert updated.status is ChecklistStatus.CLEARED

    def test_unknown_lane_is_a_validation_error(self, clearance_engine, separation, org):
        with pytest.raises(UnknownValueError) as exc_info:
            clearance_engine.add_checklist_item(separation, org.user_id("hr"), "FACILITIES", "Locker key")
        assert exc_info.value.field == "clearance lane"


class TestFinishedSeparation:
    @pytest.fixture
    def completed(self, session, executor, clearance_engine, separation, org):
        for item in ClearanceSelector(session).items(separation):
            if item.required:
                clearance_engine.update_checklist_item(
                    item.item_id, org.user_id("hr"), ChecklistStatus.CLEARED,
                )
        executor.transition(separation, org.user_id("hr"), A.APPROVE, 2)
        return separation

    def test_items_are_frozen(self, session, clearance_engine, completed, org):
        item = _item(session, completed, "ID Badge")
        with pytest.raises(InvalidTransitionError) as exc_info:
            clearance_engine.update_checklist_item(item.item_id, org.user_id("hr"), ChecklistStatus.PENDING)
        assert exc_info.value.current_state == RequestStatus.COMPLETED.value
        assert ClearanceSelector(session).item(item.item_id).status is ChecklistStatus.CLEARED
        assert clearance_engine.progress(completed).is_complete

    def test_no_items_added(self, session, clearance_engine, completed, org):
        before = len(ClearanceSelector(session).items(completed))
        with pytest.raises(InvalidTransitionError):
            clearance_engine.add_checklist_item(completed, org.user_id("hr"), ClearanceLane.IT, "Late item")
        assert len(ClearanceSelector(session).items(completed)) == before

    def test_open_separation_still_accepts_updates(self, session, clearance_engine, separation, org):
        item = _item(session, separation, "ID Badge")
        updated = clearance_engine.update_checklist_item(item.item_id, org.user_id("hr"), ChecklistStatus.CLEARED)
        assert updated.status is ChecklistStatus.CLEARED
