"""
Tests for RequestService (draft creation and editing).

Tests cover:
- New drafts start at version 0, revision 0, without a snapshot
- requester_slot_id defaults to the requester's primary slot
- Draft edits bump version and write a snapshot
- Edits are requester-only, draft-only, and optimistic-locked
"""

from uuid import uuid4

import pytest

from hr_kernel.domain.values import RequestStatus, WorkflowType
from hr_kernel.exceptions import (
    ConflictError,
    InvalidTransitionError,
    PayloadValidationError,
    RequestNotFoundError,
    UnauthorizedActorError,
    UserNotFoundError,
)
from hr_kernel.selectors.history_selector import HistorySelector
from tests.conftest import make_manpower_payload


class TestCreateDraft:
    def test_new_draft(self, session, request_service, org, manpower_payload):
        draft = request_service.create_draft(
            WorkflowType.MANPOWER, org.user_id("employee"), manpower_payload,
        )
        assert draft.status is RequestStatus.DRAFT
        assert draft.version == 0
        assert draft.revision_version == 0
        assert draft.requester_slot_id == org.slot_id("employee")
        assert draft.payload["position_title"] == "Data Analyst"
        assert HistorySelector(session).versions(draft.request_id) == []

    def test_explicit_slot(self, request_service, org, manpower_payload):
        draft = request_service.create_draft(
            WorkflowType.MANPOWER, org.user_id("employee"), manpower_payload,
            requester_slot_id=org.slot_id("manager"),
        )
        assert draft.requester_slot_id == org.slot_id("manager")

    def test_user_without_slot(self, request_service, org, manpower_payload):
        draft = request_service.create_draft(
            WorkflowType.MANPOWER, org.user_id("outsider"), manpower_payload,
        )
        assert draft.requester_slot_id is None

    def test_unknown_requester(self, request_service, org, manpower_payload):
        with pytest.raises(UserNotFoundError):
            request_service.create_draft(WorkflowType.MANPOWER, uuid4(), manpower_payload)

    def test_invalid_payload(self, request_service, org):
        with pytest.raises(PayloadValidationError):
            request_service.create_draft(
                WorkflowType.MANPOWER, org.user_id("employee"), make_manpower_payload(headcount=0),
            )


class TestUpdateDraft:
    @pytest.fixture
    def draft(self, request_service, org, manpower_payload):
        return request_service.create_draft(
            WorkflowType.MANPOWER, org.user_id("employee"), manpower_payload,
        )

    def test_edit_bumps_version_and_snapshots(self, session, request_service, org, draft):
        updated = request_service.update_draft(
            draft.request_id, org.user_id("employee"),
            make_manpower_payload(headcount=3), expected_version=0,
        )
        assert updated.version == 1
        assert updated.payload["headcount"] == 3

        versions = HistorySelector(session).versions(draft.request_id)
        assert [v.version_number for v in versions] == [1]
        assert versions[0].snapshot_data["payload"]["headcount"] == 3

    def test_stale_version(self, request_service, org, draft):
        with pytest.raises(ConflictError) as exc_info:
            request_service.update_draft(
                draft.request_id, org.user_id("employee"), make_manpower_payload(), expected_version=5,
            )
        assert exc_info.value.current_version == 0

    def test_only_requester_may_edit(self, request_service, org, draft):
        with pytest.raises(UnauthorizedActorError):
            request_service.update_draft(
                draft.request_id, org.user_id("manager"), make_manpower_payload(), expected_version=0,
            )

    def test_only_drafts_are_editable(self, request_service, executor, org, draft):
        executor.submit(draft.request_id, org.user_id("employee"), expected_version=0)
        with pytest.raises(InvalidTransitionError):
            request_service.update_draft(
                draft.request_id, org.user_id("employee"), make_manpower_payload(), expected_version=1,
            )

    def test_unknown_request(self, request_service, org):
        with pytest.raises(RequestNotFoundError):
            request_service.update_draft(
                uuid4(), org.user_id("employee"), make_manpower_payload(), expected_version=0,
            )

    def test_current_slot_prefers_latest_primary(self, request_service, org):
        assert request_service.current_slot_of(org.user_id("hr")) == org.slot_id("hr")
        assert request_service.current_slot_of(org.user_id("admin")) is None
