"""
Tests for the notification outbox and request snapshots.

Tests cover:
- Outbox idempotency per (request, stage, recipient)
- Pending rows come back oldest first
- Snapshot numbering is gapless per request and hashed
"""

import pytest

from hr_kernel.domain.values import OutboxStatus, WorkflowType
from hr_kernel.selectors.history_selector import HistorySelector
from hr_kernel.services.outbox_service import OutboxService
from hr_kernel.services.snapshot_service import SnapshotService
from hr_kernel.utils.hashing import hash_payload
from hr_kernel.utils.idempotency import generate_notification_key, parse_notification_key


@pytest.fixture
def draft(request_service, org, manpower_payload):
    return request_service.create_draft(
        WorkflowType.MANPOWER, org.user_id("employee"), manpower_payload,
    )


class TestOutbox:
    def test_enqueue_once_per_key(self, session, deterministic_clock, draft, org):
        outbox = OutboxService(session, deterministic_clock)
        kwargs = dict(
            request_id=draft.request_id,
            stage="PENDING_HR.r0",
            recipient_id=org.user_id("hr"),
            event_type="approval_requested",
        )
        assert outbox.enqueue(**kwargs) is True
        assert outbox.enqueue(**kwargs) is False
        assert len(outbox.pending()) == 1

    def test_new_stage_is_a_new_key(self, session, deterministic_clock, draft, org):
        outbox = OutboxService(session, deterministic_clock)
        for stage in ("PENDING_HR.r0", "PENDING_HR.r1"):
            outbox.enqueue(
                request_id=draft.request_id,
                stage=stage,
                recipient_id=org.user_id("hr"),
                event_type="approval_requested",
            )
        assert len(outbox.pending()) == 2

    def test_row_shape(self, session, deterministic_clock, draft, org):
        outbox = OutboxService(session, deterministic_clock)
        outbox.enqueue(
            request_id=draft.request_id,
            stage="PENDING_HR.r0",
            recipient_id=org.user_id("hr"),
            event_type="approval_requested",
            payload={"status": "PENDING_HR"},
        )
        row = outbox.pending()[0]
        assert row.status == OutboxStatus.PENDING.value
        assert row.attempt_count == 0
        assert row.payload == {"status": "PENDING_HR"}
        assert parse_notification_key(row.idempotency_key) == (
            str(draft.request_id), "PENDING_HR.r0", str(org.user_id("hr")),
        )

    def test_pending_is_oldest_first(self, session, deterministic_clock, draft, org):
        outbox = OutboxService(session, deterministic_clock)
        for key in ("hr", "finance"):
            outbox.enqueue(
                request_id=draft.request_id,
                stage="PENDING_HR.r0",
                recipient_id=org.user_id(key),
                event_type="approval_requested",
            )
            deterministic_clock.advance(5)
        assert [r.recipient_id for r in outbox.pending()] == [
            org.user_id("hr"), org.user_id("finance"),
        ]


class TestNotificationKey:
    def test_key_round_trip(self):
        key = generate_notification_key("req", "PENDING_CEO.r2", "user")
        assert key == "req:PENDING_CEO.r2:user"
        assert parse_notification_key(key) == ("req", "PENDING_CEO.r2", "user")

    @pytest.mark.parametrize("key", ["", "a:b", "a::c"])
    def test_bad_key(self, key):
        with pytest.raises(ValueError):
            parse_notification_key(key)


class TestSnapshots:
    def test_numbering_starts_at_one(self, session, deterministic_clock, draft, test_actor_id):
        snapshots = SnapshotService(session, deterministic_clock)
        assert snapshots.next_version_number(draft.request_id) == 1
        first = snapshots.snapshot(draft.request_id, {"status": "DRAFT"}, test_actor_id)
        second = snapshots.snapshot(draft.request_id, {"status": "PENDING_HR"}, test_actor_id)
        assert (first, second) == (1, 2)

    def test_snapshot_is_hashed_and_readable(self, session, deterministic_clock, draft, test_actor_id):
        data = {"status": "DRAFT", "payload": {"headcount": 2}}
        SnapshotService(session, deterministic_clock).snapshot(draft.request_id, data, test_actor_id)

        history = HistorySelector(session)
        latest = history.latest_version(draft.request_id)
        assert latest.snapshot_data == data
        assert latest.payload_hash == hash_payload(data)
        assert latest.created_by_id == test_actor_id
        assert history.version(draft.request_id, 1) == latest
        assert history.version(draft.request_id, 2) is None
