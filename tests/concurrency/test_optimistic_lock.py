"""
Optimistic locking across independent sessions.

These tests commit for real (``session_factory``) so that each session
sees the other's writes the way two API workers would.

Tests cover:
- A second writer holding the old version is rejected at load time
- A writer holding a stale in-memory row is rejected by the conditional
  UPDATE, and nothing it wrote survives
- Two racing threads: exactly one wins (PostgreSQL only)
"""

import threading

import pytest
from sqlalchemy import func, select

from hr_kernel.domain.clock import DeterministicClock
from hr_kernel.domain.values import ApprovalAction, RequestStatus, WorkflowType
from hr_kernel.exceptions import ConflictError
from hr_kernel.models.approval_log import ApprovalLog
from hr_kernel.models.request import WorkflowRequest
from hr_kernel.models.request_version import RequestVersion
from hr_services.request_service import RequestService
from hr_services.transition_executor import TransitionExecutor
from tests.conftest import FIXED_NOW, build_standard_org, make_manpower_payload

A = ApprovalAction


@pytest.fixture
def clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def pending_request(session_factory, clock, workflow_config):
    """An employee request committed at PENDING_MANAGER, version 1."""
    setup = session_factory()
    org = build_standard_org(setup, clock)
    draft = RequestService(setup, clock).create_draft(
        WorkflowType.MANPOWER, org.user_id("employee"), make_manpower_payload(),
    )
    TransitionExecutor(setup, clock=clock, config=workflow_config).submit(
        draft.request_id, org.user_id("employee"), expected_version=0,
    )
    setup.commit()
    setup.close()
    return org, draft.request_id


def _executor(session, clock, config):
    return TransitionExecutor(session, clock=clock, config=config)


class TestSequentialWriters:
    def test_second_writer_sees_conflict(self, session_factory, clock, workflow_config, pending_request):
        org, request_id = pending_request
        manager = org.user_id("manager")

        first = session_factory()
        _executor(first, clock, workflow_config).transition(request_id, manager, A.APPROVE, 1)
        first.commit()

        second = session_factory()
        with pytest.raises(ConflictError) as exc_info:
            _executor(second, clock, workflow_config).transition(request_id, manager, A.APPROVE, 1)
        assert exc_info.value.expected_version == 1
        assert exc_info.value.current_version == 2
        second.rollback()

        check = session_factory()
        request = check.get(WorkflowRequest, request_id)
        assert (request.status, request.version) == (RequestStatus.PENDING_HR.value, 2)


class TestStaleRow:
    def test_conditional_update_rejects_stale_row(
        self, session_factory, clock, workflow_config, pending_request,
    ):
        org, request_id = pending_request
        manager = org.user_id("manager")

        # A reads version 1 and keeps the row in its identity map
        stale = session_factory()
        assert stale.get(WorkflowRequest, request_id).version == 1
        stale.commit()

        winner = session_factory()
        _executor(winner, clock, workflow_config).transition(request_id, manager, A.APPROVE, 1)
        winner.commit()

        with pytest.raises(ConflictError) as exc_info:
            _executor(stale, clock, workflow_config).transition(request_id, manager, A.APPROVE, 1)
        assert exc_info.value.current_version == 2
        stale.commit()

        check = session_factory()
        assert check.get(WorkflowRequest, request_id).version == 2
        logs = check.scalar(
            select(func.count(ApprovalLog.id)).where(ApprovalLog.request_id == request_id)
        )
        snapshots = check.scalar(
            select(func.count(RequestVersion.id)).where(RequestVersion.request_id == request_id)
        )
        assert (logs, snapshots) == (2, 2)


@pytest.mark.postgres
class TestRacingThreads:
    def test_exactly_one_writer_wins(
        self, session_factory, clock, workflow_config, pending_request, is_postgres,
    ):
        if not is_postgres:
            pytest.skip("row-level locking needs PostgreSQL")
        org, request_id = pending_request
        manager = org.user_id("manager")
        barrier = threading.Barrier(2)
        outcomes: list[str] = []
        lock = threading.Lock()

        def worker():
            sess = session_factory()
            executor = _executor(sess, clock, workflow_config)
            barrier.wait()
            try:
                executor.transition(request_id, manager, A.APPROVE, 1)
                sess.commit()
                result = "ok"
            except ConflictError:
                sess.rollback()
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(outcomes) == ["conflict", "ok"]
        check = session_factory()
        assert check.get(WorkflowRequest, request_id).version == 2
