from uuid import uuid4

import pytest

from hr_kernel.domain.dtos import RequestSummary
from hr_kernel.domain.values import ApprovalAction, RequestStatus, WorkflowType
from hr_kernel.domain.workflow import Guard
from hr_services.transition_executor import GuardContext, GuardExecutor


@pytest.fixture
def context():
    request = RequestSummary(
        request_id=uuid4(),
        workflow_type=WorkflowType.SEPARATION,
        requester_id=uuid4(),
        requester_slot_id=None,
        status=RequestStatus.APPROVED,
        version=2,
        revision_version=0,
        is_on_hold=False,
        current_approver_id=None,
        current_approver_slot_id=None,
        required_approver_role=None,
    )
    return GuardContext(request=request, actor_id=uuid4(), action=ApprovalAction.APPROVE)


def test_unregistered_guard_fails_closed(context, captured_logs):
    guard = Guard(name="payroll_closed", description="")
    assert GuardExecutor().evaluate(guard, context) is False
    records = [r for r in captured_logs() if r["message"] == "guard_no_evaluator"]
    assert records[0]["guard_name"] == "payroll_closed"


def test_registered_guard_is_called_with_context(context):
    seen = []
    executor = GuardExecutor()
    executor.register("payroll_closed", lambda ctx: seen.append(ctx) or True)
    assert executor.evaluate(Guard(name="payroll_closed", description=""), context) is True
    assert seen == [context]


def test_guard_result_is_coerced_to_bool(context):
    executor = GuardExecutor()
    executor.register("has_items", lambda ctx: [])
    assert executor.evaluate(Guard(name="has_items", description=""), context) is False


def test_reregistering_replaces_evaluator(context):
    executor = GuardExecutor()
    executor.register("flag", lambda ctx: False)
    executor.register("flag", lambda ctx: True)
    assert executor.evaluate(Guard(name="flag", description=""), context) is True


def test_default_executor_wires_clearance_guard(clearance_engine, context):
    from hr_services.transition_executor import default_guard_executor

    guards = default_guard_executor(clearance_engine)
    # no checklist items at all counts as complete
    assert guards.evaluate(Guard(name="clearance_complete", description=""), context) is True
