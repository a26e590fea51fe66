"""
Workflow registry (``hr_modules.registry``).

Responsibility:
    Map each ``WorkflowType`` to its state machine and its payload class,
    and convert payloads between typed dataclasses and the JSON stored on
    ``WorkflowRequest.payload``.

Architecture position:
    Modules -- declarative lookup tables, ZERO I/O.  Consumed by the
    transition executor and the request service.

Failure modes:
    - ``PayloadValidationError`` when stored or submitted JSON cannot be
      parsed into the payload class, or the parsed payload fails its own
      ``validate()`` checks.
    - ``KeyError`` for a workflow type with no registered workflow (a
      programming error, not user input).
"""

from __future__ import annotations

from typing import Any, Union

from hr_kernel.domain.values import WorkflowType
from hr_kernel.domain.workflow import Workflow
from hr_kernel.exceptions import PayloadValidationError
from hr_modules.business_trips import TRIP_WORKFLOW, BusinessTripPayload
from hr_modules.manpower import MANPOWER_WORKFLOW, ManpowerPayload
from hr_modules.separations import SEPARATION_WORKFLOW, SeparationPayload

Payload = Union[ManpowerPayload, BusinessTripPayload, SeparationPayload]

WORKFLOWS: dict[WorkflowType, Workflow] = {
    WorkflowType.MANPOWER: MANPOWER_WORKFLOW,
    WorkflowType.BUSINESS_TRIP: TRIP_WORKFLOW,
    WorkflowType.SEPARATION: SEPARATION_WORKFLOW,
}

PAYLOAD_TYPES: dict[WorkflowType, type] = {
    WorkflowType.MANPOWER: ManpowerPayload,
    WorkflowType.BUSINESS_TRIP: BusinessTripPayload,
    WorkflowType.SEPARATION: SeparationPayload,
}


def get_workflow(workflow_type: WorkflowType | str) -> Workflow:
    return WORKFLOWS[WorkflowType(workflow_type)]


def decode_payload(workflow_type: WorkflowType | str, data: dict[str, Any]) -> Payload:
    """Parse and validate a JSON payload for ``workflow_type``."""
    workflow_type = WorkflowType(workflow_type)
    payload_cls = PAYLOAD_TYPES[workflow_type]
    try:
        payload = payload_cls.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise PayloadValidationError(workflow_type.value, [_describe(exc)]) from exc
    errors = payload.validate()
    if errors:
        raise PayloadValidationError(workflow_type.value, errors)
    return payload


def encode_payload(workflow_type: WorkflowType | str, payload: Payload | dict[str, Any]) -> dict[str, Any]:
    """Validate ``payload`` and return its JSON-safe dict form.

    Accepts either the typed payload or a plain dict (which is decoded
    first, so both paths apply the same validation).
    """
    workflow_type = WorkflowType(workflow_type)
    if isinstance(payload, dict):
        payload = decode_payload(workflow_type, payload)
    expected = PAYLOAD_TYPES[workflow_type]
    if not isinstance(payload, expected):
        raise PayloadValidationError(
            workflow_type.value,
            [f"expected {expected.__name__}, got {type(payload).__name__}"],
        )
    errors = payload.validate()
    if errors:
        raise PayloadValidationError(workflow_type.value, errors)
    return payload.to_dict()


def _describe(exc: Exception) -> str:
    if isinstance(exc, KeyError):
        return f"missing field: {exc.args[0]}"
    return str(exc)
