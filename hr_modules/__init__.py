"""
HR Workflow Modules.

Declarative definitions for each request type.  Each module contains:
- Domain models (the typed request payload)
- Workflows (state machine, stages, guards)

Modules:
- Manpower: headcount requisitions and the hiring lifecycle
- Business trips: travel approval and cancellation
- Separations: offboarding, gated by the clearance board

Actual processing logic lives in the kernel, engines and services.
"""

from hr_modules import business_trips, manpower, separations
from hr_modules.registry import (
    PAYLOAD_TYPES,
    WORKFLOWS,
    Payload,
    decode_payload,
    encode_payload,
    get_workflow,
)

__all__ = [
    "PAYLOAD_TYPES",
    "Payload",
    "WORKFLOWS",
    "business_trips",
    "decode_payload",
    "encode_payload",
    "get_workflow",
    "manpower",
    "separations",
]
