"""
Separation Module (``hr_modules.separations``).

Offboarding requests.  HR approval opens a clearance board of parallel
lanes (IT, finance, assets, ...); completion is gated by the
``clearance_complete`` guard, which the transition executor evaluates
against the clearance lane engine.
"""

from hr_modules.separations.models import SeparationPayload
from hr_modules.separations.workflows import (
    CLEARANCE_COMPLETE,
    CLEARANCE_START_STATE,
    SEPARATION_WORKFLOW,
)

__all__ = [
    "CLEARANCE_COMPLETE",
    "CLEARANCE_START_STATE",
    "SEPARATION_WORKFLOW",
    "SeparationPayload",
]
