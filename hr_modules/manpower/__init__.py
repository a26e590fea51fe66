"""
Manpower Module (``hr_modules.manpower``).

Headcount requisitions.  An employee's request goes through the line
manager first; HR, finance and CEO approval follow, skipping any stage the
requester owns.  Once approved the request stays open while HR runs the
hiring process and closes it as COMPLETED.
"""

from hr_modules.manpower.models import EmploymentType, ManpowerPayload
from hr_modules.manpower.workflows import MANPOWER_WORKFLOW

__all__ = [
    "EmploymentType",
    "MANPOWER_WORKFLOW",
    "ManpowerPayload",
]
