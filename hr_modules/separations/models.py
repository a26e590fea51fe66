"""
Separation Domain Models (``hr_modules.separations.models``).

Responsibility
--------------
Frozen dataclass payload for an offboarding request: who is leaving, why,
and the last working day.  Clearance checklist items live in their own
table and are not part of the payload.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from hr_kernel.domain.values import SeparationType


@dataclass(frozen=True)
class SeparationPayload:
    employee_id: str
    separation_type: SeparationType
    last_working_day: date
    reason: str = ""
    notice_period_waived: bool = False

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not str(self.employee_id).strip():
            errors.append("employee_id is required")
        if self.separation_type is SeparationType.TERMINATION and not self.reason.strip():
            errors.append("reason is required for a termination")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": str(self.employee_id),
            "separation_type": self.separation_type.value,
            "last_working_day": self.last_working_day.isoformat(),
            "reason": self.reason,
            "notice_period_waived": self.notice_period_waived,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SeparationPayload:
        return cls(
            employee_id=str(data["employee_id"]),
            separation_type=SeparationType(data["separation_type"]),
            last_working_day=date.fromisoformat(str(data["last_working_day"])),
            reason=data.get("reason", ""),
            notice_period_waived=bool(data.get("notice_period_waived", False)),
        )
