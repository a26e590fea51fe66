"""
Manpower Domain Models (``hr_modules.manpower.models``).

Responsibility
--------------
Frozen dataclass payload for a headcount requisition: the position being
opened, how many seats, the salary band and the business justification.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Stored in the
``payload`` JSON column of ``WorkflowRequest`` through
``hr_modules.encode_payload`` / ``decode_payload``.

Invariants enforced
-------------------
* ``headcount >= 1``.
* ``salary_min <= salary_max`` when both are given.
* Salary amounts use ``Decimal`` and are stored as strings, never ``float``.

Failure modes
-------------
* ``validate()`` returns a list of problems; the registry turns a
  non-empty list into ``PayloadValidationError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class EmploymentType(str, Enum):
    FULL_TIME = "FULL_TIME"
    PART_TIME = "PART_TIME"
    CONTRACT = "CONTRACT"
    TEMPORARY = "TEMPORARY"


def _decimal_or_none(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    return Decimal(str(value))


@dataclass(frozen=True)
class ManpowerPayload:
    """A request to open one or more positions."""

    position_title: str
    department: str
    headcount: int = 1
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    justification: str = ""
    salary_min: Decimal | None = None
    salary_max: Decimal | None = None
    currency: str = "QAR"
    replacement_for: str | None = None

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.position_title.strip():
            errors.append("position_title is required")
        if not self.department.strip():
            errors.append("department is required")
        if self.headcount < 1:
            errors.append("headcount must be at least 1")
        if self.salary_min is not None and self.salary_min < 0:
            errors.append("salary_min must not be negative")
        if (
            self.salary_min is not None
            and self.salary_max is not None
            and self.salary_min > self.salary_max
        ):
            errors.append("salary_min must not exceed salary_max")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "position_title": self.position_title,
            "department": self.department,
            "headcount": self.headcount,
            "employment_type": self.employment_type.value,
            "justification": self.justification,
            "salary_min": str(self.salary_min) if self.salary_min is not None else None,
            "salary_max": str(self.salary_max) if self.salary_max is not None else None,
            "currency": self.currency,
            "replacement_for": self.replacement_for,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ManpowerPayload:
        """Build from stored JSON.  Raises ValueError/KeyError on bad input."""
        try:
            return cls(
                position_title=data["position_title"],
                department=data["department"],
                headcount=int(data.get("headcount", 1)),
                employment_type=EmploymentType(
                    data.get("employment_type", EmploymentType.FULL_TIME.value)
                ),
                justification=data.get("justification", ""),
                salary_min=_decimal_or_none(data.get("salary_min")),
                salary_max=_decimal_or_none(data.get("salary_max")),
                currency=data.get("currency", "QAR"),
                replacement_for=data.get("replacement_for"),
            )
        except InvalidOperation as exc:
            raise ValueError(f"invalid salary amount: {exc}") from exc
