"""
Business Trip Domain Models (``hr_modules.business_trips.models``).

Responsibility
--------------
Frozen dataclass payload for a business trip: destination, purpose,
travel dates and the estimated cost.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* ``start_date <= end_date``.
* ``estimated_cost`` is a non-negative ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class TripPurpose(str, Enum):
    MEETING = "MEETING"
    CONFERENCE = "CONFERENCE"
    TRAINING = "TRAINING"
    SITE_VISIT = "SITE_VISIT"
    OTHER = "OTHER"


@dataclass(frozen=True)
class BusinessTripPayload:
    country: str
    city: str
    start_date: date
    end_date: date
    purpose_type: TripPurpose = TripPurpose.MEETING
    purpose_details: str = ""
    estimated_cost: Decimal = Decimal("0")
    currency: str = "QAR"
    needs_visa: bool = False
    needs_accommodation: bool = False

    @property
    def duration_days(self) -> int:
        """Trip length counting both the first and the last day."""
        return (self.end_date - self.start_date).days + 1

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.country.strip():
            errors.append("country is required")
        if not self.city.strip():
            errors.append("city is required")
        if self.start_date > self.end_date:
            errors.append("start_date must not be after end_date")
        if self.estimated_cost < 0:
            errors.append("estimated_cost must not be negative")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "country": self.country,
            "city": self.city,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "purpose_type": self.purpose_type.value,
            "purpose_details": self.purpose_details,
            "estimated_cost": str(self.estimated_cost),
            "currency": self.currency,
            "needs_visa": self.needs_visa,
            "needs_accommodation": self.needs_accommodation,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BusinessTripPayload:
        try:
            cost = Decimal(str(data.get("estimated_cost", "0")))
        except InvalidOperation as exc:
            raise ValueError(f"invalid estimated_cost: {exc}") from exc
        return cls(
            country=data["country"],
            city=data["city"],
            start_date=date.fromisoformat(str(data["start_date"])),
            end_date=date.fromisoformat(str(data["end_date"])),
            purpose_type=TripPurpose(data.get("purpose_type", TripPurpose.MEETING.value)),
            purpose_details=data.get("purpose_details", ""),
            estimated_cost=cost,
            currency=data.get("currency", "QAR"),
            needs_visa=bool(data.get("needs_visa", False)),
            needs_accommodation=bool(data.get("needs_accommodation", False)),
        )
