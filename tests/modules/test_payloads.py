"""
Tests for request payloads and the workflow registry.

Tests cover:
- Payload validation rules per workflow type
- decode_payload / encode_payload error reporting
- Decimal amounts stored as strings
"""

from datetime import date
from decimal import Decimal

import pytest

from hr_kernel.domain.values import SeparationType, WorkflowType
from hr_kernel.exceptions import PayloadValidationError
from hr_modules.business_trips import BusinessTripPayload
from hr_modules.manpower import ManpowerPayload
from hr_modules.registry import decode_payload, encode_payload
from hr_modules.separations import SeparationPayload
from tests.conftest import make_manpower_payload, make_separation_payload, make_trip_payload


class TestManpowerPayload:
    def test_valid_payload_has_no_errors(self):
        assert make_manpower_payload().validate() == []

    def test_headcount_must_be_positive(self):
        assert "headcount must be at least 1" in make_manpower_payload(headcount=0).validate()

    def test_salary_band_order(self):
        payload = make_manpower_payload(salary_min=Decimal("20000"), salary_max=Decimal("10000"))
        assert "salary_min must not exceed salary_max" in payload.validate()

    def test_amounts_serialize_as_strings(self):
        data = make_manpower_payload().to_dict()
        assert data["salary_min"] == "12000"
        assert data["salary_max"] == "15000"
        assert data["currency"] == "QAR"

    def test_from_dict_rejects_bad_amount(self):
        with pytest.raises(ValueError, match="invalid salary amount"):
            ManpowerPayload.from_dict(
                {"position_title": "Clerk", "department": "Ops", "salary_min": "lots"}
            )


class TestBusinessTripPayload:
    def test_duration_counts_both_ends(self):
        assert make_trip_payload().duration_days == 3

    def test_dates_must_be_ordered(self):
        payload = make_trip_payload(start_date=date(2024, 3, 2), end_date=date(2024, 3, 1))
        assert "start_date must not be after end_date" in payload.validate()

    def test_negative_cost_rejected(self):
        assert "estimated_cost must not be negative" in make_trip_payload(
            estimated_cost=Decimal("-1")
        ).validate()

    def test_from_dict_parses_dates_and_cost(self):
        payload = BusinessTripPayload.from_dict(make_trip_payload().to_dict())
        assert payload.start_date == date(2024, 2, 10)
        assert payload.estimated_cost == Decimal("4500.00")


class TestSeparationPayload:
    def test_termination_needs_reason(self):
        payload = make_separation_payload(
            "E-1", separation_type=SeparationType.TERMINATION, reason=" ",
        )
        assert "reason is required for a termination" in payload.validate()

    def test_resignation_without_reason_is_fine(self):
        assert make_separation_payload("E-1", reason="").validate() == []

    def test_from_dict(self):
        payload = SeparationPayload.from_dict(
            {
                "employee_id": "E-7",
                "separation_type": "RETIREMENT",
                "last_working_day": "2024-06-30",
            }
        )
        assert payload.separation_type is SeparationType.RETIREMENT
        assert payload.last_working_day == date(2024, 6, 30)


class TestRegistry:
    def test_encode_typed_payload(self):
        data = encode_payload(WorkflowType.BUSINESS_TRIP, make_trip_payload())
        assert data["city"] == "Dubai"
        assert data["estimated_cost"] == "4500.00"

    def test_encode_accepts_plain_dict(self):
        data = encode_payload("MANPOWER", {"position_title": "Clerk", "department": "Ops"})
        assert data["headcount"] == 1

    def test_missing_field_reported(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            decode_payload(WorkflowType.MANPOWER, {"department": "Ops"})
        assert exc_info.value.errors == ["missing field: position_title"]
        assert exc_info.value.code == "PAYLOAD_VALIDATION_FAILED"

    def test_bad_enum_reported(self):
        with pytest.raises(PayloadValidationError):
            decode_payload(
                WorkflowType.SEPARATION,
                {"employee_id": "E-1", "separation_type": "VANISHED", "last_working_day": "2024-01-01"},
            )

    def test_validation_errors_reported(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            encode_payload(WorkflowType.MANPOWER, make_manpower_payload(headcount=0))
        assert "headcount must be at least 1" in exc_info.value.errors

    def test_wrong_payload_type_rejected(self):
        with pytest.raises(PayloadValidationError, match="expected BusinessTripPayload"):
            encode_payload(WorkflowType.BUSINESS_TRIP, make_manpower_payload())
