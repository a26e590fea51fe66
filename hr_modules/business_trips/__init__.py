"""
Business Trip Module (``hr_modules.business_trips``).

Travel requests approved by the line manager, HR and finance.  The
traveller can cancel the trip from draft, from any approval stage, or after
approval; HR closes it as COMPLETED once the trip has taken place.
"""

from hr_modules.business_trips.models import BusinessTripPayload, TripPurpose
from hr_modules.business_trips.workflows import TRIP_WORKFLOW

__all__ = [
    "BusinessTripPayload",
    "TRIP_WORKFLOW",
    "TripPurpose",
]
