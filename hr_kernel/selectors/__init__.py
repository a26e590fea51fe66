"""Read-only query selectors returning frozen DTOs."""

from hr_kernel.selectors.base import BaseSelector
from hr_kernel.selectors.clearance_selector import ClearanceSelector
from hr_kernel.selectors.history_selector import HistorySelector
from hr_kernel.selectors.org_selector import OrgSelector

__all__ = [
    "BaseSelector",
    "ClearanceSelector",
    "HistorySelector",
    "OrgSelector",
]
