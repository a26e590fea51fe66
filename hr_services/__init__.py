"""
Module: hr_services
Responsibility:
    Orchestration services that combine kernel persistence with the pure
    engines: approver resolution, the transition executor, the clearance
    lane engine, draft handling and org hierarchy maintenance.

Architecture position:
    Services -- imperative shell.  May import hr_kernel, hr_engines,
    hr_modules and hr_config.  Flush-only; callers own the transaction.
"""

from hr_services.approver_resolver import ApproverResolver
from hr_services.clearance_engine import ClearanceLaneEngine
from hr_services.org_hierarchy_service import OrgHierarchyService
from hr_services.request_service import RequestService
from hr_services.transition_executor import GuardExecutor, TransitionExecutor
from hr_services.versioning import apply_versioned_update

__all__ = [
    "ApproverResolver",
    "ClearanceLaneEngine",
    "GuardExecutor",
    "OrgHierarchyService",
    "RequestService",
    "TransitionExecutor",
    "apply_versioned_update",
]
