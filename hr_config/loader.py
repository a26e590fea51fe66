"""
Configuration Loader (``hr_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``hr_config.schema`` dataclasses.  The single public entry point for
runtime config is ``hr_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel's
domain enums only.

Invariants enforced
-------------------
* Role and lane names are parsed through their enums; an unknown name is
  a ``ValueError``, never a silent default.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from hr_config.schema import ChecklistTemplate, WorkflowConfig
from hr_kernel.domain.values import ClearanceLane, Role

_LANE_ORDER = {lane: i for i, lane in enumerate(ClearanceLane)}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_role(value: Any) -> Role:
    try:
        return Role(str(value))
    except ValueError as exc:
        raise ValueError(f"Unknown role {value!r}") from exc


def parse_lane(value: Any) -> ClearanceLane:
    try:
        return ClearanceLane(str(value))
    except ValueError as exc:
        raise ValueError(f"Unknown clearance lane {value!r}") from exc


def parse_roles(values: list[Any] | None) -> frozenset[Role]:
    return frozenset(parse_role(v) for v in (values or ()))


def parse_lane_roles(data: dict[str, Any]) -> dict[Role, frozenset[ClearanceLane]]:
    return {
        parse_role(role): frozenset(parse_lane(lane) for lane in (lanes or ()))
        for role, lanes in data.items()
    }


def parse_template(data: dict[str, Any], default_order: int) -> ChecklistTemplate:
    return ChecklistTemplate(
        lane=parse_lane(data["lane"]),
        title=data["title"],
        description=data.get("description"),
        required=bool(data.get("required", True)),
        due_offset_days=data.get("due_offset_days"),
        order=int(data.get("order", default_order)),
    )


def parse_config(data: dict[str, Any]) -> WorkflowConfig:
    """Parse a ``WorkflowConfig`` from a loaded YAML dict."""
    templates = tuple(
        parse_template(t, i) for i, t in enumerate(data.get("checklist_templates", ()))
    )
    return WorkflowConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        lane_roles=parse_lane_roles(data.get("lane_roles", {})),
        clearance_override_roles=parse_roles(data.get("clearance_override_roles")),
        transition_override_roles=parse_roles(data.get("transition_override_roles")),
        supervisory_roles=parse_roles(data.get("supervisory_roles")),
        checklist_templates=tuple(
            sorted(templates, key=lambda t: (_LANE_ORDER[t.lane], t.order))
        ),
        checksum=compute_checksum(data),
        metadata={str(k): str(v) for k, v in (data.get("metadata") or {}).items()},
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
