"""
WorkflowConfig schema.

The runtime configuration of the approval engine: which org roles act on
which clearance lanes, which roles may override lane and transition
authorization, which slot roles count as a supervisor for manager
approval, and the default clearance checklist.

YAML files are parsed into these types by the loader; every type is
frozen and checks its own fields on construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hr_kernel.domain.values import ClearanceLane, Role

# ---------------------------------------------------------------------------
# Clearance templates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChecklistTemplate:
    """A default checklist item seeded when a separation is approved."""

    lane: ClearanceLane
    title: str
    description: str | None = None
    required: bool = True
    due_offset_days: int | None = None
    order: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "lane", ClearanceLane(self.lane))
        if not self.title or not self.title.strip():
            raise ValueError(f"Checklist template in lane {self.lane.value} has an empty title")
        if self.due_offset_days is not None and self.due_offset_days < 0:
            raise ValueError(
                f"Checklist template {self.title!r}: due_offset_days must not be negative"
            )


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WorkflowConfig:
    """Validated runtime configuration for the approval engine."""

    config_id: str
    version: int
    lane_roles: dict[Role, frozenset[ClearanceLane]]
    clearance_override_roles: frozenset[Role]
    transition_override_roles: frozenset[Role]
    supervisory_roles: frozenset[Role]
    checklist_templates: tuple[ChecklistTemplate, ...] = ()
    checksum: str = ""
    metadata: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.version < 1:
            raise ValueError(f"Config {self.config_id}: version must be >= 1")
        for role, lanes in self.lane_roles.items():
            if not isinstance(role, Role):
                raise ValueError(f"Config {self.config_id}: unknown role {role!r}")
            for lane in lanes:
                if not isinstance(lane, ClearanceLane):
                    raise ValueError(
                        f"Config {self.config_id}: unknown lane {lane!r} for role {role.value}"
                    )
        for group in (
            self.clearance_override_roles,
            self.transition_override_roles,
            self.supervisory_roles,
        ):
            for role in group:
                if not isinstance(role, Role):
                    raise ValueError(f"Config {self.config_id}: unknown role {role!r}")

    def templates_for(self, lane: ClearanceLane) -> tuple[ChecklistTemplate, ...]:
        return tuple(t for t in self.checklist_templates if t.lane == lane)
