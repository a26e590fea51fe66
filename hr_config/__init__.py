"""
hr_config -- single public entrypoint for workflow configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive the lane mapping, override
    roles and checklist templates from the returned ``WorkflowConfig``
    instead of reading files themselves.

Architecture position:
    Configuration -- sits above ``hr_kernel`` and below ``hr_services``.
    The kernel MUST NEVER import from ``hr_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - Deterministic loading: the same YAML always produces the same
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- the requested config file does not exist.
    - ``ValueError`` -- unknown role or lane names, empty template titles,
      negative due offsets.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``HR_CONFIG_TRACE`` log entry with the config id, version, checksum
    and template count, tying routing and clearance decisions to the
    configuration that governed them.
"""

from __future__ import annotations

from pathlib import Path

from hr_config.loader import compute_checksum, load_yaml_file, parse_config
from hr_config.schema import ChecklistTemplate, WorkflowConfig
from hr_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(path: Path | str | None = None) -> WorkflowConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override YAML file.  Defaults to ``hr_config/defaults.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the configuration fails validation.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(config_path))

    _logger.info(
        "HR_CONFIG_TRACE",
        extra={
            "trace_type": "HR_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "template_count": len(config.checklist_templates),
            "lane_role_count": len(config.lane_roles),
        },
    )
    return config


__all__ = [
    "ChecklistTemplate",
    "DEFAULT_CONFIG_PATH",
    "WorkflowConfig",
    "compute_checksum",
    "get_active_config",
]
