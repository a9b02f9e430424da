"""
fleet_config -- single public entrypoint for fleet configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain configuration at
    runtime.  It loads ``defaults.yaml`` (or an explicit override file),
    validates it and returns a frozen ``FleetConfig``.

Architecture position:
    Sits above ``fleet_kernel`` and below ``fleet_services``.  The kernel
    never imports this package; ``fleet_config.bridges`` translates the
    config into kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- config file missing.
    - ``ValueError`` / ``KeyError`` -- schema or structural errors.
"""

from __future__ import annotations

from pathlib import Path

from fleet_config.bridges import build_expense_policy
from fleet_config.loader import compute_checksum, load_config_file
from fleet_config.schema import CategoryKindDef, DatabaseDef, FleetConfig
from fleet_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> FleetConfig:
    """
    The ONLY public configuration entrypoint.

    Args:
        config_path: Override file.  Defaults to fleet_config/defaults.yaml.

    Returns:
        FleetConfig -- frozen runtime configuration.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = load_config_file(path)

    _logger.info(
        "FLEET_CONFIG_TRACE",
        extra={
            "trace_type": "FLEET_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "enabled_kinds": sorted(config.enabled_kinds),
            "source": str(path),
        },
    )
    return config


__all__ = [
    "CategoryKindDef",
    "DatabaseDef",
    "FleetConfig",
    "build_expense_policy",
    "compute_checksum",
    "get_active_config",
]
