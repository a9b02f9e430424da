"""
Configuration loader (``fleet_config.loader``).

Loads a YAML file and parses it into ``fleet_config.schema`` dataclasses.
Runtime callers go through ``fleet_config.get_active_config()`` instead of
calling this module directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Bad values (unknown vehicle/trip rule, duplicate kind)  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from fleet_config.schema import CategoryKindDef, DatabaseDef, FleetConfig

VEHICLE_RULES = frozenset({"required", "optional", "derived"})
TRIP_RULES = frozenset({"required", "optional"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_category_kind(data: dict[str, Any]) -> CategoryKindDef:
    """Parse one category kind entry."""
    vehicle = str(data["vehicle"]).lower()
    trip = str(data["trip"]).lower()
    if vehicle not in VEHICLE_RULES:
        raise ValueError(
            f"Category kind {data['kind']!r}: vehicle rule must be one of "
            f"{sorted(VEHICLE_RULES)}, got {vehicle!r}"
        )
    if trip not in TRIP_RULES:
        raise ValueError(
            f"Category kind {data['kind']!r}: trip rule must be one of "
            f"{sorted(TRIP_RULES)}, got {trip!r}"
        )
    if vehicle == "derived" and trip != "required":
        raise ValueError(
            f"Category kind {data['kind']!r}: a derived vehicle needs a required trip"
        )
    return CategoryKindDef(
        kind=str(data["kind"]).lower(),
        vehicle=vehicle,
        trip=trip,
        label=data.get("label"),
        enabled=bool(data.get("enabled", True)),
    )


def parse_database(data: dict[str, Any]) -> DatabaseDef:
    return DatabaseDef(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 10)),
        max_overflow=int(data.get("max_overflow", 5)),
    )


def parse_config(data: dict[str, Any]) -> FleetConfig:
    """
    Parse a whole configuration document.

    The checksum is computed over the raw document, so equal YAML content
    always yields the same checksum.
    """
    kinds = tuple(parse_category_kind(k) for k in data["category_kinds"])
    seen: set[str] = set()
    for definition in kinds:
        if definition.kind in seen:
            raise ValueError(f"Duplicate category kind {definition.kind!r}")
        seen.add(definition.kind)

    override_role = str(data["override_role"]).strip()
    if not override_role:
        raise ValueError("override_role must not be empty")

    return FleetConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        category_kinds=kinds,
        override_role=override_role,
        database=parse_database(data["database"]),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 over the canonical JSON form of the document."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def load_config_file(path: Path) -> FleetConfig:
    return parse_config(load_yaml_file(path))
