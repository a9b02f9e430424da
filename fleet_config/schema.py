"""
FleetConfig schema.

Typed, frozen view of ``defaults.yaml`` (or an override file).  The loader
parses YAML into these types; ``fleet_config.bridges`` turns them into
kernel inputs.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CategoryKindDef:
    """One row of the expense category rule table."""

    kind: str
    vehicle: str          # required / optional / derived
    trip: str             # required / optional
    label: str | None = None
    enabled: bool = True


@dataclass(frozen=True)
class DatabaseDef:
    url: str
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5


@dataclass(frozen=True)
class FleetConfig:
    """The runtime configuration artifact returned by get_active_config()."""

    config_id: str
    version: int
    category_kinds: tuple[CategoryKindDef, ...]
    override_role: str
    database: DatabaseDef
    checksum: str = ""

    @property
    def enabled_kinds(self) -> frozenset[str]:
        return frozenset(k.kind for k in self.category_kinds if k.enabled)

    def kind(self, name: str) -> CategoryKindDef | None:
        for definition in self.category_kinds:
            if definition.kind == name:
                return definition
        return None
