"""Tests for fleet_config loading, validation and the kernel bridge."""

from pathlib import Path

import pytest
import yaml

from fleet_config import (
    DEFAULT_CONFIG_PATH,
    build_expense_policy,
    compute_checksum,
    get_active_config,
)
from fleet_config.loader import parse_config
from fleet_kernel.domain.expense_rules import VehicleSource


def _write_config(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "fleet.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


def _base_document() -> dict:
    with open(DEFAULT_CONFIG_PATH) as f:
        return yaml.safe_load(f)


class TestDefaults:

    def test_default_config(self, config):
        assert config.config_id == "fleet-default"
        assert config.override_role == "owner"
        assert config.enabled_kinds == frozenset({"maintenance", "general"})
        assert config.kind("trip").enabled is False
        assert config.kind("fuel") is None

    def test_checksum_stable(self):
        assert get_active_config().checksum == get_active_config().checksum
        assert len(get_active_config().checksum) == 64

    def test_config_trace_logged(self, captured_logs):
        get_active_config()

        trace = next(r for r in captured_logs() if r["message"] == "FLEET_CONFIG_TRACE")
        assert trace["config_id"] == "fleet-default"
        assert trace["enabled_kinds"] == ["general", "maintenance"]


class TestValidation:

    def test_unknown_vehicle_rule(self, tmp_path):
        data = _base_document()
        data["category_kinds"][0]["vehicle"] = "sometimes"

        with pytest.raises(ValueError, match="vehicle rule"):
            get_active_config(_write_config(tmp_path, data))

    def test_derived_vehicle_needs_required_trip(self):
        data = _base_document()
        data["category_kinds"][2]["trip"] = "optional"

        with pytest.raises(ValueError, match="derived vehicle"):
            parse_config(data)

    def test_duplicate_kind(self):
        data = _base_document()
        data["category_kinds"].append(dict(data["category_kinds"][0]))

        with pytest.raises(ValueError, match="Duplicate"):
            parse_config(data)

    def test_empty_override_role(self):
        data = _base_document()
        data["override_role"] = "  "

        with pytest.raises(ValueError):
            parse_config(data)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_override_file(self, tmp_path):
        data = _base_document()
        data["override_role"] = "dispatcher"
        data["category_kinds"][2]["enabled"] = True

        config = get_active_config(_write_config(tmp_path, data))

        assert config.override_role == "dispatcher"
        assert "trip" in config.enabled_kinds
        assert config.checksum != get_active_config().checksum


class TestChecksum:

    def test_key_order_does_not_matter(self):
        assert compute_checksum({"a": 1, "b": [1, 2]}) == compute_checksum({"b": [1, 2], "a": 1})

    def test_content_matters(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})


class TestBridge:

    def test_expense_policy_from_defaults(self, config):
        policy = build_expense_policy(config)

        maintenance = policy.rule_for("maintenance")
        assert maintenance.vehicle == VehicleSource.REQUIRED
        assert not maintenance.trip_required

        assert policy.rule_for("general").vehicle == VehicleSource.OPTIONAL

        legacy = policy.rule_for("trip")
        assert legacy.vehicle == VehicleSource.DERIVED
        assert legacy.trip_required

        assert policy.is_enabled("maintenance")
        assert not policy.is_enabled("trip")
        assert policy.rule_for("fuel") is None
