"""Tests for config loading and get/set."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from wxsync.config.defaults import DEFAULT_LOCATION
from wxsync.config.loader import (
    config_hash,
    get_config_value,
    load_config,
    save_config,
    set_config_value,
)
from wxsync.config.schema import AppConfig


class TestLoadConfig:
    def test_load_from_yaml(self, config_yaml_path: Path):
        config = load_config(config_yaml_path)
        assert config.api.api_key == "test-key"
        assert config.location.query == "94043,USA"

    def test_missing_file_uses_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "nope.yaml")
        assert config.sync.interval_hours == 3.0
        assert config.location.query == DEFAULT_LOCATION.query

    def test_empty_yaml_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = load_config(path)
        assert config.api.days == 14
        assert config.location.query == DEFAULT_LOCATION.query

    def test_explicit_coordinates_not_overridden(self, tmp_path: Path):
        path = tmp_path / "coords.yaml"
        with open(path, "w") as f:
            yaml.dump({"location": {"latitude": 52.52, "longitude": 13.40}}, f)
        config = load_config(path)
        assert config.location.query == ""
        assert config.location.latitude == 52.52

    def test_unknown_key_rejected(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        with open(path, "w") as f:
            yaml.dump({"sync": {"interval_minutes": 5}}, f)
        with pytest.raises(ValidationError):
            load_config(path)

    def test_unpaired_latitude_rejected(self):
        with pytest.raises(ValidationError):
            AppConfig(location={"latitude": 10.0})

    def test_days_out_of_range(self):
        with pytest.raises(ValidationError):
            AppConfig(api={"days": 30})


class TestConfigHash:
    def test_deterministic(self):
        assert config_hash(AppConfig()) == config_hash(AppConfig())

    def test_changes_with_value(self):
        assert config_hash(AppConfig()) != config_hash(AppConfig(api={"days": 7}))


class TestGetSetValue:
    def test_get_nested(self):
        assert get_config_value(AppConfig(), "sync.interval_hours") == 3.0

    def test_get_missing(self):
        with pytest.raises(KeyError):
            get_config_value(AppConfig(), "sync.nope")

    def test_set_coerces_types(self):
        config = set_config_value(AppConfig(), "api.days", "7")
        assert config.api.days == 7
        config = set_config_value(config, "notifications.enabled", "false")
        assert config.notifications.enabled is False
        config = set_config_value(config, "sync.interval_hours", "1.5")
        assert config.sync.interval_seconds == 5400

    def test_set_revalidates(self):
        with pytest.raises(ValidationError):
            set_config_value(AppConfig(), "api.days", "99")

    def test_set_unknown_key(self):
        with pytest.raises(KeyError):
            set_config_value(AppConfig(), "api.nope", "1")

    def test_save_and_reload(self, tmp_path: Path):
        path = tmp_path / "out" / "config.yaml"
        save_config(set_config_value(AppConfig(), "api.days", "5"), path)
        assert load_config(path).api.days == 5
