"""Shared test fixtures."""

from pathlib import Path

import pytest
import yaml

from wxsync.config.schema import AppConfig, LocationConfig
from wxsync.preferences import Preferences
from wxsync.storage.forecast_store import ForecastStore
from wxsync.tests.factories import TEST_BASE_URL


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
def store(db_path: Path) -> ForecastStore:
    return ForecastStore(db_path)


@pytest.fixture
def prefs(db_path: Path) -> Preferences:
    return Preferences(db_path, default_location=LocationConfig(query="94043,USA"))


@pytest.fixture
def test_config() -> AppConfig:
    return AppConfig(
        api={"base_url": TEST_BASE_URL, "api_key": "test-key", "days": 14},
        location={"query": "94043,USA"},
    )


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a config YAML pointing at the mocked API and return its path."""
    data = {
        "api": {"base_url": TEST_BASE_URL, "api_key": "test-key"},
        "location": {"query": "94043,USA"},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path
