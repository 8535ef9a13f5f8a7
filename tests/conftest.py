"""Shared test fixtures for the Chauffeur test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from chauffeur.config.models import GeocodingConfig, ReconciliationConfig, RegionConfig
from chauffeur.geocoding.mock import MockGeocodingProvider
from chauffeur.geocoding.regions import resolve_region


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            toml_file = test_config_dir / filename
            toml_file.write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            original = self.original_env[key]
            if original is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = original


@pytest.fixture
def env_override() -> Generator[Callable[[dict[str, str]], EnvOverrideContext], None, None]:
    """Context manager for temporarily setting environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"CHAUFFEUR_DEBUG": "true"}):
                # test code here
    """

    def _env_override(overrides: dict[str, str]) -> EnvOverrideContext:
        return EnvOverrideContext(overrides)

    yield _env_override


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache before and after each test.

    This ensures test isolation for configuration tests.
    """
    from chauffeur.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def reconciliation_config() -> ReconciliationConfig:
    """Default reconciliation policy."""
    return ReconciliationConfig()


@pytest.fixture
def geocoding_config() -> GeocodingConfig:
    """Geocoding config with the bundled region table and a short timeout."""
    return GeocodingConfig(provider="mock", timeout_ms=500, max_parallel=4)


@pytest.fixture
def london(geocoding_config: GeocodingConfig) -> RegionConfig:
    """The London region from the bundled table."""
    return resolve_region("London", geocoding_config)


@pytest.fixture
def geocoder() -> MockGeocodingProvider:
    """Mock geocoder that finds nothing unless told otherwise."""
    return MockGeocodingProvider()
