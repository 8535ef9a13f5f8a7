"""Unit tests for Settings class and get_settings function."""

from pathlib import Path

import pytest

from chauffeur.config import get_settings, reload_settings
from chauffeur.config.settings import Settings, set_toml_config


@pytest.fixture(autouse=True)
def reset_toml_config() -> None:
    """Start each test without TOML values left over from another test."""
    set_toml_config({})


class TestSettings:
    """Tests for Settings model."""

    def test_default_values(self) -> None:
        """Settings has sensible defaults."""
        settings = Settings()
        assert settings.app_name == "chauffeur"
        assert settings.debug is False

    def test_reconciliation_defaults(self) -> None:
        """The merge policy defaults to the conservative behaviour."""
        settings = Settings()
        assert settings.reconciliation.min_waypoints == 2
        assert settings.reconciliation.ignore_default_noon_time is True
        assert settings.reconciliation.append_before_dropoff is False

    def test_geocoding_defaults(self) -> None:
        """Geocoding defaults to the mock provider and bundled regions."""
        settings = Settings()
        assert settings.geocoding.provider == "mock"
        assert settings.geocoding.default_region == "london"
        assert any(r.key == "london" for r in settings.geocoding.regions)

    def test_observability_defaults(self) -> None:
        """Observability configuration has defaults."""
        settings = Settings()
        assert settings.observability.logging.level == "INFO"
        assert settings.observability.logging.redact_pii is True
        assert settings.observability.metrics.enabled is True

    def test_nested_env_override(self, env_override) -> None:
        """Nested values can be overridden with double-underscore env vars."""
        with env_override(
            {
                "CHAUFFEUR_GEOCODING__TIMEOUT_MS": "1500",
                "CHAUFFEUR_RECONCILIATION__APPEND_BEFORE_DROPOFF": "true",
            }
        ):
            settings = Settings()

        assert settings.geocoding.timeout_ms == 1500
        assert settings.reconciliation.append_before_dropoff is True

    def test_api_key_is_secret(self, env_override) -> None:
        """The geocoding API key is not echoed in reprs."""
        with env_override({"CHAUFFEUR_GEOCODING__API_KEY": "sk-live-123"}):
            settings = Settings()

        assert settings.geocoding.api_key is not None
        assert settings.geocoding.api_key.get_secret_value() == "sk-live-123"
        assert "sk-live-123" not in repr(settings.geocoding)


class TestGetSettings:
    """Tests for get_settings function."""

    def test_returns_settings_from_toml(
        self,
        test_config_dir: Path,
        mock_toml_files,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """get_settings reads the configured TOML files."""
        mock_toml_files(
            {
                "default.toml": "app_name = 'test'\n[geocoding]\nmax_parallel = 3",
            }
        )
        monkeypatch.setenv("CHAUFFEUR_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("CHAUFFEUR_ENV", "nonexistent")

        settings = get_settings()
        assert isinstance(settings, Settings)
        assert settings.app_name == "test"
        assert settings.geocoding.max_parallel == 3

    def test_env_var_beats_toml(
        self,
        test_config_dir: Path,
        mock_toml_files,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """CHAUFFEUR_* variables take priority over TOML values."""
        mock_toml_files({"default.toml": "debug = false"})
        monkeypatch.setenv("CHAUFFEUR_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("CHAUFFEUR_ENV", "nonexistent")
        monkeypatch.setenv("CHAUFFEUR_DEBUG", "true")

        assert get_settings().debug is True

    def test_settings_cached(
        self,
        test_config_dir: Path,
        mock_toml_files,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """get_settings returns the cached instance until reloaded."""
        mock_toml_files({"default.toml": "app_name = 'first'"})
        monkeypatch.setenv("CHAUFFEUR_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("CHAUFFEUR_ENV", "nonexistent")

        first = get_settings()
        mock_toml_files({"default.toml": "app_name = 'second'"})

        assert get_settings() is first
        assert reload_settings().app_name == "second"
