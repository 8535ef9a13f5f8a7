"""Settings for the reconciliation engine.

``get_settings()`` assembles the ``reconciliation`` merge policy (waypoint
floor, past-date rejection, repair of untouched waypoints), the
``geocoding`` collaborator (provider, region table, timeout and fan-out)
and the ``observability`` switches. Values come from the TOML files under
``config/`` with ``CHAUFFEUR_*`` variables layered on top, for example
``CHAUFFEUR_GEOCODING__PROVIDER=mock`` or
``CHAUFFEUR_RECONCILIATION__REPAIR_UNCHANGED_WAYPOINTS=true``.
"""

from functools import lru_cache

from chauffeur.config.loader import load_config
from chauffeur.config.settings import Settings, set_toml_config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, built on first use.

    Code defaults, then default.toml, then the CHAUFFEUR_ENV overlay, then
    CHAUFFEUR_* variables. Tests call reload_settings() after changing any
    of them.
    """
    config_dict = load_config()
    set_toml_config(config_dict)

    # pydantic-settings gives env vars priority over the TOML source
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and build them again."""
    get_settings.cache_clear()
    return get_settings()


__all__ = ["get_settings", "reload_settings", "Settings"]
