"""TOML layer of the Chauffeur settings.

``config/default.toml`` holds the merge policy (``[reconciliation]``), the
geocoding collaborator and region table (``[geocoding]``) and the logging
and metrics switches (``[observability.*]``). ``config/{CHAUFFEUR_ENV}.toml``
is deep-merged on top, so an environment file only lists what it changes,
for example a shorter geocoding timeout in production.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

PACKAGE_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


def get_config_dir() -> Path:
    """Locate the directory holding ``default.toml``.

    ``CHAUFFEUR_CONFIG_DIR`` wins when set and must exist. Otherwise the
    working directory and its parents are searched, so the engine finds the
    repository's ``config/`` from tests and scripts alike, and finally the
    ``config/`` next to the package source.
    """
    config_dir_env = os.environ.get("CHAUFFEUR_CONFIG_DIR")
    if config_dir_env:
        path = Path(config_dir_env)
        if not path.exists():
            raise FileNotFoundError(f"Config directory not found: {config_dir_env}")
        return path

    current = Path.cwd()
    for _ in range(5):
        config_path = current / "config"
        if (config_path / "default.toml").exists():
            return config_path
        current = current.parent

    return PACKAGE_CONFIG_DIR


def get_environment() -> str:
    """Name of the environment overlay, from CHAUFFEUR_ENV.

    Defaults to "development"; "production" switches to the Google geocoder.
    """
    return os.environ.get("CHAUFFEUR_ENV", "development")


def load_toml(file_path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dictionary.

    Args:
        file_path: Path to the TOML file

    Returns:
        Dictionary containing the TOML data

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    For nested dictionaries, values are merged recursively.
    For other values (lists included), override replaces base.

    Args:
        base: Base dictionary
        override: Override dictionary (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config() -> dict[str, Any]:
    """Load configuration from TOML files.

    Loading order:
    1. config/default.toml (required)
    2. config/{CHAUFFEUR_ENV}.toml (optional)

    Returns:
        Merged configuration dictionary
    """
    config_dir = get_config_dir()
    env = get_environment()

    default_path = config_dir / "default.toml"
    if not default_path.exists():
        raise FileNotFoundError(
            f"Default configuration file not found: {default_path}. "
            "Create config/default.toml or set CHAUFFEUR_CONFIG_DIR."
        )

    config = load_toml(default_path)

    env_path = config_dir / f"{env}.toml"
    if env_path.exists():
        env_config = load_toml(env_path)
        config = deep_merge(config, env_config)

    return config
