"""YAML configuration loader with environment variable overrides.

Configuration is layered, later layers winning:

    1. config/config.yaml  (tunables checked into the repo)
    2. .env file           (local developer overrides)
    3. Environment vars    (deploy time)

``load_config`` reads the YAML first, then deep-merges the values derived
from :class:`Settings` on top.
"""

from pathlib import Path

import yaml

from weave.config.settings import Settings
from weave.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
            an empty base so the service still starts with code defaults.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.

    Raises:
        ConfigurationError: If the YAML file cannot be parsed into a mapping.
    """
    config_path = Path(path)
    if config_path.exists():
        try:
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Malformed config file {config_path}: {exc}") from exc
        if not isinstance(yaml_config, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "openai_base_url": settings.openai_base_url,
            "available_providers": settings.get_available_llm_providers(),
        },
        "storage": {
            "database_path": settings.database_path,
            "storage_dir": settings.storage_dir,
        },
        "rate_limit": {
            "max_requests": settings.rate_limit_max_requests,
            "window_minutes": settings.rate_limit_window_minutes,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
