"""Locate and load the appwrite-sync settings file.

The file is looked up in order: an explicit path, then
``$APPWRITE_SYNC_CONFIG``, then ``appwrite-sync.yaml`` (or ``.yml``) in
the working directory. Without a file, settings come from
``APPWRITE_SYNC_*`` environment variables and defaults alone.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from appwrite_sync.config.models import Config
from appwrite_sync.errors import ConfigurationError

CONFIG_ENV_VAR = "APPWRITE_SYNC_CONFIG"
DEFAULT_CONFIG_NAMES = ("appwrite-sync.yaml", "appwrite-sync.yml")


def find_config(config_path: Path | None = None, cwd: Path | None = None) -> Path | None:
    """Return the settings file to load, or None when there is none."""
    if config_path is not None:
        return config_path

    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)

    base = cwd or Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def _read_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a mapping, not {type(data).__name__}")
    return data


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or '<root>'}: {item['msg']}" for item in error.errors()
    )


def load_config(config_path: Path | None = None, cwd: Path | None = None) -> Config:
    """
    Load settings from the located file, the environment and defaults.

    A relative ``manifest_path`` in the file is resolved against the
    file's directory.

    Args:
        config_path: Explicit settings file; skips the lookup.
        cwd: Directory searched for a default-named file.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If an explicit or env-named file doesn't exist.
        ValueError: If the YAML is malformed or its root is not a mapping.
        ConfigurationError: If a setting fails validation.
    """
    path = find_config(config_path, cwd)
    data = _read_mapping(path) if path is not None else {}

    if path is not None and data.get("manifest_path"):
        manifest_path = Path(data["manifest_path"])
        if not manifest_path.is_absolute():
            data["manifest_path"] = path.parent / manifest_path

    try:
        config = Config(**data)
    except ValidationError as e:
        source = path or "environment"
        raise ConfigurationError(f"Invalid configuration ({source}): {_describe(e)}") from e

    logger.debug("Configuration loaded from {}", path or "environment and defaults")
    return config
