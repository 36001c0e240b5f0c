"""TOML configuration loader with deep merge support."""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "EVENTLOG_CONFIG_DIR"
ENVIRONMENT_ENV = "EVENTLOG_ENV"


def get_config_dir() -> Path:
    """Get the configuration directory path.

    EVENTLOG_CONFIG_DIR wins when set and must exist. Otherwise the nearest
    ``config/`` directory from the working directory upwards is used,
    falling back to ``./config``.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {override}")
        return path

    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / "config"
        if (candidate / "default.toml").exists():
            return candidate
    return Path("config")


def get_environment() -> str:
    """Get the current environment name, 'development' by default."""
    return os.environ.get(ENVIRONMENT_ENV, "development")


def load_toml(file_path: Path) -> dict[str, Any]:
    """Load a TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")
    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``, recursing into tables."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def load_config() -> dict[str, Any]:
    """Load configuration from TOML files.

    Reads ``default.toml`` then ``{EVENTLOG_ENV}.toml`` from the config
    directory. Both are optional; a missing file contributes nothing and
    model defaults apply.
    """
    config_dir = get_config_dir()
    config: dict[str, Any] = {}
    for name in ("default", get_environment()):
        path = config_dir / f"{name}.toml"
        if path.exists():
            config = deep_merge(config, load_toml(path))
    return config
