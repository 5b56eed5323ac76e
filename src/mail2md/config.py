#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/config.py
"""Configuration file discovery and loading.

Configuration files hold ``ConversionOptions`` values under their field
names (or the camelCase option keys). Supported formats are TOML, YAML and
JSON, plus a ``[tool.mail2md]`` table in ``pyproject.toml``.
"""

import json
import logging
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found,unused-ignore]

import yaml

from mail2md.exceptions import ConfigError, ValidationError
from mail2md.options import ConversionOptions

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MAIL2MD_CONFIG"

DEDICATED_CONFIG_FILENAMES = [".mail2md.toml", ".mail2md.yaml", ".mail2md.yml", ".mail2md.json"]
CONFIG_FILENAMES = DEDICATED_CONFIG_FILENAMES + ["pyproject.toml"]


def _load_pyproject_section(pyproject_path: Path) -> Dict[str, Any]:
    """Load the [tool.mail2md] section of a pyproject.toml file.

    Returns an empty dict when the section is absent.

    Raises
    ------
    ConfigError
        If the file cannot be parsed or the section is not a table

    """
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(
            f"Invalid TOML in {pyproject_path}: {e}", config_path=str(pyproject_path), original_error=e
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Error reading {pyproject_path}: {e}", config_path=str(pyproject_path), original_error=e
        ) from e

    config = data.get("tool", {}).get("mail2md")
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(
            f"[tool.mail2md] section in {pyproject_path} must be a table, got {type(config).__name__}",
            config_path=str(pyproject_path),
        )
    return config


def find_config_in_parents(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Find a configuration file by searching parent directories.

    Walks up from ``start_dir`` to the filesystem root, checking each
    directory for, in priority order, ``.mail2md.toml``, ``.mail2md.yaml``,
    ``.mail2md.yml``, ``.mail2md.json`` and a ``pyproject.toml`` with a
    ``[tool.mail2md]`` section.

    Parameters
    ----------
    start_dir : Path, optional
        Starting directory, defaults to the current working directory

    Returns
    -------
    Path or None
        First configuration file found

    """
    current = (start_dir or Path.cwd()).resolve()

    while True:
        for filename in DEDICATED_CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        pyproject_path = current / "pyproject.toml"
        if pyproject_path.is_file():
            try:
                if _load_pyproject_section(pyproject_path):
                    return pyproject_path
            except ConfigError as e:
                logger.debug("Skipping unreadable %s: %s", pyproject_path, e)

        parent = current.parent
        if parent == current:
            return None
        current = parent


def discover_config_file(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Discover a configuration file in the standard locations.

    The parent-directory search runs first; the home directory's dedicated
    config files are the fallback.
    """
    found = find_config_in_parents(start_dir)
    if found:
        return found

    home = Path.home()
    for filename in DEDICATED_CONFIG_FILENAMES:
        config_path = home / filename
        if config_path.is_file():
            return config_path
    return None


def load_config_file(config_path: Path | str) -> Dict[str, Any]:
    """Load configuration from a TOML, YAML, JSON or pyproject.toml file.

    Parameters
    ----------
    config_path : Path or str
        Path to the configuration file

    Returns
    -------
    dict
        Configuration mapping

    Raises
    ------
    ConfigError
        If the file is missing, unreadable, malformed or of an unknown format

    Examples
    --------
    >>> config = load_config_file(".mail2md.toml")
    >>> config.get("bullet_list_marker")
    '*'

    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file does not exist: {config_path}", config_path=str(config_path))
    if not config_path.is_file():
        raise ConfigError(f"Configuration path is not a file: {config_path}", config_path=str(config_path))

    filename = config_path.name.lower()
    ext = config_path.suffix.lower()

    if filename == "pyproject.toml":
        return _load_pyproject_section(config_path)

    try:
        if ext == ".toml":
            with open(config_path, "rb") as f:
                config = tomllib.load(f)
        elif ext in (".yaml", ".yml"):
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        elif ext == ".json":
            with open(config_path, "r", encoding="utf-8") as f:
                config = json.load(f)
        else:
            raise ConfigError(
                f"Unsupported config file format: {ext}. Use .json, .toml, or .yaml", config_path=str(config_path)
            )
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(
            f"Invalid config file {config_path}: {e}", config_path=str(config_path), original_error=e
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Error reading config file {config_path}: {e}", config_path=str(config_path), original_error=e
        ) from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(
            f"Config file {config_path} must contain a mapping, got {type(config).__name__}",
            config_path=str(config_path),
        )
    return config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries with deep merging.

    Examples
    --------
    >>> merge_configs({"a": {"x": 1}, "b": 1}, {"a": {"y": 2}, "b": 2})
    {'a': {'x': 1, 'y': 2}, 'b': 2}

    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config_with_priority(
    explicit_path: Optional[str] = None, env_var_path: Optional[str] = None
) -> Dict[str, Any]:
    """Load configuration with priority handling.

    Priority order (highest to lowest):

    1. Explicit config file path (``--config``)
    2. ``MAIL2MD_CONFIG`` environment variable
    3. Auto-discovered config file

    Returns an empty dict when no configuration is found.
    """
    if explicit_path:
        return load_config_file(explicit_path)
    if env_var_path:
        return load_config_file(env_var_path)

    discovered = discover_config_file()
    if discovered:
        logger.debug("Using configuration file %s", discovered)
        return load_config_file(discovered)
    return {}


def options_from_config(config: Mapping[str, Any], base: Optional[ConversionOptions] = None) -> ConversionOptions:
    """Build ``ConversionOptions`` from a configuration mapping.

    Parameters
    ----------
    config : Mapping[str, Any]
        Option values keyed by field name or camelCase option key
    base : ConversionOptions, optional
        Options the configuration is applied on top of

    Raises
    ------
    ConfigError
        If the configuration holds unknown keys or invalid values

    """
    try:
        options = ConversionOptions.from_dict(config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e.message}", original_error=e) from e

    if base is None:
        return options
    explicit = {f.name: getattr(options, f.name) for f in fields(ConversionOptions) if _given(f.name, config)}
    return base.create_updated(**explicit)


def _given(field_name: str, config: Mapping[str, Any]) -> bool:
    camel = "".join(part.capitalize() if i else part for i, part in enumerate(field_name.split("_")))
    return field_name in config or camel in config or field_name.replace("_", "-") in config
