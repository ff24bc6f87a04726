"""Configuration loading: TOML file, defaults and environment overrides."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import ParseError

from flowsync.config.defaults import CONFIG_FILE_NAME, DEFAULT_CONFIG, ENV_PREFIX
from flowsync.exceptions import ConfigError


def find_config_file(start_dir: Path) -> Path | None:
    """Find ``.flowsync.toml`` in ``start_dir`` or any parent directory."""
    current = start_dir.resolve()
    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables merge key by key; any other value replaces the base value.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment value.

    JSON arrays and objects are decoded (malformed JSON stays a string),
    ``true``/``false`` become booleans, integers become ints, anything else
    is returned as-is.
    """
    stripped = value.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    if stripped.lower() == "true":
        return True
    if stripped.lower() == "false":
        return False
    try:
        return int(stripped)
    except ValueError:
        return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``FLOWSYNC_<SECTION>_<KEY>`` environment variables.

    The section is the longest known top-level table whose upper-cased name
    prefixes the variable; the rest, lower-cased, is the key. Variables
    naming no known section are ignored.
    """
    sections = sorted((k for k, v in config.items() if isinstance(v, dict)), key=len, reverse=True)
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        rest = name[len(ENV_PREFIX):]
        for section in sections:
            marker = f"{section.upper()}_"
            if rest.startswith(marker) and len(rest) > len(marker):
                key = rest[len(marker):].lower()
                config[section][key] = _try_parse_env_value(raw)
                break
    return config


def parse_toml(text: str) -> dict[str, Any]:
    """Parse TOML text into plain Python containers."""
    return tomlkit.parse(text).unwrap()


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration.

    Args:
        config_path: TOML file to read; None means defaults only.

    Returns:
        Defaults, merged with the file, then environment overrides.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    file_config: dict[str, Any] = {}
    if config_path is not None:
        try:
            file_config = parse_toml(config_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
        except ParseError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
    config = merge_configs(DEFAULT_CONFIG, file_config)
    return _apply_env_overrides(config)


__all__ = [
    "find_config_file",
    "load_config",
    "merge_configs",
    "parse_toml",
]
