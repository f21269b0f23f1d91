"""Project configuration stored as YAML under ``.planfirst/``."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

__all__ = [
    "CONFIG_DIR_NAME",
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DEFAULT_CONFIG_TEMPLATE",
    "config_path_for",
    "default_config",
    "exclude_patterns",
    "ignore_warnings",
    "load_config",
    "resolve_plans_dir",
    "strict_mode",
    "write_config",
]

CONFIG_DIR_NAME = ".planfirst"
CONFIG_FILE_NAME = "config.yaml"

DEFAULT_EXCLUDE_PATTERNS = [
    ".git/**",
    "node_modules/**",
    "dist/**",
    "build/**",
    ".planfirst/**",
    "__pycache__/**",
    ".venv/**",
    "venv/**",
]

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "version": "0.1.0",
    "project": {
        "name": "",
        "root": ".",
    },
    "paths": {
        "plans": "plans",
        "cache": ".planfirst/cache",
    },
    "scan": {
        "exclude": DEFAULT_EXCLUDE_PATTERNS,
    },
    "ai": {
        "provider": "",
        "model": "",
        "max_tokens": 4096,
        "temperature": 0.7,
        "timeout": 120,
    },
    "verification": {
        "strict_mode": False,
        "ignore_warnings": False,
    },
}


class ConfigError(RuntimeError):
    """Raised when the configuration file is missing or malformed."""


def default_config() -> Dict[str, Any]:
    """Return a deep copy of the default configuration template."""
    return copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)


def config_path_for(root: Path | str) -> Path:
    return Path(root) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration from disk, layered over the defaults."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config: {error}") from error

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping at the top level.")

    return _merge(default_config(), data)


def write_config(config_path: Path, config_data: Mapping[str, Any]) -> None:
    """Persist configuration data to disk with stable formatting."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(dict(config_data), handle, sort_keys=False)


def resolve_plans_dir(config: Mapping[str, Any], root: Path) -> Path:
    """Resolve the plans directory relative to the project root."""
    paths_cfg = config.get("paths") or {}
    value = paths_cfg.get("plans") if isinstance(paths_cfg, Mapping) else None
    candidate = Path(str(value).strip()) if isinstance(value, str) and value.strip() else Path("plans")
    if not candidate.is_absolute():
        candidate = root / candidate
    return candidate


def strict_mode(config: Mapping[str, Any]) -> bool:
    verification_cfg = config.get("verification") or {}
    if not isinstance(verification_cfg, Mapping):
        return False
    return bool(verification_cfg.get("strict_mode", False))


def exclude_patterns(config: Mapping[str, Any]) -> list[str]:
    scan_cfg = config.get("scan") or {}
    patterns = scan_cfg.get("exclude") if isinstance(scan_cfg, Mapping) else None
    if not isinstance(patterns, list):
        return list(DEFAULT_EXCLUDE_PATTERNS)
    return [str(item) for item in patterns if str(item).strip()]


def ignore_warnings(config: Mapping[str, Any]) -> bool:
    verification_cfg = config.get("verification") or {}
    if not isinstance(verification_cfg, Mapping):
        return False
    return bool(verification_cfg.get("ignore_warnings", False))
