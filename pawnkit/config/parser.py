"""YAML configuration parser for PawnKit.

This module provides parsing and validation for pawnkit.yaml configuration files.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pawnkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "pawnkit.yaml"
SCHEMA_VERSION = 1


@dataclass
class CompilerConfig:
    """Compiler to acquire."""

    version: Optional[str] = None
    platform: Optional[str] = None  # None means the host platform
    directory: Optional[str] = None  # Install directory, relative to the project


@dataclass
class CacheConfig:
    """Archive cache configuration."""

    directory: Optional[str] = None


@dataclass
class NetworkConfig:
    """Download configuration."""

    timeout: float = 30.0


@dataclass
class PawnKitConfig:
    """Complete PawnKit configuration."""

    version: int = SCHEMA_VERSION
    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)


def find_config(project_root: Path) -> Optional[Path]:
    """
    Find the configuration file in a project root.

    Returns:
        Path to pawnkit.yaml, or None if the project has none
    """
    candidate = Path(project_root) / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def parse_config(config_path: Path) -> PawnKitConfig:
    """
    Parse pawnkit.yaml configuration file.

    Args:
        config_path: Path to pawnkit.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    logger.debug(f"Loading configuration from {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    if data is None:
        raise ConfigError("Configuration file is empty")

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    return _parse_and_validate(data)


def load_config(
    config_path: Optional[Path] = None, project_root: Optional[Path] = None
) -> PawnKitConfig:
    """
    Load the effective configuration.

    An explicit ``config_path`` must exist. Otherwise pawnkit.yaml is looked up
    in ``project_root``; a project without one gets the defaults.

    Raises:
        ConfigError: If the configuration file is missing or invalid
    """
    if config_path is None and project_root is not None:
        config_path = find_config(project_root)

    if config_path is None:
        logger.debug("No configuration file, using defaults")
        return PawnKitConfig()

    return parse_config(config_path)


def _parse_and_validate(data: Dict[str, Any]) -> PawnKitConfig:
    """Parse and validate configuration data."""
    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != SCHEMA_VERSION:
        raise ConfigError(
            f"Unsupported version: {data['version']} (expected {SCHEMA_VERSION})"
        )

    return PawnKitConfig(
        version=data["version"],
        compiler=_parse_compiler_config(_section(data, "compiler")),
        cache=_parse_cache_config(_section(data, "cache")),
        network=_parse_network_config(_section(data, "network")),
    )


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return section


def _optional_string(data: Dict[str, Any], section: str, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    # YAML reads an unquoted 3.10 as a float, losing the trailing zero
    if not isinstance(value, str):
        raise ConfigError(f"{section}.{key} must be a string (quote it in YAML)")
    if not value.strip():
        raise ConfigError(f"{section}.{key} cannot be empty")
    return value.strip()


def _parse_compiler_config(data: Dict[str, Any]) -> CompilerConfig:
    """Parse compiler configuration."""
    return CompilerConfig(
        version=_optional_string(data, "compiler", "version"),
        platform=_optional_string(data, "compiler", "platform"),
        directory=_optional_string(data, "compiler", "directory"),
    )


def _parse_cache_config(data: Dict[str, Any]) -> CacheConfig:
    """Parse cache configuration."""
    return CacheConfig(directory=_optional_string(data, "cache", "directory"))


def _parse_network_config(data: Dict[str, Any]) -> NetworkConfig:
    """Parse network configuration."""
    timeout = data.get("timeout", NetworkConfig.timeout)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise ConfigError(f"network.timeout must be a number, got {timeout!r}")
    if timeout <= 0:
        raise ConfigError(f"network.timeout must be positive, got {timeout}")
    return NetworkConfig(timeout=float(timeout))
