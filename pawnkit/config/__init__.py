"""Configuration module for PawnKit.

This module provides YAML configuration parsing and validation for pawnkit.yaml.
"""

from pawnkit.config.parser import (
    CONFIG_FILENAME,
    CompilerConfig,
    CacheConfig,
    NetworkConfig,
    PawnKitConfig,
    ConfigError,
    find_config,
    load_config,
    parse_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "CompilerConfig",
    "CacheConfig",
    "NetworkConfig",
    "PawnKitConfig",
    "ConfigError",
    "find_config",
    "load_config",
    "parse_config",
]
