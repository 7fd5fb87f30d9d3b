"""
Shared utilities for CLI commands.

Provides the configuration and cache-directory lookups every command needs,
so they all apply the same precedence rules.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from pawnkit.config.parser import PawnKitConfig, load_config
from pawnkit.core.directory import CACHE_DIR_ENV, get_cache_dir

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Management
# ============================================================================


def get_project_root(args) -> Path:
    """Get the resolved project root from parsed arguments."""
    return Path(getattr(args, "project_root", None) or Path.cwd()).resolve()


def load_project_config(args) -> PawnKitConfig:
    """
    Load the configuration selected by the global options.

    Uses ``--config`` if given, otherwise pawnkit.yaml in the project root
    (defaults when there is none).

    Raises:
        ConfigError: If the configuration file is missing or invalid
    """
    config_path = getattr(args, "config", None)
    return load_config(config_path=config_path, project_root=get_project_root(args))


def resolve_project_path(args, value: str) -> Path:
    """Resolve a path from a config file relative to the project root."""
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = get_project_root(args) / path
    return path


# ============================================================================
# Cache Directory
# ============================================================================


def resolve_cache_dir(args, config: Optional[PawnKitConfig] = None) -> Path:
    """
    Resolve the cache directory.

    Precedence: ``--cache-dir``, then PAWNKIT_CACHE_DIR, then
    ``cache.directory`` from the configuration, then the per-user default.

    Raises:
        DirectoryError: If the default location cannot be determined
    """
    cli_dir = getattr(args, "cache_dir", None)
    if cli_dir:
        logger.debug(f"Cache directory from command line: {cli_dir}")
        return get_cache_dir(Path(cli_dir))

    if os.environ.get(CACHE_DIR_ENV):
        return get_cache_dir()

    if config is not None and config.cache.directory:
        logger.debug(f"Cache directory from configuration: {config.cache.directory}")
        return get_cache_dir(resolve_project_path(args, config.cache.directory))

    return get_cache_dir()
