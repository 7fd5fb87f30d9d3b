"""
Cache directory management for PawnKit.

Resolves the per-user cache root where downloaded compiler archives are kept.
The directory is shared by every PawnKit process for the same user.

Cache Location:
    - Windows: %LOCALAPPDATA%\\pawnkit\\Cache
    - macOS:   ~/Library/Caches/pawnkit
    - Linux:   $XDG_CACHE_HOME/pawnkit (default ~/.cache/pawnkit)

The PAWNKIT_CACHE_DIR environment variable overrides all of the above.
"""

import os
import sys
from pathlib import Path
from typing import Optional

CACHE_DIR_ENV = "PAWNKIT_CACHE_DIR"


class DirectoryError(Exception):
    """Base exception for directory-related errors."""

    pass


def get_cache_dir(override: Optional[Path] = None) -> Path:
    """
    Get the cache directory path.

    Args:
        override: Explicit directory that takes precedence over everything else

    Returns:
        Path: The cache directory path (not created)

    Raises:
        DirectoryError: If no home/cache location can be determined

    Example:
        >>> cache_dir = get_cache_dir()
        >>> print(cache_dir)
        /home/user/.cache/pawnkit  # on Linux
    """
    if override is not None:
        return Path(override).expanduser()

    env_dir = os.environ.get(CACHE_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()

    return _platform_cache_dir()


def _platform_cache_dir() -> Path:
    """Get the OS-standard user cache location for PawnKit."""
    if os.name == "nt":  # Windows
        local_app_data = os.environ.get("LOCALAPPDATA")
        if not local_app_data:
            raise DirectoryError(
                "LOCALAPPDATA environment variable is not set. "
                "Cannot determine cache directory."
            )
        return Path(local_app_data) / "pawnkit" / "Cache"

    if sys.platform == "darwin":
        return _home_dir() / "Library" / "Caches" / "pawnkit"

    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache) / "pawnkit"
    return _home_dir() / ".cache" / "pawnkit"


def _home_dir() -> Path:
    try:
        return Path.home()
    except (RuntimeError, KeyError) as e:
        raise DirectoryError(
            f"Cannot determine home directory: {e}. Set {CACHE_DIR_ENV} instead."
        ) from e


def verify_directory_writable(path: Path) -> bool:
    """
    Verify that a directory exists and is writable.

    Args:
        path: Directory path to verify.

    Returns:
        bool: True if directory exists and is writable, False otherwise.
    """
    if not path.exists():
        return False

    if not path.is_dir():
        return False

    # Try to create a temporary file to test write permissions
    try:
        test_file = path / ".write_test"
        test_file.touch()
        test_file.unlink()
        return True
    except OSError:
        return False
