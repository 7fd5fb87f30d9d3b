"""
Platform detection for PawnKit.

Maps the running operating system onto the platform identifiers used by the
compiler catalog ('darwin', 'linux', 'windows').

Usage:
    from pawnkit.core.platform import detect_platform_id

    platform_id = detect_platform_id()
"""

import functools
import platform

# Alternative spellings accepted from users and config files
_PLATFORM_ALIASES = {
    "macos": "darwin",
    "osx": "darwin",
    "win32": "windows",
    "win": "windows",
}


def normalize_platform_id(platform_id: str) -> str:
    """
    Normalize a user-supplied platform identifier.

    Lowercases, strips whitespace and resolves aliases. Unknown identifiers are
    returned normalized but otherwise unchanged so the catalog can reject them
    by name.

    Example:
        >>> normalize_platform_id(" MacOS ")
        'darwin'
    """
    name = platform_id.strip().lower()
    return _PLATFORM_ALIASES.get(name, name)


@functools.lru_cache(maxsize=1)
def detect_platform_id() -> str:
    """
    Detect the catalog platform identifier of the running OS.

    This function is cached - it only runs detection once per process.

    Returns:
        'darwin', 'linux', 'windows', or the lowercased system name for
        anything else (which the catalog will reject)
    """
    return normalize_platform_id(platform.system())


def clear_platform_cache() -> None:
    """Clear the cached platform detection result (used by tests)."""
    detect_platform_id.cache_clear()
