"""
Cache command implementation.

Lists, locates and clears downloaded compiler archives.
"""

import logging

from pawnkit.cli.utils import load_project_config, resolve_cache_dir
from pawnkit.compiler.cache import CacheStore
from pawnkit.core.directory import verify_directory_writable
from pawnkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the cache command.

    Args:
        args: Parsed command-line arguments with cache_command field

    Returns:
        Exit code (0 for success)
    """
    action = getattr(args, "cache_command", None)
    if not action:
        logger.error("No cache action specified (list, path or clean)")
        return 1

    try:
        config = load_project_config(args)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    store = CacheStore(resolve_cache_dir(args, config))

    if action == "path":
        print(store.cache_dir)
        if store.cache_dir.exists() and not verify_directory_writable(store.cache_dir):
            logger.warning(f"Cache directory is not writable: {store.cache_dir}")
        return 0

    if action == "list":
        entries = store.entries()
        if not entries:
            logger.info(f"No cached archives in {store.cache_dir}")
            return 0
        for entry in entries:
            print(f"{entry.filename}  {_format_size(entry.size_bytes)}")
        return 0

    if action == "clean":
        removed = store.clear()
        print(f"Removed {removed} cached archive(s)")
        return 0

    logger.error(f"Unknown cache action: {action}")
    return 1


def _format_size(size_bytes: int) -> str:
    """Format size in human-readable format."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}" if unit != "B" else f"{size_bytes} B"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"
