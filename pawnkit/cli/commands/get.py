"""
Get command implementation.

Installs the Pawn compiler for a platform and version into a directory.
"""

import logging
import sys
from pathlib import Path

from pawnkit.cli.utils import (
    get_project_root,
    load_project_config,
    resolve_cache_dir,
    resolve_project_path,
)
from pawnkit.compiler.acquisition import CompilerAcquirer
from pawnkit.core.download import DownloadProgress
from pawnkit.core.exceptions import AcquisitionError, ConfigError
from pawnkit.core.platform import detect_platform_id

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_DIR = "compiler"


def run(args) -> int:
    """
    Run the get command.

    Command-line options override the ``compiler`` and ``network`` sections
    of the configuration file.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 on failure)
    """
    logger.debug(f"Arguments: {args}")

    try:
        config = load_project_config(args)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    version = args.compiler_version or config.compiler.version
    if not version:
        logger.error(
            "No compiler version given: use --version or set compiler.version "
            "in pawnkit.yaml"
        )
        return 1

    platform = args.platform or config.compiler.platform or detect_platform_id()

    if args.dir is not None:
        destination = Path(args.dir)
    elif config.compiler.directory:
        destination = resolve_project_path(args, config.compiler.directory)
    else:
        destination = get_project_root(args) / DEFAULT_INSTALL_DIR

    timeout = args.timeout if args.timeout is not None else config.network.timeout
    if timeout <= 0:
        logger.error(f"Timeout must be positive, got {timeout}")
        return 1

    cache_dir = resolve_cache_dir(args, config)

    progress = None if args.quiet else _print_progress

    try:
        with CompilerAcquirer(cache_dir=cache_dir, timeout=timeout) as acquirer:
            result = acquirer.acquire(
                platform, version, destination, progress_callback=progress
            )
    except AcquisitionError as e:
        logger.debug(f"Caused by: {e.__cause__!r}")
        return 1
    finally:
        if progress is not None:
            _end_progress()

    source = "cache" if result.was_cached else "download"
    print(f"Pawn compiler {result.version} ({result.platform}) from {source}:")
    for path in result.installed_files:
        print(f"  {path}")

    return 0


def _print_progress(progress: DownloadProgress) -> None:
    if sys.stderr.isatty():
        sys.stderr.write(f"\r  {progress}")
        sys.stderr.flush()


def _end_progress() -> None:
    if sys.stderr.isatty():
        sys.stderr.write("\n")
        sys.stderr.flush()
