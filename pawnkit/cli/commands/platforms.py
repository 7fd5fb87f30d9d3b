"""
Platforms command implementation.

Lists the platforms compiler packages are published for.
"""

import logging

from pawnkit.compiler.catalog import lookup, supported_platforms
from pawnkit.core.platform import detect_platform_id

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the platforms command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    host = detect_platform_id()
    logger.debug(f"Host platform: {host}")

    for platform in supported_platforms():
        descriptor = lookup(platform)
        marker = " (host)" if platform == host else ""
        print(f"{platform}{marker}: {descriptor.archive_format.value}")

    if host not in supported_platforms():
        logger.warning(f"Host platform '{host}' has no compiler package")

    return 0
