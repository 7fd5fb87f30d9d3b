"""
PawnKit CLI argument parser.

This module implements the command-line interface for PawnKit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pawnkit.core.exceptions import PawnKitError

# Get version from package
try:
    from importlib.metadata import version

    __version__ = version("pawnkit")
except Exception:
    __version__ = "0.1.0"

logger = logging.getLogger(__name__)


class CLI:
    """PawnKit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="pawnkit",
            description="PawnKit - Pawn compiler acquisition",
            epilog='Use "pawnkit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"PawnKit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./pawnkit.yaml)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )
        parser.add_argument(
            "--cache-dir",
            type=Path,
            metavar="PATH",
            help="Archive cache directory (default: per-user cache)",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_get_command(subparsers)
        self._add_platforms_command(subparsers)
        self._add_cache_command(subparsers)

        return parser

    def _add_get_command(self, subparsers):
        """Add 'get' subcommand."""
        parser = subparsers.add_parser(
            "get",
            help="Download and install the Pawn compiler",
            description="Install the Pawn compiler into a directory, "
            "using the local archive cache when possible",
        )
        parser.add_argument(
            "--version",
            dest="compiler_version",
            metavar="VERSION",
            help="Compiler version, e.g. 3.10.10 (default: from config)",
        )
        parser.add_argument(
            "--platform",
            metavar="PLATFORM",
            help="Target platform: darwin, linux or windows (default: host)",
        )
        parser.add_argument(
            "--dir",
            type=Path,
            metavar="DIR",
            help="Install directory (default: <project-root>/compiler)",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            metavar="SECONDS",
            help="Network timeout in seconds (default: 30)",
        )

    def _add_platforms_command(self, subparsers):
        """Add 'platforms' subcommand."""
        subparsers.add_parser(
            "platforms",
            help="List supported platforms",
            description="List the platforms compiler packages are published for",
        )

    def _add_cache_command(self, subparsers):
        """Add 'cache' subcommand with sub-commands."""
        parser = subparsers.add_parser(
            "cache",
            help="Inspect or clear the archive cache",
            description="Manage downloaded compiler archives",
        )
        cache_subparsers = parser.add_subparsers(
            dest="cache_command", help="Cache commands", metavar="ACTION"
        )
        cache_subparsers.add_parser("list", help="List cached archives")
        cache_subparsers.add_parser("path", help="Print the cache directory")
        cache_subparsers.add_parser("clean", help="Remove all cached archives")

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(args)

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except PawnKitError as e:
            logger.error(f"Error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1
        except Exception as e:
            logger.error(f"Unexpected error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        # Command module mapping
        command_map = {
            "get": "pawnkit.cli.commands.get",
            "platforms": "pawnkit.cli.commands.platforms",
            "cache": "pawnkit.cli.commands.cache",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        try:
            # Dynamic import of command module
            module = importlib.import_module(module_name)
        except ImportError as e:
            logger.error(f"Failed to load command module: {e}")
            if args.verbose:
                import traceback

                traceback.print_exc()
            return 1

        # Call run() function in module
        if not hasattr(module, "run"):
            logger.error(f"Command module {module_name} has no run() function")
            return 1

        return module.run(args)


def main():
    """Main entry point for the CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
