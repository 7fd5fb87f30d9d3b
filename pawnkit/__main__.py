"""
Entry point for running PawnKit CLI as a module.

Usage: python -m pawnkit [command] [options]
"""

from pawnkit.cli.parser import main

if __name__ == "__main__":
    main()
