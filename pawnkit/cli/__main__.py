"""
Entry point for running PawnKit CLI as a module.

Usage: python -m pawnkit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
