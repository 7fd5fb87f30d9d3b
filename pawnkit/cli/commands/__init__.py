"""
PawnKit CLI command implementations.

Each module exposes a run(args) function returning an exit code.
"""
