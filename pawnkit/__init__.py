"""
PawnKit - Pawn compiler acquisition.

Downloads, caches and installs prebuilt Pawn compiler packages.
"""

__version__ = "0.1.0"
