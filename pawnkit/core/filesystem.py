"""
Cross-platform file system utilities for PawnKit.

This module provides the file operations the acquisition pipeline relies on:
- Atomic writes (temp file + rename) so readers never see partial files
- Path safety checks for archive members and install paths
- Directory creation

All operations handle platform differences transparently.
"""

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import BinaryIO, Iterator, Optional, Union

# Platform detection
IS_WINDOWS = os.name == "nt"


class FilesystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class UnsafePathError(FilesystemError):
    """Path is absolute or escapes its base directory."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Args:
        path: Path to check
        parent: Parent directory

    Returns:
        True if path is under parent directory

    Example:
        >>> is_relative_to(Path("/home/user/project/file.txt"), Path("/home/user"))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def check_relative_path(path: str) -> PurePosixPath:
    """
    Validate a forward-slash relative path taken from a descriptor or archive.

    Rejects absolute paths, drive letters and any ``..`` component so the path
    cannot escape the directory it is joined onto.

    Args:
        path: Relative path using ``/`` separators

    Returns:
        The path as a PurePosixPath

    Raises:
        UnsafePathError: If the path is empty, absolute, or escapes its base

    Example:
        >>> check_relative_path("bin/pawncc")
        PurePosixPath('bin/pawncc')
    """
    if not path or not path.strip():
        raise UnsafePathError("Path cannot be empty")

    normalized = path.replace("\\", "/")
    posix = PurePosixPath(normalized)

    if posix.is_absolute() or PureWindowsPath(path).drive:
        raise UnsafePathError(f"Path must be relative: {path!r}")

    if ".." in posix.parts:
        raise UnsafePathError(f"Path must not contain '..': {path!r}")

    if not posix.parts or posix.parts == (".",):
        raise UnsafePathError(f"Path does not name a file: {path!r}")

    return posix


def safe_join(base: Union[str, Path], relative: str) -> Path:
    """
    Join a validated relative path onto a base directory.

    Args:
        base: Base directory
        relative: Relative path using ``/`` separators

    Returns:
        Absolute path under base

    Raises:
        UnsafePathError: If the joined path would fall outside base
    """
    base = Path(base).resolve()
    target = base.joinpath(*check_relative_path(relative).parts).resolve()

    if not is_relative_to(target, base):
        raise UnsafePathError(f"Path {relative!r} escapes {base}")

    return target


# ============================================================================
# Safe File Operations
# ============================================================================


@contextmanager
def atomic_writer(
    file_path: Union[str, Path],
    mode: Optional[int] = None,
    suffix: str = ".tmp",
) -> Iterator[BinaryIO]:
    """
    Open a binary file for writing that appears at ``file_path`` only on success.

    Data goes to a temp file in the same directory (same filesystem), which is
    renamed over ``file_path`` when the ``with`` block exits cleanly. If the
    block raises, the temp file is removed and ``file_path`` is untouched.

    Args:
        file_path: Final path of the file
        mode: Optional permission bits applied before the rename
        suffix: Suffix for the temp file name

    Yields:
        Writable binary file object

    Example:
        >>> with atomic_writer('cache/pawnc.zip') as f:
        ...     f.write(b'...')
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=suffix
    )
    temp_path = Path(temp_path_str)

    try:
        with open(temp_fd, "wb") as f:
            yield f

        if mode is not None:
            os.chmod(temp_path, mode)

        # Atomic rename (replaces destination if it exists)
        temp_path.replace(file_path)

    except BaseException:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists (idempotent).

    Args:
        path: Directory path

    Returns:
        Path object (resolved)

    Raises:
        FilesystemError: If the directory cannot be created
    """
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create directory {path}: {e}") from e
    return path.resolve()


__all__ = [
    "IS_WINDOWS",
    "FilesystemError",
    "UnsafePathError",
    "is_relative_to",
    "check_relative_path",
    "safe_join",
    "atomic_writer",
    "ensure_directory",
]
