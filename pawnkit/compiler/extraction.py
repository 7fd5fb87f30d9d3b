"""
Selective archive extraction.

Installs a chosen set of archive members under new names, instead of
unpacking the whole archive. Each archive format has an Extractor; callers
go through extract(), which dispatches on the descriptor's ArchiveFormat.

Guarantees:
- Every requested member is located before anything is written, so a
  missing member leaves the destination untouched
- Each file is written via temp file + rename (no half-written binaries)
- Executable permission bits recorded in the archive are preserved
"""

import gzip
import logging
import posixpath
import stat
import tarfile
import threading
import zipfile
import zlib
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Any, Dict, List, Mapping, Optional, Tuple, Union

from pawnkit.compiler.catalog import ArchiveFormat
from pawnkit.core.exceptions import (
    CorruptArchiveError,
    ExtractionError,
    InstallWriteError,
    MissingMemberError,
    OperationCancelledError,
)
from pawnkit.core.filesystem import UnsafePathError, atomic_writer, safe_join

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644
COPY_CHUNK_SIZE = 64 * 1024
MAX_LINK_DEPTH = 8

# Errors raised by the decoders when archive data is damaged
_DECODE_ERRORS = (
    zipfile.BadZipFile,
    tarfile.TarError,
    EOFError,
    zlib.error,
    gzip.BadGzipFile,
)


class Extractor(ABC):
    """Installs selected members of one archive format."""

    archive_format: ArchiveFormat

    def extract(
        self,
        archive_path: Union[str, Path],
        destination_dir: Union[str, Path],
        path_map: Mapping[str, str],
        cancel: Optional[threading.Event] = None,
    ) -> List[Path]:
        """
        Install each ``path_map`` member at ``destination_dir/path_map[member]``.

        Args:
            archive_path: Archive file to read
            destination_dir: Directory install paths are relative to
            path_map: Archive member -> relative install path
            cancel: Optional event checked between members and chunks

        Returns:
            Installed file paths, in path map order

        Raises:
            MissingMemberError: If a member is absent (nothing written)
            CorruptArchiveError: If the archive cannot be decoded
            InstallWriteError: If writing an install path fails
            ExtractionError: For other archive access failures
            OperationCancelledError: If ``cancel`` is set
        """
        archive_path = Path(archive_path)
        destination_dir = Path(destination_dir)
        name = archive_path.name

        targets = []
        for member, install_path in path_map.items():
            try:
                targets.append((member, safe_join(destination_dir, install_path)))
            except UnsafePathError as e:
                raise InstallWriteError(name, str(e), member=member) from e

        archive = self._open(archive_path)
        try:
            located = []
            for member, target in targets:
                try:
                    entry = self._locate(archive, name, member)
                except _DECODE_ERRORS as e:
                    raise CorruptArchiveError(
                        name, f"cannot read entry: {e}", member=member
                    ) from e
                located.append((member, entry, target))

            installed = []
            for member, entry, target in located:
                _check_cancel(cancel, name)
                try:
                    source, mode = self._open_member(archive, name, member, entry)
                except _DECODE_ERRORS as e:
                    raise CorruptArchiveError(
                        name, f"member header is damaged: {e}", member=member
                    ) from e
                with source:
                    _copy_to(source, target, mode, name, member, cancel)
                logger.debug(f"Installed {member} -> {target} ({oct(mode)})")
                installed.append(target)

            return installed

        except _DECODE_ERRORS as e:
            raise CorruptArchiveError(name, f"archive is damaged: {e}") from e
        finally:
            archive.close()

    def _open(self, archive_path: Path) -> Any:
        name = archive_path.name
        if not archive_path.is_file():
            raise ExtractionError(name, f"archive not found: {archive_path}")
        try:
            return self._open_archive(archive_path)
        except _DECODE_ERRORS as e:
            fmt = self.archive_format.value
            raise CorruptArchiveError(name, f"not a valid {fmt} archive: {e}") from e
        except OSError as e:
            raise ExtractionError(name, f"cannot read archive: {e}") from e

    @abstractmethod
    def _open_archive(self, archive_path: Path) -> Any:
        """Open the archive for reading."""

    @abstractmethod
    def _locate(self, archive: Any, name: str, member: str) -> Any:
        """Find a member entry or raise MissingMemberError."""

    @abstractmethod
    def _open_member(
        self, archive: Any, name: str, member: str, entry: Any
    ) -> Tuple[IO[bytes], int]:
        """Open a located member for reading; return (stream, permission bits)."""


class ZipExtractor(Extractor):
    """Extractor for .zip archives."""

    archive_format = ArchiveFormat.ZIP

    def _open_archive(self, archive_path: Path) -> zipfile.ZipFile:
        return zipfile.ZipFile(archive_path, "r")

    def _locate(
        self, archive: zipfile.ZipFile, name: str, member: str
    ) -> zipfile.ZipInfo:
        try:
            info = archive.getinfo(member)
        except KeyError:
            raise MissingMemberError(name, member) from None
        if info.is_dir():
            raise ExtractionError(name, "is a directory, not a file", member=member)
        return info

    def _open_member(self, archive, name, member, entry):
        info = _follow_zip_links(archive, name, member, entry)
        # Unix permission bits live in the high word of external_attr
        mode = (info.external_attr >> 16) & 0o777
        return archive.open(info, "r"), mode or DEFAULT_FILE_MODE


class TarGzipExtractor(Extractor):
    """Extractor for gzip-compressed tar archives."""

    archive_format = ArchiveFormat.TAR_GZIP

    def _open_archive(self, archive_path: Path) -> tarfile.TarFile:
        return tarfile.open(archive_path, "r:gz")

    def _locate(
        self, archive: tarfile.TarFile, name: str, member: str
    ) -> tarfile.TarInfo:
        info = _get_tar_member(archive, member)
        if info is None:
            raise MissingMemberError(name, member)
        if info.isdir():
            raise ExtractionError(name, "is a directory, not a file", member=member)
        return info

    def _open_member(self, archive, name, member, entry):
        info = _follow_tar_links(archive, name, member, entry)
        if not info.isfile():
            raise ExtractionError(name, "is not a regular file", member=member)
        source = archive.extractfile(info)
        if source is None:
            raise CorruptArchiveError(name, "member data unavailable", member=member)
        return source, (info.mode & 0o777) or DEFAULT_FILE_MODE


def _is_zip_symlink(info: zipfile.ZipInfo) -> bool:
    return stat.S_ISLNK(info.external_attr >> 16)


def _follow_zip_links(
    archive: zipfile.ZipFile, name: str, member: str, info: zipfile.ZipInfo
) -> zipfile.ZipInfo:
    """Resolve Unix symlink entries, whose data is the link target path."""
    for _ in range(MAX_LINK_DEPTH):
        if not _is_zip_symlink(info):
            return info

        linkname = archive.read(info).decode("utf-8", errors="replace")
        target = posixpath.normpath(
            posixpath.join(posixpath.dirname(info.filename), linkname)
        )
        try:
            info = archive.getinfo(target)
        except KeyError:
            raise CorruptArchiveError(
                name, f"link target {target!r} is not in the archive", member=member
            ) from None
        if info.is_dir():
            raise ExtractionError(name, "link points at a directory", member=member)

    raise CorruptArchiveError(name, "too many levels of links", member=member)


def _get_tar_member(archive: tarfile.TarFile, member: str) -> Optional[tarfile.TarInfo]:
    # Some tar tools prefix every entry with "./"
    for candidate in (member, f"./{member}"):
        try:
            return archive.getmember(candidate)
        except KeyError:
            continue
    return None


def _follow_tar_links(
    archive: tarfile.TarFile, name: str, member: str, info: tarfile.TarInfo
) -> tarfile.TarInfo:
    """Resolve symlinks and hardlinks that point at other archive entries."""
    for _ in range(MAX_LINK_DEPTH):
        if info.issym():
            target = posixpath.normpath(
                posixpath.join(posixpath.dirname(info.name), info.linkname)
            )
        elif info.islnk():
            target = info.linkname
        else:
            return info

        resolved = _get_tar_member(archive, target)
        if resolved is None:
            raise CorruptArchiveError(
                name, f"link target {target!r} is not in the archive", member=member
            )
        info = resolved

    raise CorruptArchiveError(name, "too many levels of links", member=member)


def _check_cancel(cancel: Optional[threading.Event], name: str) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError(f"Extraction of {name} cancelled")


def _copy_to(
    source: IO[bytes],
    target: Path,
    mode: int,
    name: str,
    member: str,
    cancel: Optional[threading.Event],
) -> None:
    """Stream a member into ``target`` atomically with ``mode`` permissions."""
    try:
        with atomic_writer(target, mode=mode, suffix=".part") as out:
            while True:
                _check_cancel(cancel, name)
                try:
                    chunk = source.read(COPY_CHUNK_SIZE)
                except _DECODE_ERRORS as e:
                    raise CorruptArchiveError(
                        name, f"member data is damaged: {e}", member=member
                    ) from e
                if not chunk:
                    break
                out.write(chunk)
    except OSError as e:
        raise InstallWriteError(
            name, f"cannot write {target}: {e}", member=member
        ) from e


# ============================================================================
# Strategy dispatch
# ============================================================================

_EXTRACTORS: Dict[ArchiveFormat, Extractor] = {
    ArchiveFormat.ZIP: ZipExtractor(),
    ArchiveFormat.TAR_GZIP: TarGzipExtractor(),
}


def get_extractor(archive_format: ArchiveFormat) -> Extractor:
    """
    Get the extractor for an archive format.

    Raises:
        ExtractionError: If no extractor handles the format
    """
    try:
        return _EXTRACTORS[ArchiveFormat(archive_format)]
    except (KeyError, ValueError):
        raise ExtractionError(
            str(archive_format), "no extractor for this archive format"
        ) from None


def extract(
    archive_format: ArchiveFormat,
    archive_path: Union[str, Path],
    destination_dir: Union[str, Path],
    path_map: Mapping[str, str],
    cancel: Optional[threading.Event] = None,
) -> List[Path]:
    """
    Install selected archive members using the extractor for ``archive_format``.

    See Extractor.extract() for arguments and errors.

    Example:
        >>> extract(ArchiveFormat.ZIP, "pawnc-3.10.10-windows.zip", "bin",
        ...         {"pawnc-3.10.10-windows/bin/pawncc.exe": "pawncc.exe"})
    """
    return get_extractor(archive_format).extract(
        archive_path, destination_dir, path_map, cancel=cancel
    )
