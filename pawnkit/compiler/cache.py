"""
Local cache of downloaded compiler archives.

Archives are stored flat in the cache directory under the file name taken
from their download URL. The directory may be shared by several PawnKit
processes at once; entries only ever appear through an atomic rename, so a
reader sees either a complete archive or nothing.

Example:
    >>> store = CacheStore(get_cache_dir())
    >>> hit = store.satisfy("pawnc-3.10.10-linux.tar.gz", Path("bin"),
    ...                     ArchiveFormat.TAR_GZIP, path_map)
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Union

from pawnkit.compiler.catalog import ArchiveFormat
from pawnkit.compiler.extraction import extract
from pawnkit.core.exceptions import (
    CacheError,
    CorruptArchiveError,
    CorruptCacheError,
    ExtractionError,
    MissingMemberError,
)
from pawnkit.core.filesystem import atomic_writer

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".part"


@dataclass
class CacheEntry:
    """A complete archive in the cache."""

    filename: str
    path: Path
    size_bytes: int


class CacheStore:
    """
    Filename-keyed store of compiler archives.

    Attributes:
        cache_dir: Directory holding the archives
    """

    def __init__(self, cache_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir)

    def path_for(self, filename: str) -> Path:
        """
        Get the cache path for an archive file name.

        Raises:
            CacheError: If ``filename`` is not a plain file name
        """
        if (
            not filename
            or filename in (".", "..")
            or "/" in filename
            or "\\" in filename
            or filename.startswith(".")
        ):
            raise CacheError(f"Invalid cache file name: {filename!r}")
        return self.cache_dir / filename

    def has(self, filename: str) -> bool:
        """Check whether a complete archive is cached (no validation)."""
        return self.path_for(filename).is_file()

    def satisfy(
        self,
        filename: str,
        destination_dir: Union[str, Path],
        archive_format: ArchiveFormat,
        path_map: Mapping[str, str],
        cancel: Optional[threading.Event] = None,
    ) -> bool:
        """
        Install from the cached archive if there is one.

        Args:
            filename: Cache key (archive file name)
            destination_dir: Install directory
            archive_format: Archive packing of the entry
            path_map: Archive member -> install path
            cancel: Optional cancellation event

        Returns:
            True on a cache hit (files installed), False if nothing is cached

        Raises:
            CorruptCacheError: The entry exists but is damaged or does not
                contain the expected members
            CacheError: The entry or install directory could not be accessed
        """
        path = self.path_for(filename)
        if not path.is_file():
            logger.debug(f"Cache miss: {filename}")
            return False

        logger.debug(f"Cache entry found: {path}")
        try:
            extract(archive_format, path, destination_dir, path_map, cancel=cancel)
        except (CorruptArchiveError, MissingMemberError) as e:
            raise CorruptCacheError(filename, str(e)) from e
        except ExtractionError as e:
            raise CacheError(f"Failed to install from cached {filename}: {e}") from e

        logger.info(f"Installed from cache: {filename}")
        return True

    def store(
        self,
        filename: str,
        chunks: Iterable[bytes],
    ) -> Path:
        """
        Write an archive into the cache atomically.

        The bytes are written to a temp file next to the final entry and
        renamed into place only after ``chunks`` is exhausted. Any exception
        raised by ``chunks`` propagates unchanged and leaves no entry behind.

        Args:
            filename: Cache key (archive file name)
            chunks: Archive content, in order

        Returns:
            Path of the stored entry

        Raises:
            CacheError: If the cache directory cannot be written
        """
        path = self.path_for(filename)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with atomic_writer(path, suffix=TEMP_SUFFIX) as f:
                for chunk in chunks:
                    f.write(chunk)
        except OSError as e:
            raise CacheError(f"Failed to write {path}: {e}") from e

        logger.debug(f"Stored {filename} in cache")
        return path

    def evict(self, filename: str) -> bool:
        """
        Remove an entry from the cache.

        Returns:
            True if an entry was removed

        Raises:
            CacheError: If the entry exists but cannot be removed
        """
        path = self.path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CacheError(f"Failed to remove {path}: {e}") from e

        logger.debug(f"Evicted {filename} from cache")
        return True

    def entries(self) -> List[CacheEntry]:
        """List complete cached archives, sorted by name (temp files excluded)."""
        if not self.cache_dir.is_dir():
            return []

        entries = []
        for item in sorted(self.cache_dir.iterdir()):
            if item.name.startswith(".") or not item.is_file():
                continue
            entries.append(CacheEntry(item.name, item, item.stat().st_size))
        return entries

    def clear(self) -> int:
        """
        Remove every complete cached archive.

        In-flight temp files are left alone; another process may be writing them.

        Returns:
            Number of complete entries removed
        """
        if not self.cache_dir.is_dir():
            return 0

        removed = 0
        for entry in self.entries():
            if self.evict(entry.filename):
                removed += 1

        logger.info(f"Removed {removed} cached archive(s) from {self.cache_dir}")
        return removed
