"""
Compiler acquisition orchestration.

Installs the Pawn compiler for a (platform, version) pair into a directory,
serving the archive from the local cache when possible and downloading it
otherwise:

1. Resolve the platform descriptor for the version (no I/O)
2. Try to install from the cached archive
3. On a miss (or a corrupt entry) download the archive into the cache
4. Install from the freshly downloaded archive

Every failure is raised as an AcquisitionError naming the failed stage.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from pawnkit.compiler.cache import CacheStore
from pawnkit.compiler.catalog import ResolvedDescriptor, resolve_descriptor
from pawnkit.compiler.extraction import extract
from pawnkit.compiler.fetcher import NetworkFetcher
from pawnkit.core.directory import DirectoryError, get_cache_dir
from pawnkit.core.download import DEFAULT_TIMEOUT, ProgressCallback
from pawnkit.core.exceptions import (
    AcquisitionError,
    AcquisitionStage,
    CacheError,
    ConfigurationError,
    CorruptCacheError,
    ExtractionError,
    FetchError,
    OperationCancelledError,
)
from pawnkit.core.filesystem import FilesystemError, ensure_directory, safe_join

logger = logging.getLogger(__name__)


@dataclass
class AcquisitionResult:
    """Result of a compiler acquisition."""

    platform: str
    version: str
    destination_dir: Path
    archive_path: Path
    """Cached archive the files were installed from"""
    was_cached: bool
    """Whether the archive came from the cache (no download)"""
    installed_files: List[Path] = field(default_factory=list)
    """Installed files, in path map order"""


class CompilerAcquirer:
    """
    Acquires compiler packages through the cache.

    Example:
        >>> acquirer = CompilerAcquirer()
        >>> result = acquirer.acquire("linux", "3.10.10", Path("./compiler"))
        >>> print(result.installed_files)
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        fetcher: Optional[NetworkFetcher] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the acquirer.

        Args:
            cache_dir: Cache directory. If None, uses the per-user cache.
            fetcher: Network fetcher. If None, creates one with ``timeout``.
            timeout: Network timeout in seconds for the default fetcher
        """
        self._cache_dir = Path(cache_dir) if cache_dir is not None else None
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None
        self.timeout = timeout

    @property
    def fetcher(self) -> NetworkFetcher:
        if self._fetcher is None:
            self._fetcher = NetworkFetcher(timeout=self.timeout)
        return self._fetcher

    def close(self) -> None:
        """Close the fetcher this acquirer created (a passed-in one is left open)."""
        if self._owns_fetcher and self._fetcher is not None:
            self._fetcher.close()
            self._fetcher = None

    def __enter__(self) -> "CompilerAcquirer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def acquire(
        self,
        platform: str,
        version: str,
        destination_dir: Union[str, Path],
        cancel: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> AcquisitionResult:
        """
        Install the compiler for ``platform`` and ``version`` into ``destination_dir``.

        Re-running a successful request is a pure cache hit with no network
        access and reproduces the same files.

        Args:
            platform: Platform identifier ('darwin', 'linux', 'windows')
            version: Compiler version (e.g. "3.10.10")
            destination_dir: Install directory (created if missing)
            cancel: Optional event that aborts download/extraction when set
            progress_callback: Optional download progress callback

        Returns:
            AcquisitionResult describing the installation

        Raises:
            AcquisitionError: On any failure; ``stage`` names the failed step
                and the underlying error is chained as ``__cause__``
        """
        destination_dir = Path(destination_dir)

        def fail(stage: AcquisitionStage, error: Exception, note: str = ""):
            message = f"{error}{note}"
            logger.error(f"Compiler acquisition failed ({stage.value}): {message}")
            return AcquisitionError(stage, platform, version, message)

        # Resolve descriptor (no side effects)
        try:
            descriptor = resolve_descriptor(platform, version)
            cache_dir = get_cache_dir(self._cache_dir)
            store = CacheStore(cache_dir)
            store.path_for(descriptor.filename)
        except (ConfigurationError, DirectoryError, CacheError) as e:
            raise fail(AcquisitionStage.RESOLVE, e) from e

        logger.info(f"Downloading compiler package {version} for {platform}")

        # Try cache
        try:
            ensure_directory(destination_dir)
        except FilesystemError as e:
            raise fail(AcquisitionStage.CACHE, e) from e

        corrupt_note = ""
        try:
            hit = store.satisfy(
                descriptor.filename,
                destination_dir,
                descriptor.archive_format,
                descriptor.path_map,
                cancel=cancel,
            )
        except CorruptCacheError as e:
            # Not evicted; the download below renames over the entry
            logger.warning(f"{e}; downloading a fresh copy")
            corrupt_note = f" (cached {descriptor.filename} was corrupt: {e.reason})"
            hit = False
        except (CacheError, OperationCancelledError) as e:
            raise fail(AcquisitionStage.CACHE, e) from e

        if hit:
            return self._result(
                platform, descriptor, destination_dir, store, was_cached=True
            )

        # Fetch into cache
        try:
            ensure_directory(store.cache_dir)
        except FilesystemError as e:
            raise fail(AcquisitionStage.CACHE, e, corrupt_note) from e

        try:
            archive_path = self.fetcher.fetch(
                descriptor.url,
                store,
                descriptor.filename,
                cancel=cancel,
                progress_callback=progress_callback,
            )
        except (FetchError, OperationCancelledError) as e:
            raise fail(AcquisitionStage.NETWORK, e, corrupt_note) from e

        # Extract from the fresh download
        try:
            extract(
                descriptor.archive_format,
                archive_path,
                destination_dir,
                descriptor.path_map,
                cancel=cancel,
            )
        except (ExtractionError, OperationCancelledError) as e:
            raise fail(AcquisitionStage.EXTRACT, e) from e

        return self._result(
            platform, descriptor, destination_dir, store, was_cached=False
        )

    def _result(
        self,
        platform: str,
        descriptor: ResolvedDescriptor,
        destination_dir: Path,
        store: CacheStore,
        was_cached: bool,
    ) -> AcquisitionResult:
        installed = [
            safe_join(destination_dir, install)
            for install in descriptor.path_map.values()
        ]
        source = "cache" if was_cached else "network"
        logger.info(
            f"Installed {len(installed)} file(s) for compiler {descriptor.version} "
            f"into {destination_dir} (from {source})"
        )
        return AcquisitionResult(
            platform=platform,
            version=descriptor.version,
            destination_dir=destination_dir,
            archive_path=store.path_for(descriptor.filename),
            was_cached=was_cached,
            installed_files=installed,
        )


# Convenience function for one-off acquisitions
def acquire_compiler(
    platform: str,
    version: str,
    destination_dir: Union[str, Path],
    cache_dir: Optional[Path] = None,
    timeout: float = DEFAULT_TIMEOUT,
    cancel: Optional[threading.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> AcquisitionResult:
    """
    Convenience function to acquire a compiler package.

    Creates an acquirer and performs the acquisition in one call. For many
    acquisitions, create a CompilerAcquirer and reuse it.

    Example:
        >>> from pawnkit.compiler.acquisition import acquire_compiler
        >>> result = acquire_compiler("linux", "3.10.10", "./compiler")
    """
    with CompilerAcquirer(cache_dir=cache_dir, timeout=timeout) as acquirer:
        return acquirer.acquire(
            platform,
            version,
            destination_dir,
            cancel=cancel,
            progress_callback=progress_callback,
        )
