"""
Network fetcher for compiler archives.

Streams a release archive from its URL directly into the CacheStore's atomic
write path. A failed or cancelled download never leaves an entry under the
final cache file name.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

import requests

from pawnkit.compiler.cache import CacheStore
from pawnkit.core.download import (
    DEFAULT_TIMEOUT,
    ProgressCallback,
    iter_download,
    open_download,
)
from pawnkit.core.exceptions import CacheError, FetchError

logger = logging.getLogger(__name__)


class NetworkFetcher:
    """
    Downloads archives into a cache store.

    Example:
        >>> fetcher = NetworkFetcher(timeout=60)
        >>> store = CacheStore(cache_dir)
        >>> path = fetcher.fetch(url, store, "pawnc-3.10.10-linux.tar.gz")
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the fetcher.

        Args:
            session: Optional HTTP session (a new one is created if None)
            timeout: Connect/read timeout in seconds
        """
        if timeout <= 0:
            raise ValueError("Timeout must be positive")
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(
        self,
        url: str,
        store: CacheStore,
        filename: str,
        cancel: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Download ``url`` into ``store`` under ``filename``.

        Args:
            url: Archive URL
            store: Destination cache store
            filename: Cache key for the archive
            cancel: Optional event that aborts the transfer when set
            progress_callback: Optional callback for progress updates

        Returns:
            Path of the cached archive

        Raises:
            FetchError: On HTTP status, transport or cache write failure
            OperationCancelledError: If ``cancel`` is set mid-transfer
        """
        logger.debug(f"Fetching {url} into {store.cache_dir}")

        with open_download(url, session=self.session, timeout=self.timeout) as response:
            chunks = iter_download(
                response, url, cancel=cancel, progress_callback=progress_callback
            )
            try:
                path = store.store(filename, chunks)
            except CacheError as e:
                raise FetchError(url, f"could not write to cache: {e}") from e

        logger.info(f"Downloaded {filename} ({path.stat().st_size} bytes)")
        return path

    def close(self) -> None:
        """Release pooled HTTP connections."""
        self.session.close()
