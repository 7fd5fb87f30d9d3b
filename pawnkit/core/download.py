"""
HTTP download primitives with progress tracking and cancellation.

This module provides streaming download capabilities with:
- HTTP/HTTPS downloads with TLS verification
- Chunked streaming (the artifact is never buffered whole in memory)
- Progress reporting (bytes, percentage, speed, ETA)
- Cooperative cancellation through a threading.Event
- Timeout handling

Retries are left to callers.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

import requests
from requests.exceptions import RequestException

from pawnkit.core.exceptions import FetchError, OperationCancelledError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
CHUNK_SIZE = 8192


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


ProgressCallback = Callable[[DownloadProgress], None]


def open_download(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Response:
    """
    Start a streaming GET request and check its status.

    The caller owns the returned response and must close it (it supports the
    ``with`` statement).

    Args:
        url: URL to download from
        session: Optional session to reuse connections
        timeout: Connect/read timeout in seconds

    Returns:
        Open streaming response with a 2xx status

    Raises:
        FetchError: On transport failure or non-2xx status
        ValueError: If URL is empty
    """
    if not url:
        raise ValueError("URL cannot be empty")

    http = session or requests
    logger.info(f"Downloading from {url}")

    try:
        response = http.get(url, stream=True, timeout=timeout, allow_redirects=True)
    except RequestException as e:
        raise FetchError(url, f"transport error: {e}") from e

    if not 200 <= response.status_code < 300:
        status = response.status_code
        reason = response.reason or ""
        response.close()
        raise FetchError(url, f"HTTP {status} {reason}".rstrip(), status_code=status)

    return response


def iter_download(
    response: requests.Response,
    url: str,
    cancel: Optional[threading.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
    chunk_size: int = CHUNK_SIZE,
) -> Iterator[bytes]:
    """
    Yield the body of a streaming response chunk by chunk.

    Args:
        response: Response returned by open_download()
        url: URL being downloaded (for error messages)
        cancel: Optional event; when set, iteration stops with an error
        progress_callback: Optional callback for progress updates
        chunk_size: Bytes per chunk

    Yields:
        Non-empty byte chunks

    Raises:
        FetchError: If the transfer fails mid-stream
        OperationCancelledError: If ``cancel`` is set
    """
    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    try:
        for chunk in response.iter_content(chunk_size=chunk_size):
            if cancel is not None and cancel.is_set():
                raise OperationCancelledError(f"Download of {url} cancelled")

            if not chunk:
                continue

            downloaded += len(chunk)
            yield chunk

            # Report progress (max once per 0.5 seconds to avoid spam)
            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                progress_callback(
                    _make_progress(downloaded, total_size, current_time - start_time)
                )
                last_progress_time = current_time

    except RequestException as e:
        raise FetchError(url, f"transfer interrupted: {e}") from e

    if total_size and downloaded < total_size:
        raise FetchError(
            url, f"transfer incomplete: got {downloaded} of {total_size} bytes"
        )

    if progress_callback and downloaded != total_size:
        progress_callback(
            _make_progress(downloaded, total_size, time.time() - start_time)
        )

    logger.debug(f"Received {downloaded} bytes from {url}")


def _make_progress(
    downloaded: int, total_size: int, elapsed: float
) -> DownloadProgress:
    """Build a DownloadProgress snapshot."""
    speed = downloaded / elapsed if elapsed > 0 else 0
    remaining = total_size - downloaded if total_size > 0 else 0
    eta = remaining / speed if speed > 0 else 0

    return DownloadProgress(
        bytes_downloaded=downloaded,
        total_bytes=total_size if total_size > 0 else downloaded,
        percentage=(downloaded / total_size * 100) if total_size > 0 else 0,
        speed_bps=speed,
        eta_seconds=eta,
    )


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Args:
        progress: Download progress information

    Returns:
        Formatted progress string

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0 and progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        # Unknown total size
        return f"{mb_downloaded:.1f} MB " f"at {speed_mbps:.1f} MB/s"
