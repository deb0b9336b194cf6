"""
Network download of release archives.

Archives are streamed to disk in chunks. A download is attempted once by
default; retry policy belongs to the caller.
"""

import logging
import time
from pathlib import Path
from typing import Dict, Optional

import requests
from requests.exceptions import RequestException

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


class DownloadError(Exception):
    """Exception raised when download fails."""

    pass


def download_file(
    url: str,
    destination: Path,
    headers: Optional[Dict[str, str]] = None,
    timeout: int = 30,
    max_retries: int = 1,
) -> Path:
    """
    Download file from URL to destination.

    Args:
        url: URL to download from
        destination: Local path to save file
        headers: Extra request headers (e.g. Authorization)
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the request or the write to disk fails
        ValueError: If URL or destination is invalid

    Example:
        >>> download_file(
        ...     "https://github.com/namespacelabs/spacectl/releases/download/v1.2.3/"
        ...     "spacectl_1.2.3_linux_amd64.tar.gz",
        ...     Path("/tmp/spacectl.tar.gz"),
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)

    for attempt in range(max_retries):
        try:
            return _stream_to_file(url, destination, headers or {}, timeout)
        except (RequestException, OSError) as e:
            destination.unlink(missing_ok=True)
            if attempt == max_retries - 1:
                raise DownloadError(f"Failed to download {url}: {e}") from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise DownloadError(f"Failed to download {url}")


def _stream_to_file(
    url: str, destination: Path, headers: Dict[str, str], timeout: int
) -> Path:
    """
    Perform a streaming GET and write the body to destination.

    Raises:
        RequestException: If the HTTP request fails
        OSError: If the file cannot be written
    """
    logger.debug(f"Downloading from {url}")
    destination.parent.mkdir(parents=True, exist_ok=True)

    with requests.get(
        url, headers=headers, stream=True, timeout=timeout, allow_redirects=True
    ) as response:
        response.raise_for_status()

        downloaded = 0
        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if chunk:
                    f.write(chunk)
                    downloaded += len(chunk)

    logger.debug(f"Download complete: {destination} ({downloaded} bytes)")
    return destination
