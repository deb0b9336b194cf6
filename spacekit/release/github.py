"""
GitHub releases API client.

Provides the two registry queries needed for version resolution:
- the most recent published release (``/releases/latest``)
- the full release listing, paged in descending recency order

Requests are retried a bounded number of times with a short exponential
backoff when the failure is transient (connection errors, timeouts, 5xx,
429 and exhausted rate limits).
"""

import logging
import time
from typing import Any, Dict, Iterator, Optional

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from spacekit import __version__
from spacekit.core.exceptions import RegistryError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF_SECONDS = 0.1
DEFAULT_PER_PAGE = 100


class GitHubReleases:
    """
    Read-only client for the releases of one GitHub repository.

    A token is optional; unauthenticated requests are attempted and only their
    failure (typically a rate limit) is reported.

    Example:
        >>> client = GitHubReleases("namespacelabs", "spacectl")
        >>> client.get_latest_release()["tag_name"]
        'v0.0.42'
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize releases client.

        Args:
            owner: Repository owner
            repo: Repository name
            token: GitHub access token (optional)
            api_url: Base URL of the GitHub REST API
            max_retries: Maximum number of attempts per request
            backoff_seconds: Base delay between attempts (doubled each retry)
            timeout: Request timeout in seconds
            session: Requests session to use (created if None)
        """
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds
        self.timeout = timeout
        self.session = session or requests.Session()

        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": f"spacekit/{__version__}",
        }
        if token:
            self.headers["Authorization"] = f"token {token}"

    @property
    def authenticated(self) -> bool:
        """Whether requests carry an access token."""
        return "Authorization" in self.headers

    def get_latest_release(self) -> Dict[str, Any]:
        """
        Get the most recent published (non-draft, non-prerelease) release.

        Returns:
            Release object with at least a ``tag_name`` field

        Raises:
            RegistryError: If the request fails after retries
        """
        return self._get(f"/repos/{self.owner}/{self.repo}/releases/latest")

    def iter_releases(self, per_page: int = DEFAULT_PER_PAGE) -> Iterator[Dict[str, Any]]:
        """
        Iterate over all releases, newest first.

        Pages are fetched lazily, so stopping the iteration early avoids
        requesting further pages.

        Args:
            per_page: Page size (GitHub allows at most 100)

        Yields:
            Release objects

        Raises:
            RegistryError: If a page request fails after retries
        """
        page = 1
        while True:
            releases = self._get(
                f"/repos/{self.owner}/{self.repo}/releases",
                params={"per_page": per_page, "page": page},
            )
            if not isinstance(releases, list):
                raise RegistryError(
                    f"Unexpected release listing for {self.owner}/{self.repo}"
                )

            logger.debug(f"Fetched releases page {page} ({len(releases)} releases)")
            yield from releases

            if len(releases) < per_page:
                return
            page += 1

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET an API path and decode the JSON body, with bounded retry.

        Raises:
            RegistryError: If the request fails after retries, or fails with a
                non-retryable status
        """
        url = f"{self.api_url}{path}"
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            try:
                response = self.session.get(
                    url, params=params, headers=self.headers, timeout=self.timeout
                )
            except (ConnectionError, Timeout) as e:
                last_error = e
            except RequestException as e:
                raise RegistryError(f"GET {url} failed: {e}") from e
            else:
                if response.ok:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise RegistryError(f"GET {url} returned invalid JSON") from e

                error = RegistryError(
                    f"GET {url} returned HTTP {response.status_code}: "
                    f"{_error_message(response)}",
                    status_code=response.status_code,
                )
                if not _is_retryable(response):
                    raise error
                last_error = error

            if attempt < self.max_retries - 1:
                backoff = self.backoff_seconds * 2**attempt
                logger.debug(
                    f"Request attempt {attempt + 1} failed: {last_error}. "
                    f"Retrying in {backoff:.1f}s..."
                )
                time.sleep(backoff)

        if isinstance(last_error, RegistryError):
            raise last_error
        raise RegistryError(
            f"GET {url} failed after {self.max_retries} attempts: {last_error}"
        ) from last_error


def _is_retryable(response: requests.Response) -> bool:
    """Check whether an HTTP error response is worth retrying."""
    if response.status_code == 429 or response.status_code >= 500:
        return True
    # Primary rate limit exhaustion is reported as 403
    return (
        response.status_code == 403
        and response.headers.get("X-RateLimit-Remaining") == "0"
    )


def _error_message(response: requests.Response) -> str:
    """Extract the API error message from a response, if any."""
    try:
        body = response.json()
    except ValueError:
        return response.reason or ""
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason or ""
