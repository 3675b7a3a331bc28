"""Shared HTTP client for feed and enclosure fetches.

One requests session with a retry adapter is shared by the feed parser and
every worker thread. Every failure, including timeouts, exhausted retries and
non-success status codes, surfaces as FetchError.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import FetchError

logger = logging.getLogger(__name__)


class HttpClient:
    """Blocking HTTP GET with retries and a per-request timeout.

    Example:
        client = HttpClient(timeout=60)
        body = client.fetch("https://example.com/episode.mp3")
    """

    DEFAULT_USER_AGENT = "podtrim/0.1"
    DEFAULT_TIMEOUT = 300  # 5 minutes

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        retry_attempts: int = 3,
        user_agent: Optional[str] = None,
    ):
        """Initialize the client.

        Args:
            timeout: Connect and read timeout in seconds, per request
            retry_attempts: Retries for connection errors and 429/5xx responses
            user_agent: Custom user agent string
        """
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT
        self._session = self._create_session()

    @classmethod
    def from_config(cls, config) -> "HttpClient":
        """Build a client from the PODCAST_DOWNLOAD_* settings of a Config."""
        return cls(
            timeout=config.PODCAST_DOWNLOAD_TIMEOUT,
            retry_attempts=config.PODCAST_DOWNLOAD_RETRY_ATTEMPTS,
            user_agent=config.PODCAST_USER_AGENT,
        )

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic."""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.retry_attempts,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers.update({"User-Agent": self.user_agent})

        return session

    def fetch(self, url: str) -> bytes:
        """Fetch the full response body of `url` into memory.

        Raises:
            FetchError: On connection failure, timeout or a non-2xx response
        """
        logger.debug(f"GET {url}")
        try:
            response = self._session.get(url, timeout=self.timeout, allow_redirects=True)
            response.raise_for_status()
            body = response.content
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        logger.debug(f"Fetched {len(body)} bytes from {url}")
        return body

    def close(self) -> None:
        self._session.close()
