"""HTTP fetching with an in-memory cache and retries.

Used to download the workflow JSON schema and ``action.yml`` metadata:

    fetcher = WebFetcher(max_retries=3, request_timeout=10)
    response = fetcher.fetch("https://json.schemastore.org/github-workflow.json")
    if response:
        schema = response.json()
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)


class IWebFetcher(ABC):
    """Interface for cached HTTP GET clients."""

    @abstractmethod
    def fetch(self, url: str) -> Optional[requests.Response]:
        """Fetch a URL.

        Args:
            url: HTTP or HTTPS URL.

        Returns:
            The response on a 2xx status, None once every retry failed.
        """
        pass

    @abstractmethod
    def clear_cache(self) -> None:
        pass


class WebFetcher(IWebFetcher):
    """
    Session-backed fetcher.

    Responses, including failures, are cached for the lifetime of the
    instance so a URL is requested at most once per run.

    Args:
        session: Session to use; a new one by default.
        max_retries: Extra attempts after the first failure.
        request_timeout: Seconds per request.
        retry_backoff_factor: Base of the exponential delay between attempts.
        github_token: Sent as the Authorization header when set.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        max_retries: int = 3,
        request_timeout: int = 10,
        retry_backoff_factor: float = 0.5,
        github_token: Optional[str] = None,
    ) -> None:
        self.cache: Dict[str, Optional[requests.Response]] = {}
        self.session = session or requests.Session()
        self.max_retries = max_retries
        self.request_timeout = request_timeout
        self.retry_backoff_factor = retry_backoff_factor
        if github_token:
            self.session.headers.update({"Authorization": f"token {github_token}"})

    def fetch(self, url: str) -> Optional[requests.Response]:
        if url in self.cache:
            return self.cache[url]

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.get(url, timeout=self.request_timeout)
                response.raise_for_status()
                self.cache[url] = response
                logger.debug("Fetched %s", url)
                return response
            except requests.RequestException as e:
                logger.debug("Attempt %d for %s failed: %s", attempt + 1, url, e)
                if attempt < self.max_retries:
                    time.sleep(self.retry_backoff_factor * (2**attempt))

        self.cache[url] = None
        return None

    def clear_cache(self) -> None:
        self.cache.clear()
