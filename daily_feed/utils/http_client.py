"""
HTTP client used by every source to fetch raw payloads
"""
import asyncio
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from daily_feed.utils.constants import HTTPConstants
from daily_feed.utils.logger import logger


class FetchError(Exception):
    """Raised when a payload cannot be retrieved (timeout, unreachable, non-2xx)"""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class HTTPClient:
    """requests session with retries and bounded timeouts"""

    def __init__(
        self,
        timeout: float = HTTPConstants.DEFAULT_TIMEOUT,
        connect_timeout: float = HTTPConstants.CONNECT_TIMEOUT,
        max_retries: int = HTTPConstants.MAX_RETRIES,
    ):
        self.timeout = (connect_timeout, timeout)
        self.session = requests.Session()

        # Configure retry strategy
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=HTTPConstants.RETRY_BACKOFF_FACTOR,
            status_forcelist=HTTPConstants.RETRY_STATUS_CODES,
            allowed_methods=["HEAD", "GET", "OPTIONS"]
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            'User-Agent': HTTPConstants.USER_AGENT,
            'Accept': 'application/rss+xml,application/atom+xml,application/feed+json,'
                      'application/json,text/html,application/xml;q=0.9,*/*;q=0.8',
        })

    def get_text_sync(self, url: str) -> str:
        """Blocking GET returning the decoded body"""
        try:
            logger.debug(f"GET {url}")
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True)
            response.raise_for_status()
            return response.text
        except requests.exceptions.Timeout as e:
            raise FetchError(url, "request timed out") from e
        except requests.exceptions.ConnectionError as e:
            raise FetchError(url, f"connection error: {e}") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            raise FetchError(url, f"HTTP error {status}") from e
        except requests.exceptions.RequestException as e:
            raise FetchError(url, str(e)) from e

    async def get_text(self, url: str) -> str:
        """GET in a worker thread so independent sources fetch in parallel"""
        return await asyncio.to_thread(self.get_text_sync, url)

    def close(self):
        """Close the HTTP session"""
        self.session.close()


# Global HTTP client instance
_client: Optional[HTTPClient] = None


def get_http_client() -> HTTPClient:
    """Get or create the global HTTP client"""
    global _client
    if _client is None:
        _client = HTTPClient()
    return _client


def close_http_client():
    """Close the global HTTP client"""
    global _client
    if _client is not None:
        _client.close()
        _client = None
