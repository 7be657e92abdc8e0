"""
Security utilities for Daily Feed
"""
from typing import Optional
from urllib.parse import urlparse

from daily_feed.utils.constants import SecurityConstants
from daily_feed.utils.logger import logger


class URLValidator:
    """Keeps link and image targets to schemes that cannot run code"""

    @staticmethod
    def is_safe_url(url: Optional[str]) -> bool:
        """
        Check that a URL is non-empty and either relative or http(s)/mailto

        Args:
            url: URL taken from feed markup

        Returns:
            True if the URL can be emitted as a link target, False otherwise
        """
        if not url or not isinstance(url, str):
            return False

        compact = SecurityConstants.URL_IGNORED_CHARS_PATTERN.sub("", url)
        if not compact:
            return False

        try:
            parsed = urlparse(compact)
        except ValueError as e:
            logger.debug(f"Unparseable URL '{url}': {e}")
            return False

        if parsed.scheme and parsed.scheme.lower() not in SecurityConstants.SAFE_URL_SCHEMES:
            logger.debug(f"Rejected URL scheme '{parsed.scheme}': {url}")
            return False

        return True

    @staticmethod
    def sanitize_url(url: Optional[str]) -> Optional[str]:
        """
        Trimmed URL when it is safe to emit, None otherwise

        Args:
            url: URL to sanitize

        Returns:
            Sanitized URL or None if unsafe or empty
        """
        if url is None or not isinstance(url, str):
            return None
        url = url.strip()
        return url if URLValidator.is_safe_url(url) else None
