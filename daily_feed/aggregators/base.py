"""
Base source interface
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from daily_feed.utils.http_client import HTTPClient, get_http_client
from daily_feed.utils.models import RawComment, RawFeed, SourceKind


class SourceError(Exception):
    """Base exception for source errors."""
    pass


class FeedParseError(SourceError):
    """Raised when a fetched payload cannot be read as a feed."""
    pass


class BaseSource(ABC):
    """
    One configured content origin

    The document parser only needs four things from a source: how to fetch
    its payload, how to turn that payload into raw items, whether it has
    per-article comments, and how to fetch them.
    """

    kind: SourceKind
    supports_comments: bool = False

    def __init__(self, name: str, http_client: Optional[HTTPClient] = None):
        self.name = name
        self.http_client = http_client or get_http_client()

    @property
    @abstractmethod
    def url(self) -> str:
        """Location of the payload"""
        pass

    @property
    def description(self) -> Optional[str]:
        return None

    async def fetch_payload(self) -> str:
        """Fetch the raw payload; raises FetchError"""
        return await self.http_client.get_text(self.url)

    @abstractmethod
    def parse_payload(self, payload: str) -> RawFeed:
        """Turn a fetched payload into raw items; raises FeedParseError"""
        pass

    async def fetch_comments(self, article_url: str, limit: int) -> List[RawComment]:
        """Top comments for one article; only called when supports_comments is set"""
        return []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, url={self.url!r})"
