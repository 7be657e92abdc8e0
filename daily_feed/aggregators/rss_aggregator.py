"""
RSS/Atom feed source
"""
from typing import Optional

import feedparser

from daily_feed.aggregators.base import BaseSource, FeedParseError
from daily_feed.utils.http_client import HTTPClient
from daily_feed.utils.logger import logger
from daily_feed.utils.models import RawFeed, RawItem, SourceKind


class RSSSource(BaseSource):
    """Reads RSS 2.0 and Atom payloads with feedparser"""

    kind = SourceKind.RSS

    def __init__(
        self,
        name: str,
        url: str,
        description: Optional[str] = None,
        http_client: Optional[HTTPClient] = None,
    ):
        super().__init__(name, http_client)
        self._url = url
        self._description = description

    @property
    def url(self) -> str:
        return self._url

    @property
    def description(self) -> Optional[str]:
        return self._description

    def parse_payload(self, payload: str) -> RawFeed:
        """Parse RSS feed content into raw items"""
        feed = feedparser.parse(payload)

        # feedparser flags malformed XML with bozo but still recovers what it can
        if feed.bozo and feed.bozo_exception:
            if not feed.entries:
                raise FeedParseError(f"Could not parse feed {self.name}: {feed.bozo_exception}")
            logger.warning(f"RSS feed parsing warning for {self.name}: {feed.bozo_exception}")

        if not feed.entries:
            logger.warning(f"No entries found in RSS feed: {self.name}")

        channel = feed.get("feed", {})
        items = []
        issues = []
        for index, entry in enumerate(feed.entries):
            try:
                items.append(self._parse_entry(entry))
            except (AttributeError, IndexError, TypeError, ValueError) as e:
                message = f"{self.name}: skipped entry {index}: {e}"
                logger.warning(message)
                issues.append(message)

        return RawFeed(
            title=channel.get("title"),
            description=self._description or channel.get("subtitle") or channel.get("description"),
            url=channel.get("link") or self._url,
            items=items,
            issues=issues,
        )

    def _parse_entry(self, entry) -> RawItem:
        """Parse RSS entry into a raw item"""
        # Full content wins over the summary when the feed ships both
        body = ""
        if entry.get("content"):
            body = entry.content[0].get("value", "")
        elif entry.get("summary"):
            body = entry.summary
        elif entry.get("description"):
            body = entry.description

        return RawItem(
            title=entry.get("title"),
            link=entry.get("link"),
            author=entry.get("author"),
            published=entry.get("published") or entry.get("updated") or entry.get("created"),
            body_html=body or "",
        )
