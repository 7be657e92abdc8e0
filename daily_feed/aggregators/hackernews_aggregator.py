"""
Hacker News source built on the hnrss.org best-comments JSON Feed

Each JSON Feed item is one comment titled ``New comment by <user> in "<story>"``.
Comments are grouped under their parent story, which becomes an article with
no body of its own.
"""
import json
from typing import Dict, List, Optional

from daily_feed.aggregators.base import BaseSource, FeedParseError
from daily_feed.processors.html_normalizer import replace_surrogates
from daily_feed.utils.constants import SourceConstants
from daily_feed.utils.http_client import HTTPClient
from daily_feed.utils.logger import logger
from daily_feed.utils.models import RawComment, RawFeed, RawItem, SourceKind


def extract_parent_title(title: str) -> str:
    """Story title from a comment title; the whole title when the pattern is absent"""
    start = title.find(' in "')
    end = title.rfind('"')
    if start != -1 and end > start + 5:
        return title[start + 5:end]
    return title


def _text_field(entry: dict, key: str) -> Optional[str]:
    value = entry.get(key)
    # json.loads turns an escaped half of an emoji into a lone surrogate
    return replace_surrogates(value) if isinstance(value, str) else None


class HackerNewsSource(BaseSource):
    """Best comments from Hacker News, grouped by story"""

    kind = SourceKind.HACKERNEWS

    def __init__(self, name: str = "Hacker News", http_client: Optional[HTTPClient] = None):
        super().__init__(name, http_client)

    @property
    def url(self) -> str:
        return SourceConstants.HACKERNEWS_FEED_URL

    @property
    def description(self) -> Optional[str]:
        return SourceConstants.HACKERNEWS_DESCRIPTION

    def parse_payload(self, payload: str) -> RawFeed:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise FeedParseError(f"Hacker News payload is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise FeedParseError("Hacker News payload has no 'items' list")

        # Dicts keep first-seen order, so stories appear in feed order
        stories: Dict[str, RawItem] = {}
        issues: List[str] = []
        for index, entry in enumerate(data["items"]):
            try:
                self._add_entry(stories, entry)
            except (TypeError, ValueError) as e:
                message = f"{self.name}: skipped item {index}: {e}"
                logger.warning(message)
                issues.append(message)

        return RawFeed(
            title=_text_field(data, "title"),
            description=self.description,
            url=self.url,
            items=list(stories.values()),
            issues=issues,
        )

    def _add_entry(self, stories: Dict[str, RawItem], entry) -> None:
        """File one JSON Feed item as a comment under its story"""
        if not isinstance(entry, dict):
            raise TypeError(f"expected an object, got {type(entry).__name__}")

        title = _text_field(entry, "title")
        if not title or not title.strip():
            raise ValueError("missing title")

        author = entry.get("author")
        if isinstance(author, dict):
            author = _text_field(author, "name")
        published = _text_field(entry, "date_published")

        parent_title = extract_parent_title(title)
        comment = RawComment(
            author=replace_surrogates(author) if isinstance(author, str) and author else "Anonymous",
            content=_text_field(entry, "content_html") or _text_field(entry, "content_text") or "",
            timestamp=published,
        )

        story = stories.get(parent_title)
        if story is None:
            url = _text_field(entry, "url") or ""
            story = RawItem(
                title=parent_title,
                link=url.split("#")[0] or None,
                published=published,
                comments=[],
            )
            stories[parent_title] = story
        story.comments.append(comment)

    async def fetch_comments(self, article_url: str, limit: int) -> List[RawComment]:
        # Comments arrive inside the payload
        return []
