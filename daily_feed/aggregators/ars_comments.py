"""
Ars Technica comment fetching

Article pages embed their XenForo forum thread through an element carrying a
``data-url`` attribute. The thread page is scraped for messages, each with an
author, body, vote counts and timestamp.
"""
from typing import List, Optional

from bs4 import BeautifulSoup

from daily_feed.utils.constants import CommentConstants
from daily_feed.utils.http_client import FetchError, HTTPClient, get_http_client
from daily_feed.utils.logger import logger
from daily_feed.utils.models import RawComment


class CommentFetchError(Exception):
    """Raised when comments for an article cannot be retrieved"""
    pass


def _parse_count(text: str) -> Optional[int]:
    # Downvote scores are rendered with a leading minus sign
    text = text.strip().lstrip("-").strip()
    return int(text) if text.isdigit() else None


def parse_comments_from_html(forum_html: str) -> List[RawComment]:
    """Extract every non-empty comment from a forum thread page"""
    soup = BeautifulSoup(forum_html, "html.parser")
    comments = []

    for message in soup.select(CommentConstants.MESSAGE_SELECTOR):
        author_el = message.select_one(CommentConstants.AUTHOR_SELECTOR)
        author = author_el.get_text(strip=True) if author_el else ""
        author = author or CommentConstants.ANONYMOUS_AUTHOR

        content_el = message.select_one(CommentConstants.CONTENT_SELECTOR)
        if content_el is None:
            continue
        text = content_el.get_text(" ", strip=True).replace(CommentConstants.EXPAND_QUOTE_TEXT, "").strip()
        if not text:
            continue
        content = content_el.decode_contents().replace(CommentConstants.EXPAND_QUOTE_TEXT, "").strip()

        upvote_el = message.select_one(CommentConstants.UPVOTE_SELECTOR)
        downvote_el = message.select_one(CommentConstants.DOWNVOTE_SELECTOR)
        upvotes = (_parse_count(upvote_el.get_text()) if upvote_el else None) or 0
        downvotes = (_parse_count(downvote_el.get_text()) if downvote_el else None) or 0

        # The combined "(up / down)" form is sometimes more complete than the individual scores
        combined_el = message.select_one(CommentConstants.COMBINED_VOTES_SELECTOR)
        if combined_el is not None:
            match = CommentConstants.COMBINED_VOTES_PATTERN.search(combined_el.get_text())
            if match:
                upvotes = max(upvotes, int(match.group(1)))
                downvotes = max(downvotes, int(match.group(2)))

        time_el = message.select_one(CommentConstants.TIMESTAMP_SELECTOR) or message.find("time")
        timestamp = time_el.get("datetime") if time_el is not None else None

        comments.append(RawComment(
            author=author,
            content=content,
            upvotes=upvotes,
            downvotes=downvotes,
            timestamp=timestamp,
        ))

    return comments


def top_comments(comments: List[RawComment], limit: int) -> List[RawComment]:
    """Highest net score first; ties keep page order"""
    return sorted(comments, key=lambda c: c.score, reverse=True)[:limit]


class ArsCommentFetcher:
    """Fetches the top comments for an Ars Technica article"""

    def __init__(self, http_client: Optional[HTTPClient] = None):
        self.http_client = http_client or get_http_client()

    async def fetch_top_comments(
        self, article_url: str, limit: int = CommentConstants.DEFAULT_LIMIT
    ) -> List[RawComment]:
        try:
            article_html = await self.http_client.get_text(article_url)
        except FetchError as e:
            raise CommentFetchError(f"article page unavailable: {e}") from e

        forum_url = self._find_forum_url(article_html)
        if not forum_url:
            raise CommentFetchError(f"Could not find comment thread URL in {article_url}")

        try:
            forum_html = await self.http_client.get_text(forum_url)
        except FetchError as e:
            raise CommentFetchError(f"comment thread unavailable: {e}") from e

        comments = parse_comments_from_html(forum_html)
        logger.debug(f"Parsed {len(comments)} comments from {forum_url}")
        return top_comments(comments, limit)

    @staticmethod
    def _find_forum_url(article_html: str) -> Optional[str]:
        soup = BeautifulSoup(article_html, "html.parser")
        element = soup.select_one(CommentConstants.IFRAME_URL_SELECTOR)
        if element is None:
            return None
        return element.get("data-url") or None
