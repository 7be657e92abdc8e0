"""
Document parsing: raw source items into the document tree

Each raw item becomes an Article with normalized blocks, optional comments and
a reading-time estimate. Problems with a single item or a single comment fetch
are recorded as issues and never fail the feed.
"""
import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from dateutil.parser import parse as parse_date
from pydantic import BaseModel, Field

from daily_feed.aggregators.base import BaseSource
from daily_feed.processors.html_normalizer import HTMLNormalizer, normalize_text
from daily_feed.processors.reading_time import (
    count_words,
    estimate_reading_time,
    resolve_words_per_minute,
    total_article_time,
    total_feed_time,
)
from daily_feed.utils.constants import CommentConstants, SourceConstants, TimestampConstants
from daily_feed.utils.logger import logger
from daily_feed.utils.models import Article, Comment, Document, Feed, RawComment, RawItem
from daily_feed.utils.security import URLValidator


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """
    Parse a feed timestamp (RFC 822, ISO 8601 or free-form)

    Naive values are taken as UTC. RFC 822 zone names such as EST or PDT are
    resolved to their fixed offsets. Returns None when the value is missing,
    cannot be parsed or carries an offset outside a day.
    """
    if not raw or not raw.strip():
        return None

    try:
        parsed = parse_date(raw.strip(), tzinfos=TimestampConstants.RFC822_ZONES)
        # dateutil accepts "+2500"; the offset only fails once it is asked for
        parsed.utcoffset()
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


class FeedParseResult(BaseModel):
    feed: Feed
    issues: List[str] = Field(default_factory=list)


class _ArticleDraft:
    """Article fields gathered before comments are known"""

    def __init__(self, fields: Dict[str, Any], item: RawItem):
        self.fields = fields
        self.item = item


class DocumentParser:
    """Builds Feeds and the Document from source payloads"""

    def __init__(
        self,
        words_per_minute: Optional[int] = None,
        normalizer: Optional[HTMLNormalizer] = None,
        comment_limit: int = CommentConstants.DEFAULT_LIMIT,
        comment_timeout: float = CommentConstants.DEFAULT_TIMEOUT,
    ):
        self.words_per_minute = resolve_words_per_minute(words_per_minute)
        self.normalizer = normalizer or HTMLNormalizer()
        self.comment_limit = comment_limit
        self.comment_timeout = comment_timeout

    @classmethod
    def from_config(cls, config) -> "DocumentParser":
        return cls(
            words_per_minute=config.reading.words_per_minute,
            comment_limit=config.comments.limit,
            comment_timeout=config.comments.timeout,
        )

    async def parse_source(self, source: BaseSource, payload: str) -> FeedParseResult:
        """
        Parse one fetched payload into a Feed

        Raises FeedParseError when the payload as a whole is unreadable; that
        is a source-level failure for the caller to isolate.
        """
        raw_feed = source.parse_payload(payload)
        issues: List[str] = list(raw_feed.issues)

        drafts = []
        for index, item in enumerate(raw_feed.items):
            try:
                drafts.append(self._draft_article(item, source.name, issues))
            except Exception as e:
                self._report(issues, f"{source.name}: skipped item {index} ({item.title or 'untitled'}): {e}")

        # Comment fetches for one feed run concurrently
        comment_lists = await asyncio.gather(
            *(self._comments_for(source, draft, issues) for draft in drafts)
        )

        articles = []
        for draft, comments in zip(drafts, comment_lists):
            try:
                articles.append(Article(**draft.fields, comments=comments))
            except Exception as e:
                self._report(issues, f"{source.name}: skipped item '{draft.fields.get('title')}': {e}")

        feed = Feed(
            name=source.name,
            description=source.description or raw_feed.description,
            url=URLValidator.sanitize_url(raw_feed.url) or source.url,
            articles=articles,
            total_reading_time_minutes=total_article_time(articles),
        )
        logger.info(f"Parsed {len(articles)} articles from {source.name} ({len(issues)} issues)")
        return FeedParseResult(feed=feed, issues=issues)

    def build_document(
        self,
        feeds: Sequence[Feed],
        title: str,
        author: str,
        description: Optional[str] = None,
    ) -> Document:
        """Assemble the Document; feed order is kept as given"""
        return Document(
            title=title,
            author=author,
            description=description,
            feeds=list(feeds),
            total_reading_time_minutes=total_feed_time(feeds),
        )

    def _draft_article(self, item: RawItem, source_name: str, issues: List[str]) -> _ArticleDraft:
        title = normalize_text(item.title) or SourceConstants.UNTITLED

        published_at = parse_timestamp(item.published)
        if published_at is None:
            self._report(
                issues,
                f"{source_name}: '{title}' has no usable publication time "
                f"({item.published!r}); using the current time",
            )
            published_at = datetime.now(timezone.utc)

        normalized = self.normalizer.normalize(item.body_html)
        for issue in normalized.issues:
            issues.append(f"{source_name}: '{title}': {issue}")

        word_count = count_words(normalized.blocks)
        fields = {
            "title": title,
            "published_at": published_at,
            "source": source_name,
            "link": URLValidator.sanitize_url(item.link),
            "author": normalize_text(item.author) or None,
            "blocks": normalized.blocks,
            "reading_time_minutes": estimate_reading_time(word_count, self.words_per_minute),
        }
        return _ArticleDraft(fields, item)

    async def _comments_for(
        self, source: BaseSource, draft: _ArticleDraft, issues: List[str]
    ) -> Optional[List[Comment]]:
        # Sources such as Hacker News ship comments inside the payload
        if draft.item.comments is not None:
            return self._convert_comments(draft.item.comments, issues)

        if not source.supports_comments:
            return None

        link = draft.fields["link"]
        if not link:
            return []

        try:
            raw_comments = await asyncio.wait_for(
                source.fetch_comments(link, self.comment_limit),
                timeout=self.comment_timeout,
            )
        except asyncio.TimeoutError:
            self._report(issues, f"{source.name}: comments for {link} timed out after {self.comment_timeout}s")
            return []
        except Exception as e:
            self._report(issues, f"{source.name}: comments for {link} unavailable: {e}")
            return []

        return self._convert_comments(raw_comments, issues)

    def _convert_comments(self, raw_comments: List[RawComment], issues: List[str]) -> List[Comment]:
        comments = []
        for raw in raw_comments:
            try:
                comments.append(Comment(
                    author=normalize_text(raw.author) or CommentConstants.ANONYMOUS_AUTHOR,
                    body=self.normalizer.to_text_content(raw.content),
                    score=raw.score,
                    timestamp=parse_timestamp(raw.timestamp),
                ))
            except Exception as e:
                self._report(issues, f"skipped comment by {raw.author}: {e}")
        return comments

    @staticmethod
    def _report(issues: List[str], message: str) -> None:
        logger.warning(message)
        issues.append(message)
