"""
Tests for the document parser
"""
import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest

from daily_feed.aggregators.base import BaseSource, FeedParseError
from daily_feed.processors.document_parser import DocumentParser, parse_timestamp
from daily_feed.processors.html_normalizer import NormalizedContent
from daily_feed.utils.models import (
    Feed,
    LESS_THAN_A_MINUTE,
    Paragraph,
    RawComment,
    RawFeed,
    RawItem,
    SourceKind,
    TextContent,
)
from daily_feed.utils.serialization import document_from_json, document_to_json


class FakeSource(BaseSource):
    """Source whose payload parsing returns a prepared RawFeed"""

    kind = SourceKind.RSS

    def __init__(self, name, raw_feed, supports_comments=False):
        super().__init__(name, http_client=Mock())
        self.raw_feed = raw_feed
        self.supports_comments = supports_comments
        self.fetch_comments = AsyncMock(return_value=[])

    @property
    def url(self):
        return "https://fake.example/feed"

    def parse_payload(self, payload):
        if payload == "broken":
            raise FeedParseError("unreadable")
        return self.raw_feed


def _item(title="Story", link="https://fake.example/story", body="<p>Hello world</p>", **kwargs):
    return RawItem(title=title, link=link, published="Tue, 04 Mar 2025 09:00:00 +0000", body_html=body, **kwargs)


@pytest.fixture
def parser():
    return DocumentParser()


class TestParseTimestamp:
    def test_rfc_822(self):
        parsed = parse_timestamp("Tue, 04 Mar 2025 09:15:00 +0100")
        assert parsed == datetime(2025, 3, 4, 8, 15, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(hours=1)

    def test_iso_8601(self):
        parsed = parse_timestamp("2025-03-04T09:15:00.250000Z")
        assert parsed == datetime(2025, 3, 4, 9, 15, 0, 250000, tzinfo=timezone.utc)

    def test_naive_taken_as_utc(self):
        assert parse_timestamp("2025-03-04 09:15") == datetime(2025, 3, 4, 9, 15, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw", [None, "", "   ", "not a date at all"])
    def test_unparseable(self, raw):
        assert parse_timestamp(raw) is None

    @pytest.mark.parametrize("raw", [
        "Mon, 01 Jan 2024 10:00:00 +2500",
        "2024-01-01T00:00:00+99:00",
    ])
    def test_offset_outside_a_day_rejected(self, raw):
        assert parse_timestamp(raw) is None

    @pytest.mark.parametrize("raw, hours", [
        ("Tue, 04 Mar 2025 09:00:00 EST", -5),
        ("Tue, 04 Mar 2025 09:00:00 PDT", -7),
        ("Tue, 04 Mar 2025 09:00:00 GMT", 0),
    ])
    def test_rfc_822_zone_names(self, raw, hours):
        parsed = parse_timestamp(raw)
        assert parsed.utcoffset() == timedelta(hours=hours)
        assert parsed == datetime(2025, 3, 4, 9, tzinfo=timezone.utc) - timedelta(hours=hours)


class TestParseSource:
    @pytest.mark.asyncio
    async def test_builds_feed_from_items(self, parser):
        raw_feed = RawFeed(
            title="Fake",
            description="From the payload",
            url="https://fake.example",
            items=[
                _item(title="  Tom &amp;\n Jerry ", author="Ann", body="<p>" + "word " * 450 + "</p>"),
                _item(title="Second", link=None, body=""),
            ],
        )
        source = FakeSource("Fake Feed", raw_feed)

        result = await parser.parse_source(source, "payload")

        feed = result.feed
        assert feed.name == "Fake Feed"
        assert feed.description == "From the payload"
        assert feed.url == "https://fake.example"
        assert [a.title for a in feed.articles] == ["Tom & Jerry", "Second"]

        first, second = feed.articles
        assert first.source == "Fake Feed"
        assert first.author == "Ann"
        assert first.published_at == datetime(2025, 3, 4, 9, 0, tzinfo=timezone.utc)
        assert first.reading_time_minutes == 3
        assert first.comments is None
        assert second.link is None
        assert second.blocks == []
        assert second.reading_time_minutes == LESS_THAN_A_MINUTE
        assert feed.total_reading_time_minutes == 3
        assert result.issues == []

    @pytest.mark.asyncio
    async def test_untitled_and_missing_date(self, parser):
        raw_feed = RawFeed(items=[RawItem(title=None, published=None, body_html="<p>x</p>")])
        before = datetime.now(timezone.utc)

        result = await parser.parse_source(FakeSource("Fake", raw_feed), "payload")

        article = result.feed.articles[0]
        assert article.title == "Untitled"
        assert article.published_at >= before
        assert len(result.issues) == 1
        assert "publication time" in result.issues[0]

    @pytest.mark.asyncio
    async def test_out_of_range_offset_uses_current_time_and_round_trips(self, parser):
        raw_feed = RawFeed(items=[
            RawItem(title="Odd", published="Mon, 01 Jan 2024 10:00:00 +2500", body_html="<p>x</p>")
        ])
        before = datetime.now(timezone.utc)

        result = await parser.parse_source(FakeSource("Fake", raw_feed), "payload")
        document = parser.build_document([result.feed], title="Digest", author="Me")

        assert result.feed.articles[0].published_at >= before
        assert any("publication time" in issue for issue in result.issues)
        assert document_from_json(document_to_json(document)) == document

    @pytest.mark.asyncio
    async def test_unsafe_links_dropped(self, parser):
        raw_feed = RawFeed(url="javascript:alert(1)", items=[_item(link="javascript:alert(1)")])

        result = await parser.parse_source(FakeSource("Fake", raw_feed), "payload")

        assert result.feed.url == "https://fake.example/feed"
        assert result.feed.articles[0].link is None

    @pytest.mark.asyncio
    async def test_payload_issues_carried_over(self, parser):
        raw_feed = RawFeed(items=[_item()], issues=["Fake: skipped entry 3: bad"])
        result = await parser.parse_source(FakeSource("Fake", raw_feed), "payload")

        assert len(result.feed.articles) == 1
        assert result.issues == ["Fake: skipped entry 3: bad"]

    @pytest.mark.asyncio
    async def test_normalizer_issues_are_reported(self, parser):
        raw_feed = RawFeed(items=[_item(body="<h9>Odd</h9>")])
        result = await parser.parse_source(FakeSource("Fake", raw_feed), "payload")

        assert isinstance(result.feed.articles[0].blocks[0], Paragraph)
        assert any("<h9>" in issue for issue in result.issues)

    @pytest.mark.asyncio
    async def test_bad_item_skipped(self):
        parser = DocumentParser()
        good = NormalizedContent(blocks=[Paragraph(content=TextContent.plain("fine"))])
        raw_feed = RawFeed(items=[_item(title="Bad"), _item(title="Good")])

        with patch.object(parser.normalizer, "normalize", side_effect=[RuntimeError("exploded"), good]):
            result = await parser.parse_source(FakeSource("Fake", raw_feed), "payload")

        assert [a.title for a in result.feed.articles] == ["Good"]
        assert len(result.issues) == 1
        assert "exploded" in result.issues[0]

    @pytest.mark.asyncio
    async def test_unreadable_payload_raises(self, parser):
        with pytest.raises(FeedParseError):
            await parser.parse_source(FakeSource("Fake", RawFeed()), "broken")

    @pytest.mark.asyncio
    async def test_configured_description_wins(self, parser):
        source = FakeSource("Fake", RawFeed(description="payload text"))
        with patch.object(FakeSource, "description", "configured"):
            result = await parser.parse_source(source, "payload")
        assert result.feed.description == "configured"
        assert result.feed.articles == []
        assert result.feed.total_reading_time_minutes is None


class TestComments:
    @pytest.mark.asyncio
    async def test_comments_fetched_and_normalized(self):
        parser = DocumentParser(comment_limit=2)
        source = FakeSource("Ars", RawFeed(items=[_item()]), supports_comments=True)
        source.fetch_comments.return_value = [
            RawComment(author=" alice ", content="<p>Great <b>news</b></p>", upvotes=10, downvotes=2,
                       timestamp="2025-03-04T10:00:00+00:00"),
            RawComment(author="", content="meh", downvotes=1),
        ]

        result = await parser.parse_source(source, "payload")

        source.fetch_comments.assert_awaited_once_with("https://fake.example/story", 2)
        comments = result.feed.articles[0].comments
        assert [c.author for c in comments] == ["alice", "Anonymous"]
        assert comments[0].body.to_plain_text() == "Great news"
        assert comments[0].score == 8
        assert comments[0].timestamp == datetime(2025, 3, 4, 10, tzinfo=timezone.utc)
        assert comments[1].score == -1
        assert comments[1].timestamp is None

    @pytest.mark.asyncio
    async def test_failure_yields_empty_list(self, parser):
        source = FakeSource("Ars", RawFeed(items=[_item()]), supports_comments=True)
        source.fetch_comments.side_effect = RuntimeError("forum down")

        result = await parser.parse_source(source, "payload")

        assert result.feed.articles[0].comments == []
        assert any("forum down" in issue for issue in result.issues)

    @pytest.mark.asyncio
    async def test_timeout_isolated_to_one_article(self):
        parser = DocumentParser(comment_timeout=0.05)
        raw_feed = RawFeed(items=[
            _item(title="Slow", link="https://fake.example/slow"),
            _item(title="Fast", link="https://fake.example/fast"),
        ])
        source = FakeSource("Ars", raw_feed, supports_comments=True)

        async def fetch(url, limit):
            if url.endswith("slow"):
                await asyncio.sleep(5)
            return [RawComment(author="bob", content="quick", upvotes=1)]

        source.fetch_comments = fetch

        result = await parser.parse_source(source, "payload")

        slow, fast = result.feed.articles
        assert slow.comments == []
        assert [c.author for c in fast.comments] == ["bob"]
        assert any("timed out" in issue for issue in result.issues)

    @pytest.mark.asyncio
    async def test_supported_without_link_is_empty(self, parser):
        source = FakeSource("Ars", RawFeed(items=[_item(link=None)]), supports_comments=True)

        result = await parser.parse_source(source, "payload")

        assert result.feed.articles[0].comments == []
        source.fetch_comments.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_source_never_fetches(self, parser):
        source = FakeSource("Plain", RawFeed(items=[_item()]))

        result = await parser.parse_source(source, "payload")

        assert result.feed.articles[0].comments is None
        source.fetch_comments.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_embedded_comments_attached(self, parser):
        item = _item(body="", comments=[RawComment(author="pg", content="<p>Nice</p>")])
        source = FakeSource("HN", RawFeed(items=[item]))

        result = await parser.parse_source(source, "payload")

        comments = result.feed.articles[0].comments
        assert len(comments) == 1
        assert comments[0].author == "pg"
        assert comments[0].score == 0
        source.fetch_comments.assert_not_awaited()


class TestBuildDocument:
    def test_document_total_and_order(self, parser):
        feeds = [
            Feed(name="B", total_reading_time_minutes=2),
            Feed(name="A"),
            Feed(name="C", total_reading_time_minutes=5),
        ]

        document = parser.build_document(feeds, title="Digest", author="Me", description="d")

        assert [f.name for f in document.feeds] == ["B", "A", "C"]
        assert document.total_reading_time_minutes == 7
        assert document.description == "d"
        assert document.front_page is None

    def test_no_totals(self, parser):
        document = parser.build_document([Feed(name="A")], title="Digest", author="Me")
        assert document.total_reading_time_minutes is None

    def test_words_per_minute_clamped(self):
        assert DocumentParser(words_per_minute=5).words_per_minute == 200
        assert DocumentParser(words_per_minute=300).words_per_minute == 300
