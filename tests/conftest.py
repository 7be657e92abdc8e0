"""
Shared fixtures for Daily Feed tests
"""
from datetime import datetime, timedelta, timezone

import pytest

from daily_feed.utils.models import (
    Article,
    BlockQuote,
    CodeBlock,
    Comment,
    Document,
    Feed,
    Heading,
    Image,
    InlineCode,
    LESS_THAN_A_MINUTE,
    Link,
    ListItem,
    Paragraph,
    RawHtml,
    TextContent,
    TextSpan,
)


@pytest.fixture
def rich_blocks():
    """One block of every variant"""
    return [
        Heading(level=2, content=TextContent.plain("Overview")),
        Paragraph(content=TextContent(spans=[
            TextSpan.plain("Rust is "),
            TextSpan.bold("fast"),
            TextSpan.plain(" and "),
            TextSpan.italic("safe"),
            TextSpan.plain(", see "),
            TextSpan.link("the docs", "https://doc.rust-lang.org"),
            TextSpan.plain(" or run "),
            TextSpan.code("cargo build"),
        ])),
        ListItem(content=TextContent.plain("first point"), ordered=True),
        ListItem(content=TextContent.plain("second point"), ordered=True),
        BlockQuote(blocks=[
            Paragraph(content=TextContent.plain("quoted words")),
            BlockQuote(blocks=[Paragraph(content=TextContent.plain("nested quote"))]),
        ]),
        InlineCode(code="x = 1"),
        CodeBlock(code="fn main() {\n    println!(\"hi\");\n}", language="rust"),
        Link(label=TextContent.plain("Read more"), href="https://example.com/more"),
        Image(src="https://example.com/a.png", alt="A chart"),
        RawHtml(html="<iframe src=\"https://example.com/embed\"></iframe>"),
    ]


@pytest.fixture
def sample_document(rich_blocks):
    """Document exercising every optional field, both set and unset"""
    eastern = timezone(timedelta(hours=-5))
    first = Article(
        title="Rust 2.0 announced",
        published_at=datetime(2025, 3, 4, 9, 15, 30, 123456, tzinfo=eastern),
        source="Ars Technica",
        link="https://arstechnica.com/rust",
        author="Jane Doe",
        blocks=rich_blocks,
        comments=[
            Comment(
                author="alice",
                body=TextContent(spans=[TextSpan.plain("Great "), TextSpan.bold("news")]),
                score=12,
                timestamp=datetime(2025, 3, 4, 10, 0, 0, 42, tzinfo=timezone.utc),
            ),
            Comment(author="bob", body=TextContent.plain("Meh"), score=-3),
        ],
        reading_time_minutes=1,
    )
    second = Article(
        title="Empty item",
        published_at=datetime(2025, 3, 4, 8, 0, tzinfo=timezone.utc),
        source="Ars Technica",
        comments=[],
        reading_time_minutes=LESS_THAN_A_MINUTE,
    )
    third = Article(
        title="Ask HN: favourite editor?",
        published_at=datetime(2025, 3, 3, 22, 45, tzinfo=timezone.utc),
        source="Hacker News",
        blocks=[Paragraph(content=TextContent.plain("vim " * 450))],
        reading_time_minutes=3,
    )

    return Document(
        title="Daily Feed Digest",
        author="RSS Aggregator",
        created_at=datetime(2025, 3, 4, 12, 0, 0, 999999, tzinfo=timezone.utc),
        description="Morning edition",
        feeds=[
            Feed(
                name="Ars Technica",
                description="Technology news and insights",
                url="https://arstechnica.com",
                articles=[first, second],
                total_reading_time_minutes=1,
            ),
            Feed(name="Hacker News", articles=[third], total_reading_time_minutes=3),
        ],
        front_page=[Paragraph(content=TextContent(spans=[TextSpan.bold("Today's World: "), TextSpan.plain("Rust")]))],
        total_reading_time_minutes=4,
    )
