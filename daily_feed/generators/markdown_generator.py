"""
Markdown output generator
"""
import re
from datetime import datetime
from typing import List, Sequence

from daily_feed.generators.base import BaseGenerator
from daily_feed.processors.reading_time import format_reading_time
from daily_feed.utils.models import (
    Article,
    BlockQuote,
    CodeBlock,
    Comment,
    ContentBlock,
    Document,
    Feed,
    Heading,
    Image,
    InlineCode,
    Link,
    ListItem,
    Paragraph,
    RawHtml,
    SpanStyle,
    TextContent,
)


_ANCHOR_STRIP = re.compile(r"[^\w\- ]")

# Document title is h1, feeds h2, articles h3; article headings sit below that
ARTICLE_HEADING_OFFSET = 3
FRONT_PAGE_HEADING_OFFSET = 1


def to_anchor(text: str) -> str:
    """GitHub-style heading anchor"""
    return _ANCHOR_STRIP.sub("", text.lower()).replace(" ", "-")


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


class MarkdownGenerator(BaseGenerator):
    """Generates a Markdown digest"""

    format_name = "markdown"

    def render(self, document: Document) -> str:
        parts = [f"# {document.title}\n\n"]
        if document.description:
            parts.append(f"{document.description}\n\n")

        parts.append(f"**Author:** {document.author}\n")
        parts.append(f"**Generated:** {format_timestamp(document.created_at)}\n")
        parts.append(f"**Total Articles:** {document.total_articles()}\n")
        if document.total_reading_time_minutes is not None:
            parts.append(f"**Total Reading Time:** {format_reading_time(document.total_reading_time_minutes)}\n")
        parts.append("\n")

        if document.front_page:
            parts.append("## Front Page\n\n")
            parts.append(self.render_blocks(document.front_page, FRONT_PAGE_HEADING_OFFSET))
            parts.append("---\n\n")

        parts.append("## Table of Contents\n\n")
        for feed in document.feeds:
            parts.append(f"- [{feed.name}](#{to_anchor(feed.name)})\n")
            for article in feed.articles:
                parts.append(f"  - [{article.title}](#{to_anchor(article.title)})\n")
        parts.append("\n---\n\n")

        for feed in document.feeds:
            parts.append(self.render_feed(feed))

        return "".join(parts)

    def render_feed(self, feed: Feed) -> str:
        parts = [f"## {feed.name}\n\n"]
        if feed.description:
            parts.append(f"{feed.description}\n\n")
        parts.append(f"**Total Articles:** {len(feed.articles)}\n")
        if feed.total_reading_time_minutes is not None:
            parts.append(f"**Total Reading Time:** {format_reading_time(feed.total_reading_time_minutes)}\n")
        parts.append("\n")

        for article in feed.articles:
            parts.append(self.render_article(article))
            parts.append("\n---\n\n")
        return "".join(parts)

    def render_article(self, article: Article) -> str:
        parts = [f"### {article.title}\n\n"]
        parts.append(f"**Published:** {format_timestamp(article.published_at)}\n")
        if article.author:
            parts.append(f"**Author:** {article.author}\n")
        parts.append(f"**Source:** {article.source}\n")
        if article.reading_time_minutes is not None:
            parts.append(f"**Reading Time:** {format_reading_time(article.reading_time_minutes)}\n")
        if article.link:
            parts.append(f"**Link:** [Read original article]({article.link})\n")
        parts.append("\n")

        parts.append(self.render_blocks(article.blocks, ARTICLE_HEADING_OFFSET))

        if article.comments:
            parts.append("\n#### Top Comments\n\n")
            for comment in article.comments:
                parts.append(self.render_comment(comment))
        return "".join(parts)

    def render_comment(self, comment: Comment) -> str:
        lines = [f"> **{comment.author}** (Score: {comment.score})"]
        if comment.timestamp:
            lines.append(f"> *{format_timestamp(comment.timestamp)}*")
        lines.append(">")
        body = self.render_text(comment.body)
        lines.extend(f"> {line}" if line.strip() else ">" for line in body.splitlines())
        return "\n".join(lines) + "\n\n"

    def render_blocks(self, blocks: Sequence[ContentBlock], heading_offset: int = 0) -> str:
        parts: List[str] = []
        number = 0
        for index, block in enumerate(blocks):
            if isinstance(block, ListItem):
                number = number + 1 if block.ordered else 0
                prefix = f"{number}. " if block.ordered else "- "
                parts.append(f"{prefix}{self.render_text(block.content)}\n")
                following = blocks[index + 1] if index + 1 < len(blocks) else None
                if not isinstance(following, ListItem):
                    parts.append("\n")
                    number = 0
                continue
            number = 0
            parts.append(self.render_block(block, heading_offset))
        return "".join(parts)

    def render_block(self, block: ContentBlock, heading_offset: int = 0) -> str:
        if isinstance(block, Paragraph):
            return f"{self.render_text(block.content)}\n\n"
        if isinstance(block, Heading):
            level = min(block.level + heading_offset, 6)
            return f"{'#' * level} {self.render_text(block.content)}\n\n"
        if isinstance(block, ListItem):
            return f"- {self.render_text(block.content)}\n\n"
        if isinstance(block, BlockQuote):
            inner = self.render_blocks(block.blocks, heading_offset).rstrip("\n")
            quoted = "\n".join(f"> {line}" if line.strip() else ">" for line in inner.splitlines())
            return f"{quoted}\n\n"
        if isinstance(block, InlineCode):
            return f"`{block.code}`\n\n"
        if isinstance(block, CodeBlock):
            return f"```{block.language or ''}\n{block.code}\n```\n\n"
        if isinstance(block, Link):
            return f"[{self.render_text(block.label) or block.href}]({block.href})\n\n"
        if isinstance(block, Image):
            return f"![{block.alt}]({block.src})\n\n"
        if isinstance(block, RawHtml):
            return f"```html\n{block.html}\n```\n\n"
        return ""

    @staticmethod
    def render_text(content: TextContent) -> str:
        rendered = []
        for span in content.spans:
            if span.style == SpanStyle.BOLD:
                rendered.append(f"**{span.text}**")
            elif span.style == SpanStyle.ITALIC:
                rendered.append(f"*{span.text}*")
            elif span.style == SpanStyle.CODE:
                rendered.append(f"`{span.text}`")
            elif span.style == SpanStyle.LINK:
                rendered.append(f"[{span.text}]({span.href})")
            else:
                rendered.append(span.text)
        return "".join(rendered)
