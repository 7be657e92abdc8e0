"""
Document tree models and the raw records sources hand to the parser
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    PositiveInt,
    ValidationInfo,
    model_validator,
)
from pydantic_core import PydanticCustomError

from daily_feed.utils.constants import ReadingConstants


# Validation context key: set when loading an interchange file so that
# every field must be present instead of falling back to its default
REQUIRE_ALL_FIELDS = "require_all_fields"

LESS_THAN_A_MINUTE = ReadingConstants.LESS_THAN_A_MINUTE

ReadingTime = Union[PositiveInt, Literal["less_than_a_minute"]]


class SourceKind(str, Enum):
    RSS = "rss"
    ARS_TECHNICA = "ars_technica"
    HACKERNEWS = "hackernews"


class TreeModel(BaseModel):
    """Base for every node of the document tree"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _require_every_field(cls, data: Any, info: ValidationInfo) -> Any:
        if info.context and info.context.get(REQUIRE_ALL_FIELDS) and isinstance(data, dict):
            missing = [name for name in cls.model_fields if name not in data]
            if missing:
                raise PydanticCustomError(
                    "missing_field", "missing field(s): {fields}", {"fields": ", ".join(missing)}
                )
        return data


# Text model

class SpanStyle(str, Enum):
    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"
    CODE = "code"
    LINK = "link"


class TextSpan(TreeModel):
    """A run of text with a single formatting tag"""
    text: str = Field(min_length=1)
    style: SpanStyle = SpanStyle.PLAIN
    href: Optional[str] = None

    @model_validator(mode="after")
    def _href_only_on_links(self) -> "TextSpan":
        if (self.style == SpanStyle.LINK) != (self.href is not None):
            raise ValueError("href must be set exactly when style is 'link'")
        return self

    @classmethod
    def plain(cls, text: str) -> "TextSpan":
        return cls(text=text)

    @classmethod
    def bold(cls, text: str) -> "TextSpan":
        return cls(text=text, style=SpanStyle.BOLD)

    @classmethod
    def italic(cls, text: str) -> "TextSpan":
        return cls(text=text, style=SpanStyle.ITALIC)

    @classmethod
    def code(cls, text: str) -> "TextSpan":
        return cls(text=text, style=SpanStyle.CODE)

    @classmethod
    def link(cls, text: str, href: str) -> "TextSpan":
        return cls(text=text, style=SpanStyle.LINK, href=href)


class TextContent(TreeModel):
    """Ordered spans forming one logical run of text"""
    spans: List[TextSpan] = Field(default_factory=list)

    @classmethod
    def plain(cls, text: str) -> "TextContent":
        return cls(spans=[TextSpan.plain(text)] if text else [])

    def to_plain_text(self) -> str:
        return "".join(span.text for span in self.spans)

    def is_empty(self) -> bool:
        return all(not span.text.strip() for span in self.spans)

    def word_count(self) -> int:
        return len(self.to_plain_text().split())


# Content block model

class Paragraph(TreeModel):
    type: Literal["paragraph"] = "paragraph"
    content: TextContent


class Heading(TreeModel):
    type: Literal["heading"] = "heading"
    level: int = Field(ge=1, le=6)
    content: TextContent


class ListItem(TreeModel):
    type: Literal["list_item"] = "list_item"
    content: TextContent
    ordered: bool = False


class BlockQuote(TreeModel):
    type: Literal["block_quote"] = "block_quote"
    blocks: List["ContentBlock"] = Field(default_factory=list)


class InlineCode(TreeModel):
    type: Literal["inline_code"] = "inline_code"
    code: str


class CodeBlock(TreeModel):
    type: Literal["code_block"] = "code_block"
    code: str
    language: Optional[str] = None


class Link(TreeModel):
    type: Literal["link"] = "link"
    label: TextContent
    href: str


class Image(TreeModel):
    type: Literal["image"] = "image"
    src: str
    alt: str = ""


class RawHtml(TreeModel):
    """Opaque markup, only emitted when passthrough was requested"""
    type: Literal["raw_html"] = "raw_html"
    html: str


ContentBlock = Annotated[
    Union[Paragraph, Heading, ListItem, BlockQuote, InlineCode, CodeBlock, Link, Image, RawHtml],
    Field(discriminator="type"),
]

BlockQuote.model_rebuild()


# Document tree

class Comment(TreeModel):
    author: str
    body: TextContent
    score: int = 0
    timestamp: Optional[datetime] = None


class Article(TreeModel):
    title: str
    published_at: datetime
    source: str
    link: Optional[str] = None
    author: Optional[str] = None
    blocks: List[ContentBlock] = Field(default_factory=list)
    # None: the source has no comments; []: supported but nothing was fetched
    comments: Optional[List[Comment]] = None
    reading_time_minutes: Optional[ReadingTime] = None


class Feed(TreeModel):
    name: str
    description: Optional[str] = None
    url: Optional[str] = None
    articles: List[Article] = Field(default_factory=list)
    total_reading_time_minutes: Optional[NonNegativeInt] = None


class Headline(BaseModel):
    title: str
    published_at: datetime
    source_name: str
    link: Optional[str] = None


class Document(TreeModel):
    """Root of the tree; owns every feed, article and block by value"""
    title: str
    author: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    description: Optional[str] = None
    feeds: List[Feed] = Field(default_factory=list)
    front_page: Optional[List[ContentBlock]] = None
    total_reading_time_minutes: Optional[NonNegativeInt] = None

    def total_articles(self) -> int:
        return sum(len(feed.articles) for feed in self.feeds)

    def extract_headlines(self) -> List[Headline]:
        """Flatten every article into a headline record, in tree order"""
        return [
            Headline(
                title=article.title,
                published_at=article.published_at,
                source_name=article.source,
                link=article.link,
            )
            for feed in self.feeds
            for article in feed.articles
        ]

    def with_front_page(self, blocks: List[ContentBlock]) -> "Document":
        """Return a copy with the front page attached; parsed content is shared untouched"""
        return self.model_copy(update={"front_page": list(blocks)})


# Raw records produced by sources before normalization

class RawComment(BaseModel):
    author: str
    content: str
    upvotes: int = 0
    downvotes: int = 0
    timestamp: Optional[str] = None

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


class RawItem(BaseModel):
    title: Optional[str] = None
    link: Optional[str] = None
    author: Optional[str] = None
    published: Optional[str] = None
    body_html: str = ""
    # Comments shipped inside the payload itself (Hacker News)
    comments: Optional[List[RawComment]] = None


class RawFeed(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    items: List[RawItem] = Field(default_factory=list)
    # Entries dropped while reading the payload
    issues: List[str] = Field(default_factory=list)
