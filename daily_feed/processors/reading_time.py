"""
Word counting and reading-time estimates over the block model
"""
import math
from typing import Iterable, Optional, Union

from daily_feed.processors.html_normalizer import strip_html_tags
from daily_feed.utils.constants import ReadingConstants
from daily_feed.utils.logger import logger
from daily_feed.utils.models import (
    LESS_THAN_A_MINUTE,
    Article,
    BlockQuote,
    CodeBlock,
    ContentBlock,
    Feed,
    Heading,
    Image,
    InlineCode,
    Link,
    ListItem,
    Paragraph,
    RawHtml,
)


def resolve_words_per_minute(value: Optional[int]) -> int:
    """Clamp a configured reading speed; out-of-range values fall back to the default"""
    if value is None:
        return ReadingConstants.DEFAULT_WORDS_PER_MINUTE
    if not ReadingConstants.MIN_WORDS_PER_MINUTE <= value <= ReadingConstants.MAX_WORDS_PER_MINUTE:
        logger.warning(
            f"Reading speed {value} WPM outside "
            f"[{ReadingConstants.MIN_WORDS_PER_MINUTE}, {ReadingConstants.MAX_WORDS_PER_MINUTE}], "
            f"using {ReadingConstants.DEFAULT_WORDS_PER_MINUTE}"
        )
        return ReadingConstants.DEFAULT_WORDS_PER_MINUTE
    return value


def count_block_words(block: ContentBlock) -> int:
    """Words in one block. Link labels count; link targets and image alt text do not."""
    if isinstance(block, (Paragraph, Heading, ListItem)):
        return block.content.word_count()
    if isinstance(block, BlockQuote):
        return count_words(block.blocks)
    if isinstance(block, (InlineCode, CodeBlock)):
        # Approximate: code is split on whitespace like prose
        return len(block.code.split())
    if isinstance(block, Link):
        return block.label.word_count()
    if isinstance(block, RawHtml):
        return len(strip_html_tags(block.html).split())
    if isinstance(block, Image):
        return 0
    return 0


def count_words(blocks: Iterable[ContentBlock]) -> int:
    return sum(count_block_words(block) for block in blocks)


def estimate_reading_time(word_count: int, words_per_minute: Optional[int] = None) -> Union[int, str]:
    """Minutes to read, rounded up; zero words gives the below-one-minute sentinel"""
    if word_count <= 0:
        return LESS_THAN_A_MINUTE
    wpm = resolve_words_per_minute(words_per_minute)
    return math.ceil(word_count / wpm)


def reading_minutes(value: Union[int, str, None]) -> int:
    """Numeric contribution of a reading time to an aggregate"""
    if value is None or value == LESS_THAN_A_MINUTE:
        return 0
    return int(value)


def total_article_time(articles: Iterable[Article]) -> Optional[int]:
    """Sum of the articles whose reading time is set; None when none is"""
    values = [a.reading_time_minutes for a in articles if a.reading_time_minutes is not None]
    if not values:
        return None
    return sum(reading_minutes(value) for value in values)


def total_feed_time(feeds: Iterable[Feed]) -> Optional[int]:
    """Sum of the feeds whose total is set; None when none is"""
    values = [f.total_reading_time_minutes for f in feeds if f.total_reading_time_minutes is not None]
    if not values:
        return None
    return sum(values)


def format_reading_time(minutes: Union[int, str, None]) -> str:
    """
    Human-readable reading time

    Examples:
        59  -> "59 min"
        60  -> "1h 0min"
        125 -> "2h 5min"
    """
    total = reading_minutes(minutes)
    if total <= 0:
        return ReadingConstants.LESS_THAN_A_MINUTE_LABEL
    if total < 60:
        return f"{total} min"
    hours, remainder = divmod(total, 60)
    return f"{hours}h {remainder}min"
