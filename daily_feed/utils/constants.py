"""
Constants and configuration values for Daily Feed
"""
import re


# Reading Time Constants
class ReadingConstants:
    DEFAULT_WORDS_PER_MINUTE = 200
    MIN_WORDS_PER_MINUTE = 50
    MAX_WORDS_PER_MINUTE = 500

    # Sentinel stored instead of 0 for articles with no countable words
    LESS_THAN_A_MINUTE = "less_than_a_minute"
    LESS_THAN_A_MINUTE_LABEL = "< 1 min"


# HTTP Request Constants
class HTTPConstants:
    DEFAULT_TIMEOUT = 30
    CONNECT_TIMEOUT = 10
    AI_TIMEOUT = 120
    MAX_RETRIES = 3
    RETRY_BACKOFF_FACTOR = 1.0
    RETRY_STATUS_CODES = [429, 500, 502, 503, 504]

    USER_AGENT = "daily-feed/0.1.0"


# Comment Fetching Constants
class CommentConstants:
    DEFAULT_LIMIT = 5
    DEFAULT_TIMEOUT = 20

    # XenForo forum markup used by the Ars Technica comment threads
    IFRAME_URL_SELECTOR = "[data-url]"
    MESSAGE_SELECTOR = ".message"
    AUTHOR_SELECTOR = ".username"
    CONTENT_SELECTOR = ".message-content .bbWrapper"
    TIMESTAMP_SELECTOR = ".message-meta time, .message-attribution time, .message-date time"
    UPVOTE_SELECTOR = ".contentVote-score--positive"
    DOWNVOTE_SELECTOR = ".contentVote-score--negative"
    COMBINED_VOTES_SELECTOR = ".contentVote-scores"
    COMBINED_VOTES_PATTERN = re.compile(r"\(\s*(\d+)\s*[/\s]*(\d+)\s*\)")
    EXPAND_QUOTE_TEXT = "Click to expand..."
    ANONYMOUS_AUTHOR = "Anonymous"


# Source Constants
class SourceConstants:
    ARS_TECHNICA_FEED_URL = "https://arstechnica.com/feed/"
    ARS_TECHNICA_DESCRIPTION = "Technology news and insights"
    HACKERNEWS_FEED_URL = "https://hnrss.org/bestcomments.jsonfeed"
    HACKERNEWS_DESCRIPTION = "Hacker News best comments and parent articles"
    UNTITLED = "Untitled"


# HTML Normalization Constants
class NormalizerConstants:
    # Maximum element nesting depth; anything deeper is dropped
    MAX_DEPTH = 64

    # Elements whose whole subtree is discarded
    DROP_TAGS = frozenset({
        "script", "style", "noscript", "iframe", "object", "embed", "template",
        "svg", "math", "canvas", "form", "input", "button", "select", "textarea",
        "head", "title", "meta", "link", "video", "audio", "source", "track", "map",
    })

    # Elements that produce no text at all
    VOID_TAGS = frozenset({"hr", "wbr", "col", "area", "param"})

    # Elements descended into when building blocks
    CONTAINER_TAGS = frozenset({
        "html", "body", "div", "section", "article", "main", "header", "footer",
        "aside", "nav", "figure", "figcaption", "details", "summary", "center",
        "table", "thead", "tbody", "tfoot", "tr", "td", "th", "dl", "dd", "dt",
        "address", "hgroup", "fieldset", "picture",
    })

    LIST_TAGS = frozenset({"ul", "ol"})

    # Inline formatting tags mapped to span styles
    BOLD_TAGS = frozenset({"strong", "b"})
    ITALIC_TAGS = frozenset({"em", "i", "cite", "dfn"})
    CODE_TAGS = frozenset({"code", "kbd", "samp", "tt"})

    # Tags shaped like a heading: "h" plus exactly one more character
    HEADING_PATTERN = re.compile(r"^h(\w)$")
    NON_HEADING_TAGS = frozenset({"hr"})
    MIN_HEADING_LEVEL = 1
    MAX_HEADING_LEVEL = 6

    CODE_LANGUAGE_PREFIXES = ("language-", "lang-")

    # Regex patterns
    HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
    WHITESPACE_PATTERN = re.compile(r"\s+")
    # Lone UTF-16 halves left behind by JSON escapes such as "\ud83d"
    SURROGATE_PATTERN = re.compile(r"[\ud800-\udfff]")
    REPLACEMENT_CHARACTER = "\ufffd"


# Security Constants
class SecurityConstants:
    # Link and image targets allowed through; relative URLs carry no scheme
    SAFE_URL_SCHEMES = frozenset({"http", "https", "mailto"})

    # Browsers ignore these inside a scheme, so "java\tscript:" still runs
    URL_IGNORED_CHARS_PATTERN = re.compile(r"[\x00-\x20\x7f]")


# Timestamp Constants
class TimestampConstants:
    # RFC 822 zone names dateutil does not resolve on its own, in seconds east of UTC
    RFC822_ZONES = {
        "UT": 0,
        "EST": -5 * 3600,
        "EDT": -4 * 3600,
        "CST": -6 * 3600,
        "CDT": -5 * 3600,
        "MST": -7 * 3600,
        "MDT": -6 * 3600,
        "PST": -8 * 3600,
        "PDT": -7 * 3600,
    }


__all__ = [
    'ReadingConstants',
    'HTTPConstants',
    'CommentConstants',
    'SourceConstants',
    'NormalizerConstants',
    'SecurityConstants',
    'TimestampConstants',
]
