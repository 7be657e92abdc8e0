"""
HTML normalization into the content block model

Arbitrary (possibly malformed) markup from feeds and comment threads is parsed
with BeautifulSoup and mapped onto the closed set of ContentBlock variants.
Recognized block tags become blocks, inline formatting becomes styled spans,
and everything else is either flattened to text or dropped. Normalization
never raises on user input: problems are reported as issues on the result.
"""
import html
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag
from pydantic import BaseModel, Field

from daily_feed.utils.constants import NormalizerConstants
from daily_feed.utils.logger import logger
from daily_feed.utils.models import (
    BlockQuote,
    CodeBlock,
    ContentBlock,
    Heading,
    Image,
    InlineCode,
    Link,
    ListItem,
    Paragraph,
    RawHtml,
    SpanStyle,
    TextContent,
    TextSpan,
)
from daily_feed.utils.security import URLValidator


# Markup nodes that never carry readable text
_SKIPPED_STRINGS = (Comment, CData, Declaration, Doctype, ProcessingInstruction)

# Nested formatting resolves to the strongest style
_STYLE_PRECEDENCE = {
    SpanStyle.PLAIN: 0,
    SpanStyle.ITALIC: 1,
    SpanStyle.BOLD: 2,
    SpanStyle.CODE: 3,
    SpanStyle.LINK: 4,
}

_TEXT_BLOCK_TAGS = frozenset({"p", "blockquote", "pre", "li"})

# Tags that break words apart when flattened into inline text
_WORD_BREAK_TAGS = (
    NormalizerConstants.CONTAINER_TAGS | NormalizerConstants.LIST_TAGS | _TEXT_BLOCK_TAGS
)


class NormalizedContent(BaseModel):
    """Blocks produced from one piece of markup plus any recoverable problems"""
    blocks: List[ContentBlock] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)


def decode_entities(text: str) -> str:
    """Decode named, decimal and hex character references"""
    return html.unescape(text)


def replace_surrogates(text: str) -> str:
    """Swap lone surrogate code points, which cannot be encoded, for U+FFFD"""
    return NormalizerConstants.SURROGATE_PATTERN.sub(NormalizerConstants.REPLACEMENT_CHARACTER, text)


def collapse_whitespace(text: str) -> str:
    return NormalizerConstants.WHITESPACE_PATTERN.sub(" ", text)


def normalize_text(text: Optional[str]) -> str:
    """Entity-decode, collapse whitespace and trim a plain string"""
    if not text:
        return ""
    return collapse_whitespace(decode_entities(replace_surrogates(text))).strip()


def strip_html_tags(markup: str) -> str:
    """Reduce markup to its plain text with regexes alone"""
    without_tags = NormalizerConstants.HTML_TAG_PATTERN.sub(" ", markup)
    return normalize_text(without_tags)


def normalize_spans(spans: Iterable[TextSpan]) -> List[TextSpan]:
    """
    Collapse whitespace across span boundaries, merge adjacent spans with the
    same formatting and trim the edges. Applying it twice changes nothing.
    """
    merged: List[TextSpan] = []
    for span in spans:
        text = collapse_whitespace(span.text)
        if merged and merged[-1].text.endswith(" ") and text.startswith(" "):
            text = text[1:]
        if not text:
            continue
        previous = merged[-1] if merged else None
        if previous is not None and previous.style == span.style and previous.href == span.href:
            merged[-1] = previous.model_copy(update={"text": previous.text + text})
        else:
            merged.append(TextSpan(text=text, style=span.style, href=span.href))

    while merged:
        head = merged[0].text.lstrip()
        if head:
            merged[0] = merged[0].model_copy(update={"text": head})
            break
        merged.pop(0)

    while merged:
        tail = merged[-1].text.rstrip()
        if tail:
            merged[-1] = merged[-1].model_copy(update={"text": tail})
            break
        merged.pop()

    return merged


def heading_level(tag_name: str) -> Optional[int]:
    """Level from a heading tag's numeric suffix, or None when it has none"""
    match = NormalizerConstants.HEADING_PATTERN.match(tag_name)
    if not match or tag_name in NormalizerConstants.NON_HEADING_TAGS:
        return None
    suffix = match.group(1)
    if not suffix.isdecimal():
        return None
    level = int(suffix)
    if NormalizerConstants.MIN_HEADING_LEVEL <= level <= NormalizerConstants.MAX_HEADING_LEVEL:
        return level
    return None


def _is_heading_shaped(tag_name: str) -> bool:
    return (
        NormalizerConstants.HEADING_PATTERN.match(tag_name) is not None
        and tag_name not in NormalizerConstants.NON_HEADING_TAGS
    )


def _make_span(text: str, style: SpanStyle, href: Optional[str]) -> TextSpan:
    return TextSpan(text=text, style=style, href=href if style == SpanStyle.LINK else None)


def _code_language(tag: Tag) -> Optional[str]:
    candidates = [tag]
    inner = tag.find("code")
    if isinstance(inner, Tag):
        candidates.append(inner)
    for candidate in candidates:
        for css_class in candidate.get("class") or []:
            for prefix in NormalizerConstants.CODE_LANGUAGE_PREFIXES:
                if css_class.startswith(prefix) and len(css_class) > len(prefix):
                    return css_class[len(prefix):]
    return None


class _InlineRun:
    """Spans collected for one block, plus blocks hoisted out of the inline flow"""

    def __init__(self):
        self.spans: List[TextSpan] = []
        self.hoisted: List[ContentBlock] = []
        self.nodes: list = []


class HTMLNormalizer:
    """Converts raw markup into ContentBlocks and TextContent"""

    def __init__(self, passthrough_tags: Iterable[str] = ()):
        self.passthrough_tags = frozenset(tag.lower() for tag in passthrough_tags)

    def normalize(self, markup: Optional[str], raw_passthrough: bool = False) -> NormalizedContent:
        """Normalize markup into an ordered block sequence"""
        if not markup or not markup.strip():
            return NormalizedContent()

        markup = replace_surrogates(markup)
        if raw_passthrough:
            return NormalizedContent(blocks=[RawHtml(html=markup.strip())])

        issues: List[str] = []
        try:
            soup = BeautifulSoup(markup, "html.parser")
            blocks = self._convert_children(soup, issues, depth=0)
        except Exception as e:
            logger.warning(f"Markup could not be parsed, keeping plain text: {e}")
            issues.append(f"markup could not be parsed ({e}); kept as plain text")
            try:
                text = strip_html_tags(markup)
                blocks = [Paragraph(content=TextContent.plain(text))] if text else []
            except Exception as fallback_error:
                logger.warning(f"Plain text fallback failed, dropping markup: {fallback_error}")
                issues.append(f"markup dropped, plain text fallback failed ({fallback_error})")
                blocks = []

        return NormalizedContent(blocks=blocks, issues=issues)

    def to_text_content(self, markup: Optional[str]) -> TextContent:
        """Flatten markup into a single run of styled text"""
        if not markup or not markup.strip():
            return TextContent()

        markup = replace_surrogates(markup)
        try:
            soup = BeautifulSoup(markup, "html.parser")
            run = _InlineRun()
            for node in soup.children:
                self._collect_inline(node, SpanStyle.PLAIN, None, run, [], depth=1)
            return TextContent(spans=normalize_spans(run.spans))
        except Exception as e:
            logger.warning(f"Markup could not be flattened, keeping plain text: {e}")

        try:
            return TextContent.plain(strip_html_tags(markup))
        except Exception as e:
            logger.warning(f"Plain text fallback failed, dropping markup: {e}")
            return TextContent()

    # Block level

    def _is_block_tag(self, name: str) -> bool:
        return (
            name in _TEXT_BLOCK_TAGS
            or name in NormalizerConstants.LIST_TAGS
            or name in NormalizerConstants.CONTAINER_TAGS
            or name in NormalizerConstants.VOID_TAGS
            or name in self.passthrough_tags
            or _is_heading_shaped(name)
        )

    def _convert_children(self, parent: Tag, issues: List[str], depth: int) -> List[ContentBlock]:
        blocks: List[ContentBlock] = []
        run = _InlineRun()

        for node in parent.children:
            if isinstance(node, Tag) and self._is_block_tag(node.name):
                self._flush(run, blocks)
                run = _InlineRun()
                blocks.extend(self._convert_element(node, issues, depth + 1))
            else:
                if self._is_significant(node):
                    run.nodes.append(node)
                self._collect_inline(node, SpanStyle.PLAIN, None, run, issues, depth + 1)

        self._flush(run, blocks)
        return blocks

    def _is_significant(self, node) -> bool:
        if isinstance(node, _SKIPPED_STRINGS):
            return False
        if isinstance(node, NavigableString):
            return bool(node.strip())
        if isinstance(node, Tag):
            return (
                node.name not in NormalizerConstants.DROP_TAGS
                and node.name not in NormalizerConstants.VOID_TAGS
                and node.name != "br"
            )
        return False

    def _flush(self, run: _InlineRun, blocks: List[ContentBlock]) -> None:
        """Turn a finished inline run into a paragraph, or a standalone link/code block"""
        if len(run.nodes) == 1 and isinstance(run.nodes[0], Tag):
            standalone = self._standalone_block(run.nodes[0])
            if standalone is not None:
                blocks.append(standalone)
                blocks.extend(run.hoisted)
                return

        spans = normalize_spans(run.spans)
        if spans:
            blocks.append(Paragraph(content=TextContent(spans=spans)))
        blocks.extend(run.hoisted)

    def _standalone_block(self, tag: Tag) -> Optional[ContentBlock]:
        href = URLValidator.sanitize_url(tag.get("href")) if tag.name == "a" else None
        if href:
            label = _InlineRun()
            for child in tag.children:
                self._collect_inline(child, SpanStyle.PLAIN, None, label, [], depth=1)
            spans = normalize_spans(label.spans)
            if spans:
                return Link(label=TextContent(spans=spans), href=href)
        elif tag.name in NormalizerConstants.CODE_TAGS:
            code = tag.get_text().strip()
            if code:
                return InlineCode(code=code)
        return None

    def _convert_element(self, tag: Tag, issues: List[str], depth: int) -> List[ContentBlock]:
        name = tag.name
        if depth > NormalizerConstants.MAX_DEPTH:
            self._report(issues, f"<{name}> nested deeper than {NormalizerConstants.MAX_DEPTH} levels dropped")
            return []

        try:
            if name in self.passthrough_tags:
                return [RawHtml(html=str(tag))]
            if name in NormalizerConstants.VOID_TAGS:
                return []
            if name == "p":
                return self._text_blocks(tag, issues, depth, lambda content: Paragraph(content=content))
            if _is_heading_shaped(name):
                level = heading_level(name)
                if level is None:
                    self._report(issues, f"malformed heading tag <{name}> treated as paragraph")
                    return self._text_blocks(tag, issues, depth, lambda content: Paragraph(content=content))
                return self._text_blocks(
                    tag, issues, depth, lambda content: Heading(level=level, content=content)
                )
            if name in NormalizerConstants.LIST_TAGS:
                return self._list_items(tag, name == "ol", issues, depth)
            if name == "li":
                return self._list_item(tag, False, issues, depth)
            if name == "blockquote":
                children = self._convert_children(tag, issues, depth)
                return [BlockQuote(blocks=children)] if children else []
            if name == "pre":
                return self._code_block(tag)
            return self._convert_children(tag, issues, depth)
        except Exception as e:
            self._report(issues, f"<{name}> element skipped: {e}")
            return []

    def _text_blocks(self, tag: Tag, issues: List[str], depth: int, make) -> List[ContentBlock]:
        run = _InlineRun()
        for child in tag.children:
            self._collect_inline(child, SpanStyle.PLAIN, None, run, issues, depth + 1)
        spans = normalize_spans(run.spans)
        blocks: List[ContentBlock] = [make(TextContent(spans=spans))] if spans else []
        blocks.extend(run.hoisted)
        return blocks

    def _list_items(self, tag: Tag, ordered: bool, issues: List[str], depth: int) -> List[ContentBlock]:
        if depth > NormalizerConstants.MAX_DEPTH:
            self._report(issues, f"<{tag.name}> nested deeper than {NormalizerConstants.MAX_DEPTH} levels dropped")
            return []

        items: List[ContentBlock] = []
        for child in tag.children:
            if isinstance(child, Tag):
                if child.name in NormalizerConstants.LIST_TAGS:
                    items.extend(self._list_items(child, child.name == "ol", issues, depth + 1))
                elif child.name not in NormalizerConstants.DROP_TAGS:
                    items.extend(self._list_item(child, ordered, issues, depth + 1))
            elif isinstance(child, NavigableString) and not isinstance(child, _SKIPPED_STRINGS):
                text = normalize_text(str(child)) if child.strip() else ""
                if text:
                    items.append(ListItem(content=TextContent.plain(text), ordered=ordered))
        return items

    def _list_item(self, tag: Tag, ordered: bool, issues: List[str], depth: int) -> List[ContentBlock]:
        run = _InlineRun()
        nested: List[ContentBlock] = []
        for child in tag.children:
            if isinstance(child, Tag) and child.name in NormalizerConstants.LIST_TAGS:
                nested.extend(self._list_items(child, child.name == "ol", issues, depth + 1))
            else:
                self._collect_inline(child, SpanStyle.PLAIN, None, run, issues, depth + 1)

        spans = normalize_spans(run.spans)
        blocks: List[ContentBlock] = [ListItem(content=TextContent(spans=spans), ordered=ordered)] if spans else []
        blocks.extend(run.hoisted)
        blocks.extend(nested)
        return blocks

    def _code_block(self, tag: Tag) -> List[ContentBlock]:
        code = tag.get_text().strip("\r\n").rstrip()
        if not code.strip():
            return []
        return [CodeBlock(code=code, language=_code_language(tag))]

    # Inline level

    def _collect_inline(
        self,
        node,
        style: SpanStyle,
        href: Optional[str],
        run: _InlineRun,
        issues: List[str],
        depth: int,
    ) -> None:
        if isinstance(node, _SKIPPED_STRINGS):
            return
        if isinstance(node, NavigableString):
            text = str(node)
            if text:
                run.spans.append(_make_span(text, style, href))
            return
        if not isinstance(node, Tag):
            return

        name = node.name
        if depth > NormalizerConstants.MAX_DEPTH:
            self._report(issues, f"<{name}> nested deeper than {NormalizerConstants.MAX_DEPTH} levels dropped")
            return
        if name in self.passthrough_tags:
            run.hoisted.append(RawHtml(html=str(node)))
            return
        if name in NormalizerConstants.DROP_TAGS or name in NormalizerConstants.VOID_TAGS:
            return
        if name == "br":
            run.spans.append(_make_span(" ", style, href))
            return
        if name == "img":
            raw_src = (node.get("src") or "").strip()
            src = URLValidator.sanitize_url(raw_src)
            if src:
                run.hoisted.append(Image(src=src, alt=normalize_text(node.get("alt"))))
            elif raw_src:
                self._report(issues, f"image with unsafe source {raw_src[:40]!r} dropped")
            return

        child_style, child_href = style, href
        candidate = None
        link_href = None
        if name == "a":
            raw_href = (node.get("href") or "").strip()
            link_href = URLValidator.sanitize_url(raw_href)
            if raw_href and not link_href:
                self._report(issues, f"link with unsafe target {raw_href[:40]!r} kept as text")

        if link_href:
            candidate = SpanStyle.LINK
        elif name in NormalizerConstants.CODE_TAGS:
            candidate = SpanStyle.CODE
        elif name in NormalizerConstants.BOLD_TAGS:
            candidate = SpanStyle.BOLD
        elif name in NormalizerConstants.ITALIC_TAGS:
            candidate = SpanStyle.ITALIC

        if candidate is not None and _STYLE_PRECEDENCE[candidate] > _STYLE_PRECEDENCE[style]:
            child_style = candidate
            if candidate == SpanStyle.LINK:
                child_href = link_href

        breaks_words = name in _WORD_BREAK_TAGS or _is_heading_shaped(name)
        if breaks_words:
            run.spans.append(_make_span(" ", style, href))
        for child in node.children:
            self._collect_inline(child, child_style, child_href, run, issues, depth + 1)
        if breaks_words:
            run.spans.append(_make_span(" ", style, href))

    @staticmethod
    def _report(issues: List[str], message: str) -> None:
        logger.debug(message)
        issues.append(message)
