"""
AI front page: a per-source overview of the day placed ahead of the feeds
"""
import asyncio
import json
import re
from typing import List, Optional

from open_agent import TextBlock  # type: ignore
from open_agent.types import AgentOptions  # type: ignore
from open_agent import client as oa_client  # type: ignore
from pydantic import BaseModel, Field, ValidationError

from daily_feed.processors.html_normalizer import normalize_text
from daily_feed.utils.logger import logger
from daily_feed.utils.models import (
    ContentBlock,
    Document,
    Heading,
    ListItem,
    Paragraph,
    TextContent,
    TextSpan,
)


DEFAULT_THEME = "Multiple developing stories shape today's landscape"
THEME_LABEL = "Today's World"
KEY_STORIES_LABEL = "Key Stories"
LOOKING_AHEAD_LABEL = "Looking Ahead"

_FENCED_JSON = re.compile(r"```json\s*(.*?)```", re.DOTALL)
_FENCED_ANY = re.compile(r"```\s*(.*?)```", re.DOTALL)
_BULLET = re.compile(r"^[•\-*]\s+")


class FrontPageError(Exception):
    """Raised when the model's answer cannot be turned into a front page"""
    pass


class SourceSummary(BaseModel):
    name: str
    summary: str = ""
    key_stories: List[str] = Field(default_factory=list)


class StructuredFrontPage(BaseModel):
    theme: str
    sources: List[SourceSummary] = Field(default_factory=list)
    context: Optional[str] = None


class FrontPageGenerator:
    """Asks the LLM for a structured front page and converts it to blocks"""

    def __init__(self, config):
        self.config = config
        self.llm_config = config.front_page

    async def generate(self, document: Document) -> Document:
        """
        Return a copy of the document with the front page attached

        Any failure leaves the document as it was; the front page is optional.
        """
        if document.total_articles() == 0:
            logger.info("No articles, skipping front page")
            return document

        try:
            prompt = self.build_prompt(self.prepare_content_by_source(document))
            response = await self._query(prompt)
            structured = self.parse_structured_response(response)
        except Exception as e:
            logger.error(f"Front page generation failed: {e}")
            return document

        blocks = self.convert_to_blocks(structured)
        logger.info(f"Front page generated with {len(structured.sources)} source summaries")
        return document.with_front_page(blocks)

    def prepare_content_by_source(self, document: Document) -> str:
        """Headlines grouped by feed, in the order the document holds them"""
        lines = []
        for feed in document.feeds:
            lines.append(f"# Source: {feed.name}")
            if feed.description:
                lines.append(f"**Description:** {feed.description}")
            if feed.url:
                lines.append(f"**URL:** {feed.url}")
            lines.append("")
            lines.append("**Articles:**")
            for article in feed.articles:
                lines.append(f"- {article.title} ({article.published_at.strftime('%Y-%m-%d')})")
            lines.append("")
        return "\n".join(lines)

    def build_prompt(self, content: str) -> str:
        return f"""You are a senior news editor creating a structured "Front Page" summary organized by news sources.

Analyze the provided content and return a JSON response with this exact structure:

{{
  "theme": "One sentence capturing the day's most significant theme or development across all sources",
  "sources": [
    {{
      "name": "Source name",
      "summary": "2-3 sentences summarizing the main themes and developments from this source",
      "key_stories": ["Key story title 1", "Key story title 2", "Key story title 3"]
    }}
  ],
  "context": "Optional sentence connecting stories across sources to broader trends"
}}

Guidelines:
- For each source, provide a thematic summary of their coverage
- Include 2-4 most important story titles from each source
- Maintain neutral tone
- The overall theme should reflect patterns across all sources

Daily feed content organized by source:
{content}

Return only valid JSON with the structure above."""

    async def _query(self, prompt: str) -> str:
        system_prompt = (
            "You are a precise news editor. "
            "Always return valid JSON exactly matching the requested schema and nothing else."
        )
        options = AgentOptions(
            system_prompt=system_prompt,
            model=self.llm_config.model,
            base_url=self.llm_config.api_url,
            temperature=self.llm_config.temperature,
            max_tokens=self.llm_config.max_tokens,
            api_key=self.llm_config.api_key,
            timeout=self.llm_config.timeout,
        )

        text_parts: List[str] = []
        try:
            async with asyncio.timeout(self.llm_config.timeout):
                async for msg in oa_client.query(prompt, options):
                    for block in msg.content:
                        if isinstance(block, TextBlock):
                            text_parts.append(block.text)
        except asyncio.TimeoutError as e:
            raise FrontPageError(f"LLM timed out after {self.llm_config.timeout}s") from e

        return "".join(text_parts).strip()

    @staticmethod
    def extract_json_from_response(response: str) -> str:
        """Pull the JSON object out of a reply that may wrap it in fences or prose"""
        match = _FENCED_JSON.search(response)
        if match:
            return match.group(1).strip()

        match = _FENCED_ANY.search(response)
        if match:
            fenced = match.group(1).strip()
            if fenced.startswith("{") and fenced.endswith("}"):
                return fenced

        start = response.find("{")
        if start != -1:
            depth = 0
            for index in range(start, len(response)):
                if response[index] == "{":
                    depth += 1
                elif response[index] == "}":
                    depth -= 1
                    if depth == 0:
                        return response[start:index + 1]

        return response

    def parse_structured_response(self, response: str) -> StructuredFrontPage:
        """Parse the reply as JSON, falling back to a loose markdown reading"""
        try:
            return StructuredFrontPage.model_validate(json.loads(self.extract_json_from_response(response)))
        except (json.JSONDecodeError, ValidationError):
            logger.debug("Front page reply is not valid JSON, trying markdown layout")
        return self._parse_markdown_response(response)

    @staticmethod
    def _strip_theme_label(line: str) -> str:
        return line.replace("**", "").replace(f"{THEME_LABEL}:", "").replace(THEME_LABEL, "").strip()

    def _parse_markdown_response(self, response: str) -> StructuredFrontPage:
        theme_parts: List[str] = []
        context_parts: List[str] = []
        sources: List[SourceSummary] = []
        section = "theme"

        for line in response.splitlines():
            line = line.strip()
            if not line:
                continue

            if THEME_LABEL in line:
                section = "theme"
                cleaned = self._strip_theme_label(line)
                if cleaned:
                    theme_parts = [cleaned]
                continue
            if LOOKING_AHEAD_LABEL in line:
                section = "context"
                continue
            if line.startswith("##") or "**" in line:
                name = line.replace("#", "").replace("**", "").replace(":", "").strip()
                sources.append(SourceSummary(name=name))
                section = "source"
                continue

            if section == "theme":
                theme_parts.append(self._strip_theme_label(line))
            elif section == "source":
                current = sources[-1]
                if _BULLET.match(line):
                    current.key_stories.append(_BULLET.sub("", line).strip())
                else:
                    current.summary = f"{current.summary} {line}".strip()
            else:
                context_parts.append(line)

        theme = " ".join(part for part in theme_parts if part)
        if not theme and not sources:
            raise FrontPageError("Could not parse structured front page from AI response")

        return StructuredFrontPage(
            theme=theme or DEFAULT_THEME,
            sources=sources,
            context=" ".join(context_parts) or None,
        )

    @staticmethod
    def convert_to_blocks(front_page: StructuredFrontPage) -> List[ContentBlock]:
        blocks: List[ContentBlock] = []

        theme = normalize_text(front_page.theme) or DEFAULT_THEME
        blocks.append(Paragraph(content=TextContent(spans=[
            TextSpan.bold(f"{THEME_LABEL}: "),
            TextSpan.plain(theme),
        ])))

        for source in front_page.sources:
            blocks.append(Heading(level=2, content=TextContent.plain(normalize_text(source.name))))
            summary = normalize_text(source.summary)
            if summary:
                blocks.append(Paragraph(content=TextContent.plain(summary)))

            stories = [normalize_text(story) for story in source.key_stories]
            stories = [story for story in stories if story]
            if stories:
                blocks.append(Heading(level=3, content=TextContent.plain(KEY_STORIES_LABEL)))
                blocks.extend(ListItem(content=TextContent.plain(story)) for story in stories)

        context = normalize_text(front_page.context)
        if context:
            blocks.append(Heading(level=2, content=TextContent.plain(LOOKING_AHEAD_LABEL)))
            blocks.append(Paragraph(content=TextContent.plain(context)))

        return blocks
