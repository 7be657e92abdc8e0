"""
Concurrent collection across all configured sources
"""
import asyncio
from typing import List, Optional

from pydantic import BaseModel, Field

from daily_feed.aggregators.ars_technica_aggregator import ArsTechnicaSource
from daily_feed.aggregators.base import BaseSource
from daily_feed.aggregators.hackernews_aggregator import HackerNewsSource
from daily_feed.aggregators.rss_aggregator import RSSSource
from daily_feed.processors.document_parser import DocumentParser, FeedParseResult
from daily_feed.utils.config import SourceEntry
from daily_feed.utils.http_client import HTTPClient
from daily_feed.utils.logger import logger
from daily_feed.utils.models import Feed, SourceKind


def build_source(entry: SourceEntry, http_client: Optional[HTTPClient] = None) -> BaseSource:
    """Create the source object for one configured entry"""
    if entry.type == SourceKind.ARS_TECHNICA:
        return ArsTechnicaSource(name=entry.name, api_token=entry.api_token, http_client=http_client)
    if entry.type == SourceKind.HACKERNEWS:
        return HackerNewsSource(name=entry.name, http_client=http_client)
    return RSSSource(entry.name, entry.url, entry.description, http_client)


class SourceFailure(BaseModel):
    source_name: str
    reason: str


class CollectionReport(BaseModel):
    """Feeds in configured order plus everything that went wrong on the way"""
    feeds: List[Feed] = Field(default_factory=list)
    failures: List[SourceFailure] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)


class SourceCollector:
    """Fetches and parses every source concurrently; one failing source never sinks the others"""

    def __init__(self, sources: List[BaseSource], parser: DocumentParser):
        self.sources = sources
        self.parser = parser

    async def collect(self) -> CollectionReport:
        tasks = [self._collect_from_source(source) for source in self.sources]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        report = CollectionReport()
        # gather returns results in task order, which is the configured order
        for source, result in zip(self.sources, results):
            if isinstance(result, BaseException):
                logger.error(f"Error collecting from {source.name}: {result}")
                report.failures.append(
                    SourceFailure(source_name=source.name, reason=str(result) or type(result).__name__)
                )
                continue

            report.feeds.append(result.feed)
            report.issues.extend(result.issues)

        logger.info(
            f"Collected {sum(len(feed.articles) for feed in report.feeds)} articles "
            f"from {len(report.feeds)} of {len(self.sources)} sources"
        )
        return report

    async def _collect_from_source(self, source: BaseSource) -> FeedParseResult:
        logger.info(f"Fetching {source.name} from {source.url}")
        payload = await source.fetch_payload()
        return await self.parser.parse_source(source, payload)
