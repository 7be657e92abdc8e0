"""
Ars Technica source: its RSS feed plus the top forum comments per article
"""
from typing import List, Optional

from daily_feed.aggregators.ars_comments import ArsCommentFetcher
from daily_feed.aggregators.rss_aggregator import RSSSource
from daily_feed.utils.constants import SourceConstants
from daily_feed.utils.http_client import HTTPClient
from daily_feed.utils.models import RawComment, SourceKind


class ArsTechnicaSource(RSSSource):
    """RSS source whose articles carry forum comments"""

    kind = SourceKind.ARS_TECHNICA
    supports_comments = True

    def __init__(
        self,
        name: str = "Ars Technica",
        api_token: Optional[str] = None,
        http_client: Optional[HTTPClient] = None,
        comment_fetcher: Optional[ArsCommentFetcher] = None,
    ):
        url = SourceConstants.ARS_TECHNICA_FEED_URL
        if api_token:
            url = f"{url}?t={api_token}"
        super().__init__(name, url, SourceConstants.ARS_TECHNICA_DESCRIPTION, http_client)
        self.comment_fetcher = comment_fetcher or ArsCommentFetcher(self.http_client)

    async def fetch_comments(self, article_url: str, limit: int) -> List[RawComment]:
        return await self.comment_fetcher.fetch_top_comments(article_url, limit)
