"""
Web search pipeline over the provider's HTML endpoint.

Two strategies, chosen by the caller through ``SearchMode``:

FAST      post the query, parse the listing, emit url/title for each anchor.
          No result page is fetched.
ENRICHED  same listing, then fetch every result page in document order, drop
          pages that fail or sit behind a paywall, and fill in summary,
          reading time and favicon.

The listing request runs in the caller's task, so an unreachable provider is
reported before anything is streamed. Everything after that runs in a producer
task feeding a bounded StreamChannel; HTML parsing is pushed to worker threads.
"""

import asyncio
from collections.abc import AsyncIterator

import httpx

from config.config import DEFAULT_SEARCH_BASE_URL, DEFAULT_SEARCH_LOCALE
from models.errors import SearchUnavailableError
from models.search_result import SearchMode, SearchQuery, SearchResult
from utils.logger import get_logger
from utils.stream_channel import DEFAULT_CAPACITY, StreamChannel

from api.base_client import BaseStreamingClient

from .content_extractor import ContentExtractor
from .contracts import SearchAnchor, SearchRunStats
from .result_parser import parse_result_anchors
from .text_metrics import favicon_url, reading_time, summarize

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; local-assistant/1.0)"


class SearchClient(BaseStreamingClient):
    """
    Search provider client producing SearchResult values.
    """

    provider = "duckduckgo"

    def __init__(
        self,
        base_url: str = DEFAULT_SEARCH_BASE_URL,
        locale: str = DEFAULT_SEARCH_LOCALE,
        timeout_s: float = 30.0,
        channel_capacity: int = DEFAULT_CAPACITY,
        extractor: ContentExtractor | None = None,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """
        Initialize the search client.

        Args:
            base_url: Provider HTML search endpoint
            locale: Value of the ``kl`` form field
            timeout_s: Per-request timeout (listing and each result page)
            channel_capacity: Results buffered before the producer waits
            extractor: ContentExtractor used in enriched mode
            http_client: Optional injected AsyncClient
            user_agent: User-Agent header for requests made by the owned client
        """
        super().__init__(
            base_url,
            timeout_s=timeout_s,
            http_client=http_client,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )
        self.locale = locale
        self.channel_capacity = channel_capacity
        self.extractor = extractor or ContentExtractor()

    async def fetch_listing(self, query: SearchQuery) -> str:
        """
        POST the query and return the listing HTML.

        Raises:
            SearchUnavailableError: Provider unreachable or non-success status
        """
        logger.info(f"Search query: '{query.query}' (max_results={query.max_results}, mode={query.mode.value})")
        try:
            response = await self.http.post(
                self.base_url,
                data={"q": query.query, "kl": self.locale},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            error = self._normalize_error(e)
            logger.error(f"Search request failed: {error.message}")
            raise SearchUnavailableError(error) from e
        return response.text

    async def find_anchors(self, query: SearchQuery) -> list[SearchAnchor]:
        html = await self.fetch_listing(query)
        return await asyncio.to_thread(parse_result_anchors, html, query.max_results)

    async def enrich(self, anchor: SearchAnchor, stats: SearchRunStats | None = None) -> SearchResult | None:
        """
        Fetch and analyze one result page.

        Returns None (and counts the reason) when the page cannot be fetched,
        answers with a non-success status, or is paywalled.
        """
        stats = stats or SearchRunStats(query="", mode=SearchMode.ENRICHED.value)
        try:
            response = await self.http.get(anchor.url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            stats.skipped_fetch_error += 1
            logger.warning(f"Skipping result {anchor.url}: fetch failed ({e.__class__.__name__})")
            return None

        if not response.is_success:
            stats.skipped_status += 1
            logger.info(f"Skipping result {anchor.url}: HTTP {response.status_code}")
            return None

        content = await asyncio.to_thread(self.extractor.extract, response.text)
        if content.is_paywall:
            stats.skipped_paywall += 1
            logger.info(f"Skipping result {anchor.url}: paywall ({content.matched_selector})")
            return None

        return SearchResult(
            url=anchor.url,
            title=anchor.title,
            summary=summarize(content.text),
            reading_time=reading_time(content.text),
            favicon_url=favicon_url(anchor.url),
            is_paywall=False,
        )

    async def iter_enriched(
        self, anchors: list[SearchAnchor], stats: SearchRunStats | None = None
    ) -> AsyncIterator[SearchResult]:
        """Enrich anchors one at a time, yielding survivors in document order."""
        for anchor in anchors:
            result = await self.enrich(anchor, stats)
            if result is not None:
                yield result

    async def search_enriched(self, query: SearchQuery) -> list[SearchResult]:
        """Run the enriched pipeline and return every surviving result at once."""
        stats = SearchRunStats(query=query.query, mode=SearchMode.ENRICHED.value)
        anchors = await self.find_anchors(query)
        stats.anchors = len(anchors)

        results = [r async for r in self.iter_enriched(anchors, stats)]
        stats.emitted = len(results)
        self._log_run(stats)
        return results

    async def search_stream(self, query: SearchQuery) -> StreamChannel[SearchResult]:
        """
        Start a streamed search in the mode carried by ``query``.

        Returns:
            StreamChannel yielding results in listing order

        Raises:
            SearchUnavailableError: Listing request failed; nothing was streamed
        """
        html = await self.fetch_listing(query)
        stats = SearchRunStats(query=query.query, mode=query.mode.value)

        async def produce(ch: StreamChannel[SearchResult]) -> None:
            anchors = await asyncio.to_thread(parse_result_anchors, html, query.max_results)
            stats.anchors = len(anchors)

            if query.mode is SearchMode.ENRICHED:
                results = self.iter_enriched(anchors, stats)
            else:
                results = self._iter_fast(anchors)

            async for result in results:
                if not await ch.send(result):
                    stats.notes.append("consumer detached")
                    break
                stats.emitted += 1
            self._log_run(stats)

        channel: StreamChannel[SearchResult] = StreamChannel(self.channel_capacity, name="search")
        return channel.start(produce)

    @staticmethod
    async def _iter_fast(anchors: list[SearchAnchor]) -> AsyncIterator[SearchResult]:
        for anchor in anchors:
            yield SearchResult(url=anchor.url, title=anchor.title)

    @staticmethod
    def _log_run(stats: SearchRunStats) -> None:
        logger.info(
            f"Search finished: {stats.emitted}/{stats.anchors} results ({stats.mode})",
            extra={"extra_fields": stats.to_dict()},
        )
