"""Tavily API client for web retrieval.

Tavily does the crawling, content extraction and relevance ranking; this
module only maps its results onto Source records. Result order is Tavily's
ranking and is preserved as-is.
"""

from models.errors import UpstreamUnavailable, classify_upstream_error
from models.search_response import Source
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 8
DEFAULT_SEARCH_DEPTH = "basic"


class TavilySearchClient:
    """Retrieval collaborator backed by the Tavily search API."""

    provider = "tavily"

    def __init__(self, api_key: str, client=None):
        """
        Initialize Tavily client.

        Args:
            api_key: Tavily API key
            client: Pre-built TavilyClient (tests inject a fake here)
        """
        if not api_key and client is None:
            raise ValueError("TAVILY_API_KEY not found in environment")
        self.api_key = api_key

        if client is None:
            # Lazy import so the core and its tests don't need tavily installed
            try:
                from tavily import TavilyClient
            except ModuleNotFoundError as e:
                raise ModuleNotFoundError(
                    "Dependency 'tavily' is not installed. Install it with: pip install tavily-python"
                ) from e
            client = TavilyClient(api_key=api_key)

        self.client = client
        logger.info("Tavily client initialized")

    def search(
        self,
        query: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        search_depth: str = DEFAULT_SEARCH_DEPTH,
    ) -> list[Source]:
        """
        Search the web using Tavily API.

        Args:
            query: Search query
            max_results: Maximum number of sources (default: 8)
            search_depth: "basic" (faster) or "advanced" (deeper)

        Returns:
            Sources in provider order, first occurrence of each URL only

        Raises:
            UpstreamUnavailable: if the call errors, is rate-limited or times out
        """
        logger.info(f"Tavily search: '{query[:100]}' (max_results={max_results}, depth={search_depth})")

        try:
            response = self.client.search(
                query=query,
                max_results=max_results,
                search_depth=search_depth,
                include_answer=False,
                include_images=False,
                include_raw_content=False,
            )
        except Exception as e:
            kind = classify_upstream_error(e)
            logger.error(
                f"Tavily search failed: {kind.value}",
                extra={"extra_fields": {"error": str(e), "error_type": type(e).__name__}},
            )
            raise UpstreamUnavailable(kind, details=str(e), provider=self.provider) from e

        sources: list[Source] = []
        seen_urls: set[str] = set()
        for result in (response or {}).get("results") or []:
            url = str(result.get("url") or "").strip()
            if not url or url in seen_urls:
                continue
            seen_urls.add(url)

            score = result.get("score")
            source = Source(
                title=str(result.get("title") or "").strip() or url,
                url=url,
                content=str(result.get("content") or ""),
                score=float(score) if score is not None else None,
            )
            sources.append(source)
            logger.debug(f"[{len(sources)}] {source.title[:50]} (score: {source.score})")

        logger.info(f"Tavily returned {len(sources)} sources")
        return sources
