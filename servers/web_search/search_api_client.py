"""API client for the Brave Search web search service."""

from typing import Optional

import httpx

from config.settings import get_settings
from shared.logging_config import get_logger
from shared.utils import retry_async
from servers.web_search.search_schemas import SearchResponse

logger = get_logger(__name__)

MAX_WEB_RESULTS = 10
MAX_NEWS_RESULTS = 5


class BraveSearchClient:
    """Client for the Brave Search API."""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            api_key: Brave Search subscription token
            base_url: Search endpoint (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            transport: Custom httpx transport
        """
        if not api_key:
            raise ValueError("Brave Search API key is required")

        settings = get_settings()
        self.base_url = base_url or settings.brave_search_url
        self.timeout = timeout or settings.web_search_timeout
        self.headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
            "X-Subscription-Token": api_key,
        }
        self.client = httpx.AsyncClient(headers=self.headers, timeout=self.timeout, transport=transport)

    @retry_async(max_attempts=3, delay=1.0, exceptions=(httpx.TransportError,))
    async def search(self, query: str) -> SearchResponse:
        """
        Run a web search.

        Args:
            query: Search terms

        Returns:
            Parsed web and news results

        Raises:
            RuntimeError: If the API answers with an error status
        """
        logger.debug("web_search_request", query=query)

        response = await self.client.get(self.base_url, params={"q": query})
        if response.is_error:
            logger.error("web_search_error", status=response.status_code, query=query)
            raise RuntimeError(
                f"Brave Search API error: {response.status_code} {response.reason_phrase}"
            )

        result = SearchResponse.from_api(query, response.json())
        logger.info("web_search_success", query=query, web=len(result.web), news=len(result.news))
        return result

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()


def format_search_results(result: SearchResponse) -> str:
    """Render search results as markdown for the model."""
    lines: list[str] = []

    if result.web:
        lines.append("# Web Results\n")
        for item in result.web[:MAX_WEB_RESULTS]:
            lines.append(f"## {item.title}")
            lines.append(f"URL: {item.url}")
            lines.append(f"{item.description}\n")

    if result.news:
        lines.append("\n# News Results\n")
        for item in result.news[:MAX_NEWS_RESULTS]:
            lines.append(f"## {item.title}")
            lines.append(f"URL: {item.url}")
            lines.append(item.description)
            lines.append(f"Published: {item.age or 'unknown'}\n")

    if not lines:
        return f"No results found for '{result.query}'"
    return "\n".join(lines)
