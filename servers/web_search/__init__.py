"""Web Search MCP Server - Brave Search API."""

from servers.web_search.search_api_client import BraveSearchClient, format_search_results
from servers.web_search.search_schemas import NewsResult, SearchResponse, WebResult

__all__ = [
    "BraveSearchClient",
    "format_search_results",
    "NewsResult",
    "SearchResponse",
    "WebResult",
]
