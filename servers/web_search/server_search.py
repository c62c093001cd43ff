"""MCP Server for web search using the Brave Search API."""

import argparse
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP, Context
from mcp.server.session import ServerSession

from config.settings import get_settings
from shared.logging_config import get_logger
from servers.web_search.search_api_client import BraveSearchClient, format_search_results

logger = get_logger(__name__)

# Create MCP server
mcp = FastMCP(
    name="WebSearch",
    instructions="Searches the web for current information using the Brave Search API",
)

# Set by WebSearchServer before the server starts
search_client: Optional[BraveSearchClient] = None


@mcp.tool()
async def web_search(query: str, ctx: Context[ServerSession, None] = None) -> str:
    """
    Search the web for current information, documentation, GitHub issues, Stack Overflow
    answers, error solutions, or any information not in your training data. Returns
    relevant web pages and news articles.

    Args:
        query: The search query. Be specific and include relevant keywords
            (e.g., 'kubernetes CrashLoopBackOff github issues').
    Returns:
        Markdown list of web and news results
    """
    if not query or not query.strip():
        raise ValueError("query parameter is required")
    if search_client is None:
        raise RuntimeError("Web search client is not configured")

    if ctx is not None:
        await ctx.info(f"Searching the web for: {query}")

    try:
        result = await search_client.search(query)
    except Exception as e:
        logger.error("web_search_failed", query=query, error=str(e))
        raise RuntimeError(f"Error performing web search: {e}") from e

    return format_search_results(result)


class WebSearchServer:
    """Wrapper class for the Web Search MCP Server."""

    def __init__(self, api_key: str):
        global search_client
        self.mcp = mcp
        self.search_client = BraveSearchClient(api_key=api_key)
        search_client = self.search_client
        logger.info("web_search_server_initialized")

    async def stop(self):
        """Stop the server and cleanup."""
        await self.search_client.close()
        logger.info("web_search_server_stopped")

    def get_mcp_server(self) -> FastMCP:
        """Get the FastMCP server instance."""
        return self.mcp


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Web Search MCP Server - Search the web using Brave Search API",
        epilog="Environment variable BRAVE_API_KEY is an alternative to --api-key.",
    )
    parser.add_argument("--api-key", help="Brave Search API key (https://brave.com/search/api/)")
    return parser.parse_args(argv)


if __name__ == "__main__":
    import asyncio
    from shared.logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.mcp_log_level, settings.mcp_json_logs)

    args = parse_args()
    api_key = args.api_key or settings.brave_api_key
    if not api_key:
        print("Error: Brave Search API key is required", file=sys.stderr)
        print("Provide via --api-key flag or BRAVE_API_KEY environment variable", file=sys.stderr)
        sys.exit(1)

    async def run_server():
        """Run the MCP server in stdio mode."""
        server = WebSearchServer(api_key)
        try:
            await mcp.run_stdio_async()
        finally:
            await server.stop()

    asyncio.run(run_server())
