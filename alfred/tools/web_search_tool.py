"""
Web Search Tool - DuckDuckGo text search, no API key required
"""

import asyncio
import logging
from typing import Any

from duckduckgo_search import DDGS

from alfred.tools.types import ToolResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 5
MAX_RESULTS_CAP = 20
MAX_SNIPPET_LEN = 300


def _search(query: str, max_results: int, region: str) -> list[dict[str, Any]]:
    with DDGS() as ddgs:
        return list(ddgs.text(query, region=region, max_results=max_results))


def _format_hits(query: str, hits: list[dict[str, Any]]) -> str:
    out = f"Search results for '{query}':\n\n"
    for i, hit in enumerate(hits, 1):
        snippet = hit.get("body", "")
        if len(snippet) > MAX_SNIPPET_LEN:
            snippet = snippet[:MAX_SNIPPET_LEN] + "..."
        out += f"{i}. **{hit.get('title', 'Untitled')}**\n"
        out += f"   URL: {hit.get('href', '')}\n"
        out += f"   {snippet}\n\n"
    return out.rstrip() + "\n"


class WebSearchTool:
    """Tool for searching the web."""

    def __init__(self, max_results: int = DEFAULT_MAX_RESULTS, region: str = "wt-wt"):
        self.max_results = max_results
        self.region = region

    async def execute(self, args: dict[str, Any]) -> ToolResult:
        query = args.get("query", "")
        if not isinstance(query, str) or not query.strip():
            return {"formatted": "Error: No search query provided", "isError": True}
        query = query.strip()

        max_results = args.get("max_results", self.max_results)
        try:
            max_results = min(int(max_results), MAX_RESULTS_CAP)
        except (TypeError, ValueError):
            return {"formatted": "Error: max_results must be an integer", "isError": True}
        if max_results <= 0:
            return {"formatted": "Error: max_results must be greater than zero", "isError": True}

        try:
            hits = await asyncio.to_thread(_search, query, max_results, self.region)
        except Exception as e:
            logger.warning(f"Web search failed for {query!r}: {e}")
            return {"formatted": f"Error searching the web: {str(e)}", "isError": True}

        if not hits:
            return {
                "formatted": f"No results found for '{query}'.",
                "totalResults": 0,
                "resultsShared": 0,
                "isError": False,
            }

        return {
            "formatted": _format_hits(query, hits),
            "totalResults": len(hits),
            "resultsShared": len(hits),
            "isError": False,
        }

    async def handler(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        result = await self.execute(arguments)
        return result["formatted"], not result.get("isError", False)


# Tool specification
WEB_SEARCH_TOOL_SPEC = {
    "name": "web_search",
    "description": (
        "Performs a web search and returns the top results (title, URL and snippet). "
        "Use it for current events, news, or facts not covered by the other tools."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query to perform.",
            },
            "max_results": {
                "type": "integer",
                "description": f"Number of results to return (default {DEFAULT_MAX_RESULTS}, max {MAX_RESULTS_CAP}).",
            },
        },
        "required": ["query"],
    },
}
