"""
Hub Stats Tool - most downloaded model of a Hugging Face author
"""

import asyncio
import logging
from typing import Any, Optional

from huggingface_hub import HfApi

from alfred.tools.types import ToolResult

logger = logging.getLogger(__name__)


async def _async_call(func, *args, **kwargs):
    """Wrap synchronous HfApi calls for async context."""
    return await asyncio.to_thread(func, *args, **kwargs)


class HubStatsTool:
    """Tool for looking up download statistics on the Hub."""

    def __init__(self, hf_token: Optional[str] = None):
        self.api = HfApi(token=hf_token)

    async def execute(self, args: dict[str, Any]) -> ToolResult:
        author = args.get("author", "")
        if not isinstance(author, str) or not author.strip():
            return {"formatted": "Error: No author provided", "isError": True}
        author = author.strip()

        try:
            models = list(
                await _async_call(
                    self.api.list_models,
                    author=author,
                    sort="downloads",
                    direction=-1,
                    limit=1,
                )
            )
        except Exception as e:
            logger.warning(f"list_models failed for {author}: {e}")
            return {
                "formatted": f"Error fetching models for {author}: {str(e)}",
                "isError": True,
            }

        if not models:
            return {
                "formatted": f"No models found for author {author}.",
                "totalResults": 0,
                "resultsShared": 0,
                "isError": False,
            }

        model = models[0]
        downloads = model.downloads or 0
        return {
            "formatted": f"The most downloaded model by {author} is {model.id} with {downloads:,} downloads.",
            "totalResults": 1,
            "resultsShared": 1,
            "isError": False,
        }

    async def handler(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        result = await self.execute(arguments)
        return result["formatted"], not result.get("isError", False)


# Tool specification
HUB_STATS_TOOL_SPEC = {
    "name": "hub_stats",
    "description": "Fetches the most downloaded model from a specific author on the Hugging Face Hub.",
    "parameters": {
        "type": "object",
        "properties": {
            "author": {
                "type": "string",
                "description": "The username of the model author/organization to find models from.",
            }
        },
        "required": ["author"],
    },
}
