"""
Tool system for the agent
Provides ToolSpec and ToolRouter for managing Alfred's gala tools
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from lmnr import observe

from alfred.config import Config
from alfred.tools.guest_info_tool import GUEST_INFO_TOOL_SPEC, GuestInfoTool
from alfred.tools.hub_stats_tool import HUB_STATS_TOOL_SPEC, HubStatsTool
from alfred.tools.weather_tool import WEATHER_TOOL_SPEC, WeatherInfoTool
from alfred.tools.web_search_tool import WEB_SEARCH_TOOL_SPEC, WebSearchTool

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[tuple[str, bool]]]


@dataclass
class ToolSpec:
    """Tool specification for LLM"""

    name: str
    description: str
    parameters: dict[str, Any]
    handler: Optional[ToolHandler] = None

    @classmethod
    def from_spec(cls, spec: dict[str, Any], handler: ToolHandler) -> "ToolSpec":
        return cls(
            name=spec["name"],
            description=spec["description"],
            parameters=spec["parameters"],
            handler=handler,
        )


class ToolRouter:
    """
    Routes tool calls to appropriate handlers.
    """

    def __init__(self, tools: list[ToolSpec] | None = None):
        self.tools: dict[str, ToolSpec] = {}
        for tool in tools or []:
            self.register_tool(tool)

    def register_tool(self, tool: ToolSpec) -> None:
        if tool.name in self.tools:
            logger.debug(f"Replacing tool {tool.name}")
        self.tools[tool.name] = tool

    @property
    def tool_names(self) -> list[str]:
        return list(self.tools)

    def get_tool_specs_for_llm(self) -> list[dict[str, Any]]:
        """Get tool specifications in OpenAI format"""
        specs = []
        for tool in self.tools.values():
            specs.append(
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.parameters,
                    },
                }
            )
        return specs

    @observe(name="call_tool")
    async def call_tool(
        self, tool_name: str, arguments: dict[str, Any]
    ) -> tuple[str, bool]:
        """
        Call a tool and return (output_string, success_bool).
        """
        tool = self.tools.get(tool_name)
        if tool is None or tool.handler is None:
            return f"Unknown tool: {tool_name}", False

        try:
            return await tool.handler(arguments)
        except Exception as e:
            logger.exception(f"Tool {tool_name} raised")
            return f"Error executing {tool_name}: {str(e)}", False


# ============================================================================
# GALA TOOLS
# ============================================================================


def create_gala_tools(
    config: Config | None = None,
    guests: list[dict[str, Any]] | None = None,
) -> list[ToolSpec]:
    """Create the tool specifications enabled in the config"""
    config = config or Config()

    guest_tool = GuestInfoTool(
        dataset=config.guest_dataset,
        split=config.guest_dataset_split,
        top_k=config.guest_top_k,
        guests=guests,
    )
    available = {
        WEB_SEARCH_TOOL_SPEC["name"]: ToolSpec.from_spec(
            WEB_SEARCH_TOOL_SPEC,
            WebSearchTool(max_results=config.web_search_max_results).handler,
        ),
        WEATHER_TOOL_SPEC["name"]: ToolSpec.from_spec(
            WEATHER_TOOL_SPEC, WeatherInfoTool().handler
        ),
        HUB_STATS_TOOL_SPEC["name"]: ToolSpec.from_spec(
            HUB_STATS_TOOL_SPEC, HubStatsTool(hf_token=os.environ.get("HF_TOKEN")).handler
        ),
        GUEST_INFO_TOOL_SPEC["name"]: ToolSpec.from_spec(
            GUEST_INFO_TOOL_SPEC, guest_tool.handler
        ),
    }

    tools = []
    for name in config.enabled_tools:
        if name not in available:
            logger.warning(f"Ignoring unknown tool in config: {name}")
            continue
        tools.append(available[name])
    return tools
