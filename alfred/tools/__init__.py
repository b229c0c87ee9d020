"""
Tools available to Alfred
"""

from alfred.tools.guest_info_tool import GUEST_INFO_TOOL_SPEC, GuestInfoTool
from alfred.tools.hub_stats_tool import HUB_STATS_TOOL_SPEC, HubStatsTool
from alfred.tools.types import ToolResult
from alfred.tools.weather_tool import WEATHER_TOOL_SPEC, WeatherInfoTool
from alfred.tools.web_search_tool import WEB_SEARCH_TOOL_SPEC, WebSearchTool

__all__ = [
    "ToolResult",
    "GUEST_INFO_TOOL_SPEC",
    "GuestInfoTool",
    "HUB_STATS_TOOL_SPEC",
    "HubStatsTool",
    "WEATHER_TOOL_SPEC",
    "WeatherInfoTool",
    "WEB_SEARCH_TOOL_SPEC",
    "WebSearchTool",
]
