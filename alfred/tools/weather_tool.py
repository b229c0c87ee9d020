"""
Weather Info Tool - dummy weather provider for planning the fireworks
"""

import random
from typing import Any

from alfred.tools.types import ToolResult

WEATHER_CONDITIONS = [
    {"condition": "Rainy", "temp_c": 15},
    {"condition": "Clear", "temp_c": 25},
    {"condition": "Windy", "temp_c": 20},
]


class WeatherInfoTool:
    """Tool returning (randomly chosen) weather for a location."""

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    async def execute(self, args: dict[str, Any]) -> ToolResult:
        location = args.get("location", "")
        if not isinstance(location, str) or not location.strip():
            return {"formatted": "Error: No location provided", "isError": True}

        data = self.rng.choice(WEATHER_CONDITIONS)
        return {
            "formatted": f"Weather in {location.strip()}: {data['condition']}, {data['temp_c']}°C",
            "totalResults": 1,
            "resultsShared": 1,
            "isError": False,
        }

    async def handler(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        result = await self.execute(arguments)
        return result["formatted"], not result.get("isError", False)


# Tool specification
WEATHER_TOOL_SPEC = {
    "name": "weather_info",
    "description": "Fetches weather information for a given location.",
    "parameters": {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "The location to get weather information for.",
            }
        },
        "required": ["location"],
    },
}
