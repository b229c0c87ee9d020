"""
Shared pytest fixtures for Alfred's tests.
Guest data mirrors rows of the agents-course/unit3-invitees dataset.
"""

import os
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from litellm import ChatCompletionMessageToolCall, Message
from litellm.types.utils import Function

from alfred.config import Config
from alfred.core.tools import ToolRouter, ToolSpec
from alfred.tools.guest_info_tool import clear_guest_cache
from alfred.tools.weather_tool import WEATHER_TOOL_SPEC, WeatherInfoTool


class FixedChoice:
    """Stand-in for random.Random that always picks the same index"""

    def __init__(self, index: int = 0):
        self.index = index

    def choice(self, seq):
        return seq[self.index]


@pytest.fixture(autouse=True)
def _clear_guest_cache():
    clear_guest_cache()
    yield
    clear_guest_cache()


@pytest.fixture
def mock_hf_token():
    """Set HF_TOKEN for tests"""
    with patch.dict(os.environ, {"HF_TOKEN": "hf_test_token_12345"}):
        yield "hf_test_token_12345"


@pytest.fixture
def gala_guests():
    return [
        {
            "name": "Ada Lovelace",
            "relation": "best friend",
            "description": (
                "Lady Ada Lovelace is my best friend. She is an esteemed mathematician "
                "and friend. She is renowned for her pioneering work in mathematics and "
                "computing, often celebrated as the first computer programmer due to her "
                "work on Charles Babbage's Analytical Engine."
            ),
            "email": "ada.lovelace@example.com",
        },
        {
            "name": "Dr. Nikola Tesla",
            "relation": "old friend from university days",
            "description": (
                "Dr. Nikola Tesla is an old friend from your university days. He's recently "
                "patented a new wireless energy transmission system and would be delighted "
                "to discuss it with you. Just remember he's passionate about pigeons, so "
                "that might make for good small talk."
            ),
            "email": "nikola.tesla@gmail.com",
        },
        {
            "name": "Marie Curie",
            "relation": "no relation",
            "description": (
                "Marie Curie was a groundbreaking physicist and chemist, famous for her "
                "research on radioactivity."
            ),
            "email": "marie.curie@example.com",
        },
    ]


@pytest.fixture
def test_config():
    """Config that never asks litellm for model limits"""
    return Config(
        model_name="openai/gpt-4o-mini",
        max_context=100_000,
        planning_interval=None,
        max_iterations=5,
    )


@pytest.fixture
def weather_router():
    """Router with a deterministic weather tool (always 'Clear, 25°C')"""
    tool = WeatherInfoTool(rng=FixedChoice(1))
    return ToolRouter([ToolSpec.from_spec(WEATHER_TOOL_SPEC, tool.handler)])


def make_tool_call(name: str, arguments: str, call_id: str = "call_1"):
    return ChatCompletionMessageToolCall(
        id=call_id,
        type="function",
        function=Function(name=name, arguments=arguments),
    )


def make_response(content: str | None = None, tool_calls=None, total_tokens: int = 50):
    """Minimal stand-in for a litellm ModelResponse"""
    message = Message(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message)],
        usage=SimpleNamespace(total_tokens=total_tokens, completion_tokens=10),
    )
