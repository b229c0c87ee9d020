from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ValidationError

DEFAULT_CONFIG_PATH = Path(__file__).parent / "configs" / "alfred_config.json"

ALL_TOOLS = ["web_search", "weather_info", "hub_stats", "guest_info_retriever"]


class ConfigError(Exception):
    """Raised when a config file cannot be read or validated"""


class Config(BaseModel):
    """Configuration manager"""

    model_name: str = "anthropic/claude-sonnet-4-5-20250929"
    backend: Literal["native", "graph"] = "native"
    max_iterations: int = 10
    planning_interval: int | None = None
    enabled_tools: list[str] = list(ALL_TOOLS)
    guest_dataset: str = "agents-course/unit3-invitees"
    guest_dataset_split: str = "train"
    guest_top_k: int = 3
    web_search_max_results: int = 5
    system_prompt_file: str = "system_prompt.yaml"
    max_context: int | None = None
    untouched_messages: int = 5


def load_config(config_path: str | Path = DEFAULT_CONFIG_PATH) -> Config:
    """Load configuration from file"""
    try:
        with open(config_path, "r") as f:
            return Config.model_validate_json(f.read())
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e
