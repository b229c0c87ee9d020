import asyncio
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from litellm import get_max_tokens

from alfred.config import Config
from alfred.context_manager.manager import ContextManager
from alfred.core.tools import ToolRouter

DEFAULT_MAX_CONTEXT = 180_000


class OpType(Enum):
    USER_INPUT = "user_input"
    INTERRUPT = "interrupt"
    UNDO = "undo"
    RESET = "reset"
    COMPACT = "compact"
    SHUTDOWN = "shutdown"


@dataclass
class Event:
    event_type: str
    data: Optional[dict[str, Any]] = None


@dataclass
class Operation:
    """Operation to be executed by the agent"""

    op_type: OpType
    data: Optional[dict[str, Any]] = None


@dataclass
class Submission:
    """Submission to the agent loop"""

    id: str
    operation: Operation


def _max_context_for(config: Config) -> int:
    if config.max_context:
        return config.max_context
    try:
        return get_max_tokens(config.model_name) or DEFAULT_MAX_CONTEXT
    except Exception:
        # litellm raises for models missing from its cost map
        return DEFAULT_MAX_CONTEXT


class Session:
    """
    Maintains agent session state: conversation, tools and run status
    """

    def __init__(
        self,
        event_queue: asyncio.Queue | None = None,
        config: Config | None = None,
        tool_router: ToolRouter | None = None,
        context_manager: ContextManager | None = None,
    ):
        self.config = config or Config()
        self.tool_router = tool_router or ToolRouter()
        self.context_manager = context_manager or ContextManager(
            max_context=_max_context_for(self.config),
            compact_size=0.1,
            untouched_messages=self.config.untouched_messages,
            tool_specs=self.tool_router.get_tool_specs_for_llm(),
            prompt_file=self.config.system_prompt_file,
        )
        self.event_queue = event_queue if event_queue is not None else asyncio.Queue()
        self.session_id = str(uuid.uuid4())
        self.is_running = True
        self.current_task: asyncio.Task | None = None

    async def send_event(self, event: Event) -> None:
        """Send event back to client"""
        await self.event_queue.put(event)

    def interrupt(self) -> bool:
        """Interrupt current running task, returning whether one was running"""
        if self.current_task and not self.current_task.done():
            self.current_task.cancel()
            return True
        return False
