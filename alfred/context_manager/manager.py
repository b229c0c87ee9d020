"""
Context management for conversation history
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Template
from litellm import Message, acompletion

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

# Plans are kept in the history as user-role notes starting with this line
PLAN_NOTE_PREFIX = "Plan so far:"


def is_plan_note(message: Message) -> bool:
    return message.role == "user" and (message.content or "").startswith(PLAN_NOTE_PREFIX)


def render_prompt(prompt_file: str, key: str, **variables: Any) -> str:
    """Load a YAML prompt file and render one of its Jinja2 templates"""
    with open(PROMPTS_DIR / prompt_file, "r") as f:
        prompt_data = yaml.safe_load(f)
        template_str = prompt_data.get(key, "")

    return Template(template_str).render(**variables).strip()


class ContextManager:
    """Manages conversation context and message history for the agent"""

    def __init__(
        self,
        max_context: int = 180_000,
        compact_size: float = 0.1,
        untouched_messages: int = 5,
        tool_specs: list[dict[str, Any]] | None = None,
        prompt_file: str = "system_prompt.yaml",
    ):
        self.system_prompt = render_prompt(
            prompt_file,
            "system_prompt",
            tools=tool_specs or [],
            num_tools=len(tool_specs or []),
        )
        self.max_context = max_context
        self.compact_size = int(max_context * compact_size)
        self.context_length = len(self.system_prompt) // 4
        self.untouched_messages = untouched_messages
        self.items: list[Message] = [Message(role="system", content=self.system_prompt)]

    def add_message(self, message: Message, token_count: int | None = None) -> None:
        """Add a message to the history"""
        if token_count:
            self.context_length = token_count
            logger.debug(f"token_count = {self.context_length}")
        self.items.append(message)

    def get_messages(self) -> list[Message]:
        """Get all messages for sending to LLM"""
        return self.items

    def undo(self) -> int:
        """Remove the last user turn and everything after it.

        Plan notes are part of the turn they were made in, not turns of their own.
        Returns the number of removed messages.
        """
        for i in range(len(self.items) - 1, 0, -1):
            if self.items[i].role == "user" and not is_plan_note(self.items[i]):
                removed = len(self.items) - i
                del self.items[i:]
                return removed
        return 0

    def reset(self) -> None:
        """Forget the conversation, keeping only the system prompt"""
        self.items = self.items[:1]
        self.context_length = len(self.system_prompt) // 4

    async def compact(self, model_name: str) -> None:
        """Remove old messages to keep history under target size"""
        if (self.context_length <= self.max_context) or not self.items:
            return

        system_msg = (
            self.items[0] if self.items and self.items[0].role == "system" else None
        )

        # Don't summarize a certain number of just-preceding messages. Tool
        # results must stay with the assistant message that requested them.
        cut = max(len(self.items) - self.untouched_messages, 1)
        while 1 < cut < len(self.items) and self.items[cut].role == "tool":
            cut -= 1
        recent_messages = self.items[cut:]

        # Summarize everything in between (skip system prompt, skip preceding n)
        messages_to_summarize = self.items[1:cut]

        if not messages_to_summarize:
            return

        messages_to_summarize.append(
            Message(
                role="user",
                content="Please provide a concise summary of the conversation above, focusing on the guests discussed, facts gathered from tools, and anything needed to answer future questions.",
            )
        )

        response = await acompletion(
            model=model_name,
            messages=messages_to_summarize,
            max_completion_tokens=self.compact_size,
        )
        summarized_message = Message(
            role="assistant", content=response.choices[0].message.content
        )

        if system_msg:
            self.items = [system_msg, summarized_message] + recent_messages
        else:
            self.items = [summarized_message] + recent_messages

        self.context_length = (
            len(self.system_prompt) // 4 + response.usage.completion_tokens
        )
        logger.info(f"Compacted context to {self.context_length} tokens")
