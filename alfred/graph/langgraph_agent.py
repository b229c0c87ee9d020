"""LangGraph message-graph agent.

The same tools the native loop uses, driven by a two-node graph::

    START -> assistant -> (tools_condition) -> tools -> assistant
                                           \\-> END

Usage::

    from alfred.core import ToolRouter, create_gala_tools
    from alfred.graph import GraphAgent

    agent = GraphAgent(ToolRouter(create_gala_tools()))
    answer = await agent.ask("Tell me about Lady Ada Lovelace")
    follow_up = await agent.ask("What is her email?")  # same thread, remembers
"""


import logging
import uuid
from typing import Annotated, Any, Optional, TypedDict

from langchain_core.messages import (
    AnyMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.tools import StructuredTool
from langchain_litellm import ChatLiteLLM
from langgraph.checkpoint.memory import MemorySaver
from langgraph.errors import GraphRecursionError
from langgraph.graph import END, START, StateGraph
from langgraph.graph.message import add_messages
from langgraph.prebuilt import ToolNode, tools_condition
from lmnr import observe
from pydantic import BaseModel, Field, create_model

from alfred.config import Config
from alfred.context_manager.manager import render_prompt
from alfred.core.tools import ToolRouter, ToolSpec

logger = logging.getLogger(__name__)

JSON_TYPES: dict[str, Any] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "array": list,
    "object": dict,
}


class AgentState(TypedDict):
    messages: Annotated[list[AnyMessage], add_messages]


def _args_model(tool: ToolSpec) -> type[BaseModel]:
    """Build a pydantic args schema from the tool's JSON schema."""
    properties = tool.parameters.get("properties", {})
    required = set(tool.parameters.get("required", []))

    fields: dict[str, Any] = {}
    for name, prop in properties.items():
        py_type = JSON_TYPES.get(prop.get("type", "string"), Any)
        description = prop.get("description", "")
        if name in required:
            fields[name] = (py_type, Field(description=description))
        else:
            fields[name] = (Optional[py_type], Field(default=None, description=description))

    model_name = "".join(part.title() for part in tool.name.split("_")) + "Input"
    return create_model(model_name, **fields)


def to_langchain_tool(tool: ToolSpec) -> StructuredTool:
    """Convert a ToolSpec into a LangChain tool usable by ToolNode."""
    if tool.handler is None:
        raise ValueError(f"Tool {tool.name} has no handler")
    handler = tool.handler

    async def _run(**kwargs: Any) -> str:
        arguments = {k: v for k, v in kwargs.items() if v is not None}
        output, success = await handler(arguments)
        if not success:
            logger.info(f"Tool {tool.name} failed: {output}")
        return output

    return StructuredTool(
        name=tool.name,
        description=tool.description,
        args_schema=_args_model(tool),
        coroutine=_run,
    )


def message_text(message: BaseMessage) -> str:
    """Plain text of a message, joining text blocks of multi-part content."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def build_graph(
    model: Any,
    tools: list[StructuredTool],
    system_prompt: str,
    checkpointer: Any = None,
):
    """Compile the assistant/tools graph.

    Args:
        model: A LangChain chat model supporting ``bind_tools``.
        tools: LangChain tools exposed to the model.
        system_prompt: Prepended to every model call (not stored in state).
        checkpointer: Optional LangGraph checkpointer for multi-turn memory.
    """
    llm_with_tools = model.bind_tools(tools)

    async def assistant(state: AgentState) -> dict[str, list[AnyMessage]]:
        messages = [SystemMessage(content=system_prompt)] + state["messages"]
        response = await llm_with_tools.ainvoke(messages)
        return {"messages": [response]}

    builder = StateGraph(AgentState)
    builder.add_node("assistant", assistant)
    builder.add_node("tools", ToolNode(tools))

    builder.add_edge(START, "assistant")
    # Route to "tools" when the last message requested tool calls, else END
    builder.add_conditional_edges("assistant", tools_condition, {"tools": "tools", END: END})
    builder.add_edge("tools", "assistant")

    return builder.compile(checkpointer=checkpointer)


class GraphAgent:
    """Multi-turn agent backed by a LangGraph message graph."""

    def __init__(
        self,
        tool_router: ToolRouter,
        config: Config | None = None,
        model: Any = None,
    ):
        self.config = config or Config()
        self.tool_router = tool_router
        self.tools = [to_langchain_tool(tool) for tool in tool_router.tools.values()]
        self.model = model or ChatLiteLLM(model=self.config.model_name)
        self.system_prompt = render_prompt(
            self.config.system_prompt_file,
            "system_prompt",
            tools=tool_router.get_tool_specs_for_llm(),
            num_tools=len(self.tools),
        )
        self.graph = build_graph(
            self.model, self.tools, self.system_prompt, checkpointer=MemorySaver()
        )
        self.thread_id = str(uuid.uuid4())

    def new_thread(self) -> str:
        """Start a fresh conversation; previous threads stay in the checkpointer."""
        self.thread_id = str(uuid.uuid4())
        return self.thread_id

    @observe(name="graph_agent_ask")
    async def ask(self, question: str, thread_id: str | None = None) -> str | None:
        """Send one user message and return the final assistant text.

        Returns None when the model is still calling tools after
        ``max_iterations`` rounds.
        """
        run_config = {
            "configurable": {"thread_id": thread_id or self.thread_id},
            # One assistant step plus one tool step per iteration
            "recursion_limit": 2 * self.config.max_iterations + 1,
        }
        try:
            result = await self.graph.ainvoke(
                {"messages": [HumanMessage(content=question)]}, config=run_config
            )
        except GraphRecursionError:
            logger.warning(
                f"No final answer after {self.config.max_iterations} iterations"
            )
            await self._close_pending_tool_calls(run_config)
            return None
        return message_text(result["messages"][-1])

    async def _close_pending_tool_calls(self, run_config: dict[str, Any]) -> None:
        """Answer tool calls left open by an aborted run so the thread stays usable."""
        snapshot = await self.graph.aget_state(run_config)
        messages = snapshot.values.get("messages", [])
        tool_calls = getattr(messages[-1], "tool_calls", None) if messages else None
        if not tool_calls:
            return
        await self.graph.aupdate_state(
            run_config,
            {
                "messages": [
                    ToolMessage(
                        content="Not run: iteration limit reached",
                        tool_call_id=call["id"],
                    )
                    for call in tool_calls
                ]
            },
            as_node="tools",
        )
