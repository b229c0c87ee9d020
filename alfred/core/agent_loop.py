"""
Main agent implementation: tool-calling loop with periodic planning
"""

import asyncio
import json
import logging
from typing import Any

from litellm import ChatCompletionMessageToolCall, Message, ModelResponse, acompletion
from lmnr import observe

from alfred.config import Config
from alfred.context_manager.manager import PLAN_NOTE_PREFIX, render_prompt
from alfred.core.session import Event, OpType, Session, Submission
from alfred.core.tools import ToolRouter, create_gala_tools

logger = logging.getLogger(__name__)

ToolCall = ChatCompletionMessageToolCall

MAX_PLAN_STEPS = 5


def _parse_tool_arguments(raw: Any) -> dict[str, Any]:
    """Decode tool-call arguments; raises ValueError on anything but a JSON object"""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    args = json.loads(raw)
    if not isinstance(args, dict):
        raise ValueError("tool arguments must be a JSON object")
    return args


def _should_plan(session: Session, iteration: int) -> bool:
    interval = session.config.planning_interval
    return bool(interval) and iteration % interval == 0


class Handlers:
    """Handler functions for each operation type"""

    @staticmethod
    async def plan(session: Session) -> str | None:
        """Ask the model for a short plan and add it to the history"""
        tools = session.tool_router.get_tool_specs_for_llm()
        planning_request = Message(
            role="user",
            content=render_prompt(
                "planning_prompt.yaml",
                "planning_prompt",
                tools=tools,
                max_steps=MAX_PLAN_STEPS,
            ),
        )

        response: ModelResponse = await acompletion(
            model=session.config.model_name,
            messages=session.context_manager.get_messages() + [planning_request],
        )
        plan = response.choices[0].message.content
        if not plan:
            return None

        session.context_manager.add_message(
            Message(role="user", content=f"{PLAN_NOTE_PREFIX}\n{plan}"),
            response.usage.total_tokens,
        )
        await session.send_event(Event(event_type="plan", data={"content": plan}))
        return plan

    @staticmethod
    @observe(name="run_agent")
    async def run_agent(
        session: Session, text: str, max_iterations: int | None = None
    ) -> str | None:
        """
        Handle user input.
        Returns the final assistant response content, if any.
        """
        if max_iterations is None:
            max_iterations = session.config.max_iterations

        if text:
            user_msg = Message(role="user", content=text)
            session.context_manager.add_message(user_msg)

        await session.send_event(
            Event(event_type="processing", data={"message": "Processing user input"})
        )

        # Agentic loop - continue until model doesn't call tools or max iterations is reached
        iteration = 0
        final_response = None

        while iteration < max_iterations:
            try:
                if _should_plan(session, iteration):
                    await Handlers.plan(session)

                messages = session.context_manager.get_messages()
                tools = session.tool_router.get_tool_specs_for_llm()

                response: ModelResponse = await acompletion(
                    model=session.config.model_name,
                    messages=messages,
                    tools=tools or None,
                    tool_choice="auto" if tools else None,
                )

                message = response.choices[0].message
                content = message.content
                token_count = response.usage.total_tokens
                tool_calls: list[ToolCall] = message.get("tool_calls") or []

                # If no tool calls, add assistant message and we're done
                if not tool_calls:
                    if content:
                        assistant_msg = Message(role="assistant", content=content)
                        session.context_manager.add_message(assistant_msg, token_count)
                        await session.send_event(
                            Event(
                                event_type="assistant_message",
                                data={"content": content},
                            )
                        )
                        final_response = content
                    break

                # LiteLLM formats the tool calls correctly for the provider
                assistant_msg = Message(
                    role="assistant",
                    content=content,
                    tool_calls=tool_calls,
                )
                session.context_manager.add_message(assistant_msg, token_count)

                if content:
                    await session.send_event(
                        Event(event_type="assistant_message", data={"content": content})
                    )

                for tc in tool_calls:
                    output, success = await Handlers._execute_tool_call(session, tc)
                    tool_msg = Message(
                        role="tool",
                        content=output,
                        tool_call_id=tc.id,
                        name=tc.function.name,
                    )
                    session.context_manager.add_message(tool_msg)

                iteration += 1

            except Exception as e:
                logger.exception("Agent turn failed")
                await session.send_event(
                    Event(event_type="error", data={"error": str(e)})
                )
                break
        else:
            await session.send_event(
                Event(
                    event_type="error",
                    data={
                        "error": f"Reached the maximum of {max_iterations} iterations without a final answer"
                    },
                )
            )

        old_length = session.context_manager.context_length
        await session.context_manager.compact(model_name=session.config.model_name)
        new_length = session.context_manager.context_length

        if new_length != old_length:
            await session.send_event(
                Event(
                    event_type="compacted",
                    data={"old_tokens": old_length, "new_tokens": new_length},
                )
            )

        await session.send_event(
            Event(
                event_type="turn_complete",
                data={"history_size": len(session.context_manager.items)},
            )
        )
        return final_response

    @staticmethod
    async def _execute_tool_call(session: Session, tc: ToolCall) -> tuple[str, bool]:
        tool_name = tc.function.name
        try:
            tool_args = _parse_tool_arguments(tc.function.arguments)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            output = f"Invalid arguments for {tool_name}: {str(e)}"
            await session.send_event(
                Event(
                    event_type="tool_output",
                    data={"tool": tool_name, "output": output, "success": False},
                )
            )
            return output, False

        await session.send_event(
            Event(
                event_type="tool_call",
                data={"tool": tool_name, "arguments": tool_args},
            )
        )

        output, success = await session.tool_router.call_tool(tool_name, tool_args)

        await session.send_event(
            Event(
                event_type="tool_output",
                data={"tool": tool_name, "output": output, "success": success},
            )
        )
        return output, success

    @staticmethod
    async def user_input(session: Session, text: str) -> None:
        """Run one turn as the session's current task so it can be interrupted"""
        history_size = len(session.context_manager.items)
        try:
            await Handlers.run_agent(session, text)
        except asyncio.CancelledError:
            # Drop the half-finished turn so no tool call is left without its result
            items = session.context_manager.items
            removed = max(len(items) - history_size, 0)
            del items[history_size:]
            logger.info(f"Turn interrupted, removed {removed} message(s)")
            await session.send_event(Event(event_type="interrupted"))
            await session.send_event(
                Event(
                    event_type="turn_complete",
                    data={"history_size": len(session.context_manager.items)},
                )
            )

    @staticmethod
    async def interrupt(session: Session) -> None:
        """Handle interrupt"""
        if not session.interrupt():
            logger.debug("Interrupt received with no turn running")

    @staticmethod
    async def compact(session: Session) -> None:
        """Handle compact"""
        old_length = session.context_manager.context_length
        await session.context_manager.compact(model_name=session.config.model_name)
        new_length = session.context_manager.context_length

        await session.send_event(
            Event(
                event_type="compact_complete",
                data={"old_tokens": old_length, "new_tokens": new_length},
            )
        )

    @staticmethod
    async def undo(session: Session) -> None:
        """Handle undo: drop the last user turn"""
        removed = session.context_manager.undo()
        await session.send_event(
            Event(event_type="undo_complete", data={"removed": removed})
        )

    @staticmethod
    async def reset(session: Session) -> None:
        """Handle reset: forget the whole conversation"""
        session.context_manager.reset()
        await session.send_event(Event(event_type="reset_complete"))

    @staticmethod
    async def shutdown(session: Session) -> bool:
        """Handle shutdown"""
        session.is_running = False
        await session.send_event(Event(event_type="shutdown"))
        return True


async def wait_for_turn(session: Session) -> None:
    """Wait until the session's current turn, if any, has finished"""
    if session.current_task and not session.current_task.done():
        await asyncio.wait([session.current_task])


async def process_submission(session: Session, submission: Submission) -> bool:
    """
    Process a single submission and return whether to continue running.

    Returns:
        bool: True to continue, False to shutdown
    """
    op = submission.operation
    logger.debug(f"Received: {op.op_type.value}")

    if op.op_type == OpType.INTERRUPT:
        await Handlers.interrupt(session)
        return True

    # Everything else waits for the running turn to finish
    await wait_for_turn(session)

    if op.op_type == OpType.USER_INPUT:
        text = op.data.get("text", "") if op.data else ""
        session.current_task = asyncio.create_task(Handlers.user_input(session, text))
        return True

    if op.op_type == OpType.COMPACT:
        await Handlers.compact(session)
        return True

    if op.op_type == OpType.UNDO:
        await Handlers.undo(session)
        return True

    if op.op_type == OpType.RESET:
        await Handlers.reset(session)
        return True

    if op.op_type == OpType.SHUTDOWN:
        return not await Handlers.shutdown(session)

    logger.warning(f"Unknown operation: {op.op_type}")
    return True


@observe(name="submission_loop")
async def submission_loop(
    submission_queue: asyncio.Queue,
    event_queue: asyncio.Queue,
    config: Config | None = None,
    tool_router: ToolRouter | None = None,
) -> None:
    """
    Main agent loop - processes submissions and dispatches to handlers.
    """
    session = Session(event_queue, config=config, tool_router=tool_router)
    logger.info(f"Agent loop started (session {session.session_id})")

    await session.send_event(
        Event(event_type="ready", data={"message": "Agent initialized"})
    )

    while session.is_running:
        submission = await submission_queue.get()

        try:
            should_continue = await process_submission(session, submission)
            if not should_continue:
                break
        except asyncio.CancelledError:
            session.interrupt()
            break
        except Exception as e:
            logger.exception("Error in agent loop")
            await session.send_event(Event(event_type="error", data={"error": str(e)}))
            await session.send_event(Event(event_type="turn_complete"))

    logger.info("Agent loop exited")


def create_session(
    config: Config | None = None,
    event_queue: asyncio.Queue | None = None,
    guests: list[dict[str, Any]] | None = None,
) -> Session:
    """Build a session wired with the gala tools enabled in the config"""
    config = config or Config()
    tool_router = ToolRouter(create_gala_tools(config, guests=guests))
    return Session(event_queue, config=config, tool_router=tool_router)


async def run_query(
    question: str,
    config: Config | None = None,
    session: Session | None = None,
) -> str | None:
    """
    Ask a single question and return the final answer.
    Reusing the same session keeps the conversation memory across calls.
    """
    session = session or create_session(config)
    return await Handlers.run_agent(session, question)
