"""
Interactive CLI chat with Alfred
"""

import argparse
import asyncio
import logging
import os
import sys

import litellm
from dotenv import load_dotenv
from lmnr import Laminar, LaminarLiteLLMCallback

from alfred.config import DEFAULT_CONFIG_PATH, Config, ConfigError, load_config
from alfred.core.agent_loop import Handlers, create_session, submission_loop
from alfred.core.session import Event, Operation, OpType, Submission
from alfred.core.tools import ToolRouter, create_gala_tools
from alfred.utils.terminal_display import (
    format_answer,
    format_error,
    format_plan,
    format_tool_call,
    format_tool_output,
)

logger = logging.getLogger(__name__)

litellm.drop_params = True

EXIT_COMMANDS = ["exit", "quit", "/quit", "/exit"]
SLASH_COMMANDS = {"/reset": OpType.RESET, "/undo": OpType.UNDO, "/compact": OpType.COMPACT}
# Events that end a submission and hand the prompt back to the user
TURN_END_EVENTS = {"turn_complete", "undo_complete", "reset_complete", "compact_complete"}


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for noisy in ("LiteLLM", "litellm", "httpx", "huggingface_hub"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def setup_tracing() -> None:
    lmnr_api_key = os.environ.get("LMNR_API_KEY")
    if not lmnr_api_key:
        return
    try:
        Laminar.initialize(project_api_key=lmnr_api_key)
        litellm.callbacks = [LaminarLiteLLMCallback()]
        logger.info("Laminar initialized")
    except Exception as e:
        logger.warning(f"Failed to initialize Laminar: {e}")


def print_event(event: Event, show_answer: bool = True) -> None:
    """Display a single agent event"""
    data = event.data or {}
    if event.event_type == "assistant_message" and show_answer:
        if data.get("content"):
            print(format_answer(data["content"]))
    elif event.event_type == "plan":
        print(format_plan(data.get("content", "")))
    elif event.event_type == "tool_call":
        print(format_tool_call(data.get("tool", ""), data.get("arguments", {})))
    elif event.event_type == "tool_output":
        print(format_tool_output(data.get("output", ""), data.get("success", False)))
    elif event.event_type == "error":
        print(format_error(data.get("error", "Unknown error")))
    elif event.event_type in ("compacted", "compact_complete"):
        print(
            f"📦 Compacted context: {data.get('old_tokens', 0)} → {data.get('new_tokens', 0)} tokens"
        )
    elif event.event_type == "undo_complete":
        print(f"↩️  Removed {data.get('removed', 0)} message(s)")
    elif event.event_type == "reset_complete":
        print("🧹 Conversation cleared")
    elif event.event_type == "interrupted":
        print("⏹️  Interrupted")


async def event_listener(
    event_queue: asyncio.Queue,
    turn_complete_event: asyncio.Event,
    ready_event: asyncio.Event,
) -> None:
    """Background task that listens for events and displays them"""
    while True:
        try:
            event = await event_queue.get()
            print_event(event)

            if event.event_type == "ready":
                ready_event.set()
            elif event.event_type in TURN_END_EVENTS:
                turn_complete_event.set()
            elif event.event_type == "shutdown":
                break

        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"Event listener error: {e}")


async def get_user_input() -> str:
    """Get user input asynchronously"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, input, "You: ")


async def chat_native(config: Config) -> None:
    """Interactive chat driven by the native agent loop"""
    submission_queue: asyncio.Queue = asyncio.Queue()
    event_queue: asyncio.Queue = asyncio.Queue()

    turn_complete_event = asyncio.Event()
    turn_complete_event.set()
    ready_event = asyncio.Event()

    tool_router = ToolRouter(create_gala_tools(config))
    agent_task = asyncio.create_task(
        submission_loop(submission_queue, event_queue, config=config, tool_router=tool_router)
    )
    listener_task = asyncio.create_task(
        event_listener(event_queue, turn_complete_event, ready_event)
    )
    await ready_event.wait()

    submission_id = 0
    try:
        while True:
            await turn_complete_event.wait()
            turn_complete_event.clear()

            try:
                user_input = (await get_user_input()).strip()
            except EOFError:
                break

            if user_input.lower() in EXIT_COMMANDS:
                break
            if not user_input:
                turn_complete_event.set()
                continue

            submission_id += 1
            if user_input.lower() in SLASH_COMMANDS:
                operation = Operation(op_type=SLASH_COMMANDS[user_input.lower()])
            else:
                operation = Operation(op_type=OpType.USER_INPUT, data={"text": user_input})
            await submission_queue.put(Submission(id=f"sub_{submission_id}", operation=operation))

    except KeyboardInterrupt:
        print("\n\n⚠️ Interrupted by user")

    await submission_queue.put(
        Submission(id="sub_shutdown", operation=Operation(op_type=OpType.SHUTDOWN))
    )
    await asyncio.wait_for(agent_task, timeout=2.0)
    listener_task.cancel()


async def chat_graph(config: Config) -> None:
    """Interactive chat driven by the LangGraph agent"""
    from alfred.graph import GraphAgent

    agent = GraphAgent(ToolRouter(create_gala_tools(config)), config=config)
    while True:
        try:
            user_input = (await get_user_input()).strip()
        except (EOFError, KeyboardInterrupt):
            break

        if user_input.lower() in EXIT_COMMANDS:
            break
        if not user_input:
            continue
        if user_input.lower() == "/reset":
            agent.new_thread()
            print("🧹 Conversation cleared")
            continue

        try:
            answer = await agent.ask(user_input)
        except Exception as e:
            logger.exception("Graph agent failed")
            print(format_error(str(e)))
            continue
        if answer is None:
            print(format_error("No answer was produced"))
        else:
            print(format_answer(answer))


async def ask_once(config: Config, question: str) -> str | None:
    """Answer a single question with the configured backend"""
    if config.backend == "graph":
        from alfred.graph import GraphAgent

        agent = GraphAgent(ToolRouter(create_gala_tools(config)), config=config)
        return await agent.ask(question)

    session = create_session(config)
    listener = asyncio.create_task(_drain_events(session.event_queue))
    try:
        return await Handlers.run_agent(session, question)
    finally:
        listener.cancel()


async def _drain_events(event_queue: asyncio.Queue) -> None:
    while True:
        event = await event_queue.get()
        print_event(event, show_answer=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alfred", description="Alfred, the gala host agent"
    )
    parser.add_argument("-q", "--query", help="Ask a single question and exit")
    parser.add_argument(
        "--backend",
        choices=["native", "graph"],
        help="Orchestrator: native tool-calling loop or LangGraph message graph",
    )
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to config JSON")
    parser.add_argument("--model", help="Override the model name (LiteLLM format)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    config = load_config(args.config)
    overrides = {}
    if args.backend:
        overrides["backend"] = args.backend
    if args.model:
        overrides["model_name"] = args.model
    return config.model_copy(update=overrides) if overrides else config


async def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    setup_logging(args.verbose)
    setup_tracing()

    try:
        config = resolve_config(args)
    except ConfigError as e:
        print(format_error(str(e)), file=sys.stderr)
        return 2

    if args.query:
        answer = await ask_once(config, args.query)
        if answer is None:
            print(format_error("No answer was produced"), file=sys.stderr)
            return 1
        print(answer)
        return 0

    print("=" * 60)
    print("🎩 Alfred - Gala Host Agent")
    print("=" * 60)
    print("Type your messages below. Type 'exit', 'quit', or '/quit' to end.")
    if config.backend == "graph":
        print("Commands: /reset\n")
        await chat_graph(config)
    else:
        print("Commands: /reset, /undo, /compact\n")
        await chat_native(config)

    print("✨ Goodbye!\n")
    return 0


def cli() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n\n✨ Goodbye!")


if __name__ == "__main__":
    cli()
