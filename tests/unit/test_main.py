"""
Unit tests for the interactive CLI event handling.
"""

import asyncio
from unittest.mock import AsyncMock, patch

from alfred.core.session import Event
from alfred.main import event_listener, main


async def _listen(*events):
    queue: asyncio.Queue = asyncio.Queue()
    for event in events:
        queue.put_nowait(event)
    queue.put_nowait(Event(event_type="shutdown"))

    turn_complete = asyncio.Event()
    ready = asyncio.Event()
    await asyncio.wait_for(event_listener(queue, turn_complete, ready), timeout=5)
    return turn_complete, ready


class TestEventListener:
    async def test_ready_sets_ready_only(self):
        turn_complete, ready = await _listen(Event(event_type="ready"))

        assert ready.is_set()
        assert not turn_complete.is_set()

    async def test_mid_turn_events_keep_prompt_blocked(self):
        turn_complete, _ = await _listen(
            Event(event_type="processing"),
            Event(event_type="error", data={"error": "provider down"}),
            Event(event_type="compacted", data={"old_tokens": 5000, "new_tokens": 300}),
            Event(event_type="interrupted"),
        )

        assert not turn_complete.is_set()

    async def test_turn_complete_releases_prompt_once(self):
        queue: asyncio.Queue = asyncio.Queue()
        turn_complete = asyncio.Event()
        listener = asyncio.create_task(
            event_listener(queue, turn_complete, asyncio.Event())
        )

        await queue.put(Event(event_type="error", data={"error": "provider down"}))
        await asyncio.sleep(0)
        assert not turn_complete.is_set()

        await queue.put(Event(event_type="turn_complete"))
        await asyncio.wait_for(turn_complete.wait(), timeout=5)

        await queue.put(Event(event_type="shutdown"))
        await asyncio.wait_for(listener, timeout=5)

    async def test_command_completions_release_prompt(self):
        for event_type in ("undo_complete", "reset_complete", "compact_complete"):
            turn_complete, _ = await _listen(Event(event_type=event_type))

            assert turn_complete.is_set(), event_type


class TestOneShot:
    async def test_no_answer_exit_code(self, capsys):
        with patch("alfred.main.ask_once", new=AsyncMock(return_value=None)):
            code = await main(["-q", "Weather in Paris?"])

        assert code == 1
        assert "No answer was produced" in capsys.readouterr().err

    async def test_answer_printed(self, capsys):
        with patch("alfred.main.ask_once", new=AsyncMock(return_value="Clear skies.")):
            code = await main(["-q", "Weather in Paris?"])

        assert code == 0
        assert "Clear skies." in capsys.readouterr().out
