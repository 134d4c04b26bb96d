# tests/test_commands.py

from __future__ import annotations

import asyncio

import pytest

from voice_tasks.cli.commands import CommandRegistry, format_tasks, registry
from voice_tasks.core.state import AppState
from voice_tasks.errors import InvalidInput, TranscriptionFailed

from .fakes import FakeSpeechEngine


@pytest.mark.asyncio
async def test_command_registry_routes_2_and_3_params(state: AppState) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2:" + ",".join(args)

    async def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert await reg.handle(state, "/a x y") == "h2:x,y"
    assert await reg.handle(state, "/BEE", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state: AppState) -> None:
    reg = CommandRegistry()

    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    assert "Empty command" in (await reg.handle(state, "/") or "")


@pytest.mark.asyncio
async def test_help_lists_commands(state: AppState) -> None:
    reply = await registry.handle(state, "/help") or ""

    for name in ("/add", "/list", "/done", "/del", "/history", "/clear", "/rec", "/say"):
        assert name in reply
    assert "Any other line is added as a task." in reply


@pytest.mark.asyncio
async def test_add_and_list(state: AppState) -> None:
    assert await registry.handle(state, "/add Buy milk") == "Added: Buy milk"
    await registry.handle(state, "/add Call Alice")

    reply = await registry.handle(state, "/ls") or ""

    assert reply.splitlines() == ["Current:", " 1. [ ] Buy milk", " 2. [ ] Call Alice"]


@pytest.mark.asyncio
async def test_add_blank_raises_invalid_input(state: AppState) -> None:
    with pytest.raises(InvalidInput):
        await registry.handle(state, "/add")


@pytest.mark.asyncio
async def test_done_then_archive_shows_in_history(state: AppState) -> None:
    state.store.add_task("Buy milk")
    state.store.add_task("Call Alice")

    reply = await registry.handle(state, "/done 1 7 x") or ""

    assert reply.startswith("Done: Buy milk (archives in 0s)")
    assert "Ignored: 7, x" in reply
    assert "[x] Buy milk" in (await registry.handle(state, "/list") or "")

    await asyncio.sleep(0.2)

    assert await registry.handle(state, "/history") == "History (newest first):\n  - [x] Buy milk"
    assert "Buy milk" not in (await registry.handle(state, "/list") or "")


@pytest.mark.asyncio
async def test_done_twice_reopens(state: AppState) -> None:
    state.store.add_task("Buy milk")

    await registry.handle(state, "/done 1")
    reply = await registry.handle(state, "/x 1")

    assert reply == "Reopened: Buy milk"
    assert state.scheduler.pending_ids() == []


@pytest.mark.asyncio
async def test_del_uses_list_numbers(state: AppState) -> None:
    for t in ("a", "b", "c"):
        state.store.add_task(t)

    reply = await registry.handle(state, "/del 3 1")

    assert reply == "Deleted: a\nDeleted: c"
    assert [t.text for t in state.store.active()] == ["b"]
    assert await registry.handle(state, "/rm 9") == "Ignored: 9"


@pytest.mark.asyncio
async def test_clear_history(state: AppState) -> None:
    task_id = state.store.add_task("Old")
    state.store.toggle_task(task_id)
    state.store.archive_if_still_completed(task_id)

    assert await registry.handle(state, "/clear") == "History cleared (1 item(s))."
    assert await registry.handle(state, "/history") == "No history yet."


@pytest.mark.asyncio
async def test_rec_starts_then_processes(state: AppState) -> None:
    notes: list[str] = []

    assert "Listening" in (await registry.handle(state, "/rec") or "")
    assert state.recorder.is_recording

    reply = await registry.handle(state, "/r", emit=notes.append)

    assert notes == ["Processing..."]
    assert reply == "Added 2 task(s):\n  + Buy milk\n  + Call Alice"
    assert not state.recorder.is_recording


@pytest.mark.asyncio
async def test_rec_failure_propagates_as_pipeline_error(state: AppState, speech: FakeSpeechEngine) -> None:
    speech.error = RuntimeError("offline")
    await registry.handle(state, "/rec")

    with pytest.raises(TranscriptionFailed):
        await registry.handle(state, "/rec")

    assert state.store.active() == ()


@pytest.mark.asyncio
async def test_say_runs_extraction(state: AppState, llm) -> None:
    llm.next_text = '{"tasks": []}'

    assert await registry.handle(state, "/say") == "Usage: /say <what you would have said>."
    assert await registry.handle(state, "/say lovely weather") == "No tasks found in what you said."


@pytest.mark.asyncio
async def test_status_reports_counts(state: AppState) -> None:
    state.store.add_task("Buy milk")

    reply = await registry.handle(state, "/status") or ""

    assert "Recorder: idle" in reply
    assert "Active: 1" in reply
    assert "Pending archive: 0" in reply


def test_format_tasks_unnumbered(state: AppState) -> None:
    state.store.add_task("Buy milk")

    assert format_tasks(state.store.active(), numbered=False) == "  - [ ] Buy milk"
