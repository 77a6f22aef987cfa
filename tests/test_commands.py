# tests/test_commands.py

from __future__ import annotations

import pytest

from offline_sync.cli.bootstrap import close_state, create_initial_state
from offline_sync.cli.commands import CommandRegistry, registry

from .fakes import RecordingExecutor


@pytest.mark.asyncio
async def test_command_registry_routes_sync_and_async_handlers(settings) -> None:
    state = create_initial_state(settings=settings)
    reg = CommandRegistry()
    called = {"sync": 0, "async": 0}

    def h_sync(state, args):
        called["sync"] += 1
        return "s:" + ",".join(args)

    async def h_async(state, args):
        called["async"] += 1
        return "a"

    reg.register("a", h_sync, "a", aliases=["aa"])
    reg.register("b", h_async, "b")

    assert await reg.handle(state, "/a x y") == "s:x,y"
    assert await reg.handle(state, "/AA") == "s:"
    assert await reg.handle(state, "/b") == "a"
    assert called == {"sync": 2, "async": 1}

    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")
    await close_state(state)


@pytest.mark.asyncio
async def test_enqueue_offline_then_online_delivers(settings) -> None:
    state = create_initial_state(settings=settings)
    executor = RecordingExecutor()
    state.manager.dispatcher.register("contact-form", executor)

    assert "offline" in (await registry.handle(state, "/offline") or "").lower()
    reply = await registry.handle(state, '/enqueue contact-form contact-form {"email": "a@b.com"}')
    assert reply is not None and "will be sent when back online" in reply
    assert executor.calls == []

    await registry.handle(state, "/online")
    await state.manager.wait_idle()

    assert executor.calls == [{"email": "a@b.com"}]
    status = await registry.handle(state, "/status") or ""
    assert "contact-form: 0 pending" in status
    await close_state(state)


@pytest.mark.asyncio
async def test_enqueue_rejects_unknown_queue(settings) -> None:
    state = create_initial_state(settings=settings)

    reply = await registry.handle(state, "/enqueue nope kind")

    assert reply is not None and "Unknown queue" in reply
    assert "contact-form" in reply
    await close_state(state)


@pytest.mark.asyncio
async def test_process_and_failed_listing(settings) -> None:
    state = create_initial_state(settings=settings)
    await registry.handle(state, "/offline")
    state.manager.enqueue("analytics", "unregistered", {"event": "x"}, max_retries=1)

    await registry.handle(state, "/process analytics")
    failed = await registry.handle(state, "/failed") or ""

    assert "analytics/unregistered" in failed
    assert "after 1 attempts" in failed
    await close_state(state)


def test_help_lists_registered_commands() -> None:
    text = registry.build_help()
    for name in ("/status", "/enqueue", "/process", "/failed", "/cleanup", "/online", "/offline"):
        assert name in text
