from __future__ import annotations

import asyncio

import pytest

from discord_7dtd.classes.reconnect_supervisor import ReconnectSupervisor
from discord_7dtd.classes.relay_state import RelayState


@pytest.mark.asyncio
async def test_callback_runs_after_the_delay() -> None:
    supervisor = ReconnectSupervisor(RelayState())
    calls = []

    supervisor.schedule(0, lambda: calls.append("sync"))
    await asyncio.sleep(0.01)

    assert calls == ["sync"]
    assert supervisor.tasks == set()


@pytest.mark.asyncio
async def test_coroutine_callbacks_are_awaited() -> None:
    supervisor = ReconnectSupervisor(RelayState())
    calls = []

    async def connect():
        calls.append("connect")

    await supervisor.schedule(0, connect)
    assert calls == ["connect"]


@pytest.mark.asyncio
async def test_nothing_is_scheduled_after_shutdown() -> None:
    supervisor = ReconnectSupervisor(RelayState())
    supervisor.shutdown()

    assert supervisor.schedule(0, lambda: None) is None


@pytest.mark.asyncio
async def test_flag_is_checked_again_when_the_delay_expires() -> None:
    state = RelayState()
    supervisor = ReconnectSupervisor(state)
    calls = []

    task = supervisor.schedule(0.01, lambda: calls.append("late"))
    state.do_reconnect = False
    await task

    assert calls == []


@pytest.mark.asyncio
async def test_shutdown_cancels_waiting_attempts() -> None:
    supervisor = ReconnectSupervisor(RelayState())
    calls = []

    task = supervisor.schedule(3600, lambda: calls.append("never"))
    supervisor.shutdown()
    await asyncio.sleep(0)

    assert task.cancelled()
    assert calls == []
    assert await supervisor.wait() == 0


@pytest.mark.asyncio
async def test_failed_attempts_are_contained() -> None:
    supervisor = ReconnectSupervisor(RelayState())

    async def broken():
        raise ConnectionRefusedError("refused")

    await supervisor.schedule(0, broken)
    assert supervisor.active


@pytest.mark.asyncio
async def test_fatal_stops_with_exit_code_one() -> None:
    state = RelayState()
    supervisor = ReconnectSupervisor(state)

    supervisor.fatal("Login to game failed!")
    supervisor.shutdown()

    assert state.do_reconnect is False
    assert await supervisor.wait() == 1
