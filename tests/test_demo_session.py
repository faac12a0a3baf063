from __future__ import annotations

import pytest

from discord_7dtd.classes.demo_session import DemoSession

from .conftest import make_channel, make_message


@pytest.mark.asyncio
async def test_connect_emits_ready() -> None:
    session = DemoSession()
    ready = []

    async def on_ready():
        ready.append(True)

    session.on("ready", on_ready)
    assert await session.connect() is True
    assert ready == [True]


@pytest.mark.asyncio
async def test_canned_responses_answer_the_query_commands(harness) -> None:
    h = harness()
    h.session = h.processor.session = DemoSession()
    channel = make_channel()
    h.bind(channel)

    for command in ("7d!time", "7d!version", "7d!players"):
        await h.processor.process_message(make_message(command, channel))

    assert h.session.executed == ["gettime", "version", "lp"]
    assert h.chat.texts == [
        "Day 1, 07:00\n6 days to next horde.",
        "Game version: Alpha 17 (b240) Compatibility Version: Alpha 17 (Simulated)",
        "Total of 0 in the game",
    ]
