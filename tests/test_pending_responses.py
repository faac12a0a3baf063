from __future__ import annotations

import pytest

from discord_7dtd.classes.line_classifier import DayInfo, PlayerCount, VersionInfo, classify
from discord_7dtd.classes.pending_responses import PendingResponses


async def _noop(event, origin) -> None:
    return None


def test_resolve_returns_the_request_once() -> None:
    pending = PendingResponses()
    request = pending.register(PlayerCount, "channel", _noop)

    assert pending.resolve(classify("Total of 1 in the game")) is request
    assert pending.resolve(classify("Total of 1 in the game")) is None
    assert pending.pending(PlayerCount) is None


def test_other_shapes_do_not_resolve() -> None:
    pending = PendingResponses()
    pending.register(PlayerCount, "channel", _noop)

    assert pending.resolve(classify("Day 4, 12:00")) is None
    assert pending.pending(PlayerCount) is not None


def test_newer_request_of_the_same_shape_wins() -> None:
    pending = PendingResponses()
    pending.register(VersionInfo, "first", _noop)
    pending.register(VersionInfo, "second", _noop)

    request = pending.resolve(classify("Game version: Alpha 21"))
    assert request.origin == "second"


def test_shapes_have_independent_slots() -> None:
    pending = PendingResponses()
    pending.register(DayInfo, "time", _noop)
    pending.register(VersionInfo, "version", _noop)
    pending.register(PlayerCount, "players", _noop)

    assert pending.resolve(classify("Total of 0 in the game")).origin == "players"
    assert pending.resolve(classify("Day 2, 01:00")).origin == "time"
    assert pending.resolve(classify("Game version: Alpha 21")).origin == "version"


def test_stale_requests_are_dropped_when_a_timeout_is_set() -> None:
    now = [100.0]
    pending = PendingResponses(timeout=30, clock=lambda: now[0])
    pending.register(PlayerCount, "channel", _noop)

    now[0] += 31
    assert pending.resolve(classify("Total of 0 in the game")) is None
    assert pending.pending(PlayerCount) is None


def test_requests_never_expire_by_default() -> None:
    now = [0.0]
    pending = PendingResponses(clock=lambda: now[0])
    pending.register(PlayerCount, "channel", _noop)

    now[0] += 10_000_000
    assert pending.resolve(classify("Total of 0 in the game")) is not None


@pytest.mark.asyncio
async def test_complete_passes_event_and_origin_to_the_responder() -> None:
    received = []

    async def respond(event, origin) -> None:
        received.append((event, origin))

    pending = PendingResponses()
    pending.register(DayInfo, "channel", respond)
    event = classify("Day 7, 22:00")
    await pending.resolve(event).complete(event)

    assert received == [(event, "channel")]
