from __future__ import annotations

from discord_7dtd.classes.chat_reassembler import BUFFERING, TRUNCATED_LINE_LENGTH, ChatReassembler
from discord_7dtd.classes.line_classifier import Chat, DayInfo, classify

HEAD = "2024-01-01T00:00:00 {uptime} INF Chat (from 'Steam_1', entity id"
TAIL = "'1', to 'Global'): hello there"


def truncated_pair() -> tuple[str, str, str]:
    padding = TRUNCATED_LINE_LENGTH - len(HEAD.format(uptime=""))
    first = HEAD.format(uptime="1" * padding)
    assert len(first) == TRUNCATED_LINE_LENGTH
    return first, TAIL, f"{first} {TAIL}"


def test_truncated_chat_line_is_buffered_then_merged() -> None:
    first, second, whole = truncated_pair()
    reassembler = ChatReassembler()

    assert reassembler.feed(first) is BUFFERING
    assert reassembler.waiting

    merged = reassembler.feed(second)
    assert merged == classify(whole)
    assert isinstance(merged, Chat)
    assert merged.body == "hello there"
    assert not reassembler.waiting


def test_continuation_is_forced_to_chat_whatever_it_looks_like() -> None:
    first, _, _ = truncated_pair()
    reassembler = ChatReassembler()
    reassembler.feed(first)

    merged = reassembler.feed("Day 3, 10:00")
    assert isinstance(merged, Chat)
    # The line after that is back to normal classification.
    assert isinstance(reassembler.feed("Day 3, 10:00"), DayInfo)


def test_only_chat_lines_are_held_back() -> None:
    line = "2024-01-01T00:00:00 55.5 INF GMSG: Player 'Alice' joined the gam"
    line = line + "e" * (TRUNCATED_LINE_LENGTH - len(line))
    assert len(line) == TRUNCATED_LINE_LENGTH

    reassembler = ChatReassembler()
    assert reassembler.feed(line) is not BUFFERING
    assert not reassembler.waiting


def test_chat_lines_of_other_lengths_pass_straight_through() -> None:
    reassembler = ChatReassembler()
    event = reassembler.feed("2024-01-01T00:00:00 123.45 INF Chat (from 'Steam_1', entity id '1', to 'Global'): hi")
    assert isinstance(event, Chat)
    assert event.body == "hi"


def test_buffering_sentinel_is_falsy() -> None:
    assert not BUFFERING
