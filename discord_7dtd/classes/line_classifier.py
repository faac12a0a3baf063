"""Classification of raw 7 Days to Die telnet console lines.

The game's console output is an unversioned log format. Everything here works
on the position of space-separated tokens, e.g.::

    2024-01-01T00:00:00 123.45 INF Chat (from 'Steam_1', entity id '1', to 'Global'): hello
    0                   1      2   3    4     5           6      7  8    9   10         11

Keep all knowledge of that layout in this module so it can be swapped out if
the server format changes.
"""
import math, re
from dataclasses import dataclass
from typing import List, Optional

PASSWORD_PROMPT = "Please enter password:\r\n\u0000\u0000"
PASSWORD_INCORRECT = "Password incorrect, please enter password:\r\n"

GLOBAL_TARGET = "'Global'):"
HORDE_INTERVAL = 7

_SOURCE_ANNOTATION = re.compile(r" *\([^)]*\): *")
_SPEAKER = re.compile(r"\(from '([^']*)'")


@dataclass(frozen=True)
class ClassifiedEvent:
    raw: str


@dataclass(frozen=True)
class Chat(ClassifiedEvent):
    speaker: Optional[str]
    body: str
    is_private: bool


@dataclass(frozen=True)
class GlobalMessage(ClassifiedEvent):
    body: str


@dataclass(frozen=True)
class DayInfo(ClassifiedEvent):
    day: int
    horde_countdown: int

    @property
    def text(self):
        return self.raw.rstrip("\r")


@dataclass(frozen=True)
class VersionInfo(ClassifiedEvent):
    text: str


@dataclass(frozen=True)
class PlayerCount(ClassifiedEvent):
    text: str


@dataclass(frozen=True)
class ShutdownNotice(ClassifiedEvent):
    pass


@dataclass(frozen=True)
class PasswordError(ClassifiedEvent):
    # "prompt": the server asked for the password again; "incorrect": it was rejected.
    variant: str


@dataclass(frozen=True)
class Unclassified(ClassifiedEvent):
    pass


def horde_countdown(day: int) -> int:
    return (math.floor(day / HORDE_INTERVAL) + 1) * HORDE_INTERVAL - day


def password_error(data: str) -> Optional[PasswordError]:
    if data == PASSWORD_PROMPT:
        return PasswordError(raw=data, variant="prompt")
    if data == PASSWORD_INCORRECT:
        return PasswordError(raw=data, variant="incorrect")
    return None


def tokenize(line: str) -> List[str]:
    return line.split(" ")


def type_token(tokens: List[str]) -> Optional[str]:
    if len(tokens) < 4:
        return None
    return tokens[3].replace(":", "", 1)


def _clean(text: str) -> str:
    # Drop the quoting around player names and the line terminator.
    return text.replace("'", "", 2).replace("\r", "").replace("\n", "").strip()


def _token(tokens: List[str], index: int) -> Optional[str]:
    return tokens[index] if len(tokens) > index else None


def parse_chat(tokens: List[str], raw: str) -> Chat:
    msg = " " + " ".join(tokens[4:])
    speaker = None
    match = _SPEAKER.search(msg)
    if match:
        speaker = match.group(1)
    msg = _SOURCE_ANNOTATION.sub("", msg, count=1)
    is_private = GLOBAL_TARGET not in (_token(tokens, 10), _token(tokens, 11))
    return Chat(raw=raw, speaker=speaker, body=_clean(msg), is_private=is_private)


def parse_day(line: str) -> Optional[DayInfo]:
    day_text = line.split(",")[0].replace("Day ", "", 1).strip()
    try:
        day = int(day_text)
    except ValueError:
        return None
    return DayInfo(raw=line, day=day, horde_countdown=horde_countdown(day))


def is_shutdown(tokens: List[str]) -> bool:
    return (
        _token(tokens, 2) == "INF"
        and _token(tokens, 3) == "[NET]"
        and (_token(tokens, 4) or "").rstrip("\r") == "ServerShutdown"
    )


def classify_tokens(tokens: List[str], raw: str, force_chat: bool = False):
    if force_chat:
        return parse_chat(tokens, raw)
    kind = type_token(tokens)
    if kind == "Chat":
        return parse_chat(tokens, raw)
    if kind == "GMSG":
        return GlobalMessage(raw=raw, body=_clean(" ".join(tokens[4:])))
    return Unclassified(raw=raw)


def classify(line: str) -> ClassifiedEvent:
    """Map one raw console line to exactly one event."""
    password = password_error(line)
    if password is not None:
        return password

    if line.startswith("Day"):
        day_info = parse_day(line)
        if day_info is not None:
            return day_info
    if line.startswith("Game version:"):
        return VersionInfo(raw=line, text=line.rstrip("\r"))
    if line.startswith("Total of "):
        return PlayerCount(raw=line, text=line.rstrip("\r"))

    tokens = tokenize(line)
    if is_shutdown(tokens):
        return ShutdownNotice(raw=line)
    return classify_tokens(tokens, line)
