from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from discord_7dtd.classes.app_config import AppConfig
from discord_7dtd.classes.command_processor import CommandProcessor
from discord_7dtd.classes.game_relay import GameRelay
from discord_7dtd.classes.reconnect_supervisor import ReconnectSupervisor
from discord_7dtd.classes.relay_state import RelayState
from discord_7dtd.classes.status_manager import StatusManager
from discord_7dtd.classes.telnet_session import SessionEvents
from discord_7dtd.exceptions.chat_platform import RichMessageSendFailure

GUILD = SimpleNamespace(id=1, name="Survivors")
OTHER_GUILD = SimpleNamespace(id=2, name="Elsewhere")


def make_channel(channel_id: int = 100, guild=GUILD):
    return SimpleNamespace(id=channel_id, guild=guild, name=f"channel-{channel_id}")


class FakeAuthor:
    def __init__(self, author_id: int = 5, name: str = "Bob", bot: bool = False, manage: bool = False):
        self.id = author_id
        self.name = name
        self.bot = bot
        self.guild_permissions = SimpleNamespace(manage_guild=manage)
        self.dms: list[str] = []

    async def send(self, content):
        self.dms.append(content)

    def __str__(self) -> str:
        return self.name


def make_message(content: str, channel=None, *, guild=GUILD, author=None, channel_mentions=()):
    channel = channel if channel is not None else make_channel()
    return SimpleNamespace(
        id=42,
        content=content,
        clean_content=content,
        channel=channel,
        guild=guild,
        author=author or FakeAuthor(),
        channel_mentions=list(channel_mentions),
    )


class FakeChat:
    def __init__(self, user_id: int = 999):
        self.user = SimpleNamespace(id=user_id, bot=True)
        self.sent: list[SimpleNamespace] = []
        self.presence: list[tuple[str, str]] = []
        self.channels: dict[int, SimpleNamespace] = {}
        self.fail_embeds = False
        self.closed = False

    async def send_to_channel(self, channel, content=None, embed=None):
        if embed is not None and self.fail_embeds:
            raise RichMessageSendFailure("403 Forbidden (error code: 50013): Missing Permissions")
        self.sent.append(SimpleNamespace(channel=channel, content=content, embed=embed))

    async def update_presence(self, activity: str, status: str) -> None:
        self.presence.append((activity, status))

    async def find_channel(self, channel_id):
        return self.channels.get(int(channel_id))

    async def close(self) -> None:
        self.closed = True

    @property
    def texts(self) -> list[str]:
        return [item.content for item in self.sent if item.content is not None]


class FakeSession(SessionEvents):
    def __init__(self, responses: dict | None = None):
        super().__init__()
        self.responses = responses or {}
        self.executed: list[str] = []
        self.connects = 0
        self.destroyed = False
        self.terminated = 0

    async def connect(self):
        self.connects += 1
        return True

    async def execute(self, command: str) -> str:
        self.executed.append(command)
        response = self.responses.get(command, "")
        if isinstance(response, Exception):
            raise response
        return response

    def destroy(self) -> None:
        self.destroyed = True

    def terminate(self) -> None:
        self.terminated += 1


@pytest.fixture
def make_config(tmp_path):
    def _make(**values) -> AppConfig:
        path = tmp_path / "config.json"
        path.write_text(json.dumps(values))
        return AppConfig(config_path=str(path))

    return _make


class Harness:
    def __init__(self, config: AppConfig, responses: dict | None = None):
        self.config = config
        self.state = RelayState(channel_id=config.get_channel_id())
        self.chat = FakeChat()
        self.session = FakeSession(responses)
        self.supervisor = ReconnectSupervisor(self.state)
        self.status = StatusManager(self.state, self.chat, prefix=config.get_command_prefix())
        self.relay = GameRelay(self.state, config, self.chat, self.session, self.supervisor)
        self.processor = CommandProcessor(self.state, config, self.chat, self.session, self.status, self.relay)

    def bind(self, channel) -> None:
        self.state.bind_channel(channel)


@pytest.fixture
def harness(make_config):
    def _make(responses: dict | None = None, **config_values) -> Harness:
        return Harness(make_config(**config_values), responses)

    return _make
