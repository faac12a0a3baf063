from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional
from discord_7dtd.classes.chat_reassembler import ChatReassembler
from discord_7dtd.classes.pending_responses import PendingResponses


class ConnectionState(IntEnum):
    UNKNOWN = -100
    ERROR = -1
    CONNECTING = 0
    ONLINE = 1


@dataclass
class RelayState:
    """Everything the relay mutates at runtime, owned by the event loop."""

    connection_state: ConnectionState = ConnectionState.UNKNOWN
    channel: Optional[Any] = None
    channel_id: Optional[str] = None
    set_channel_error: Optional[Exception] = None
    do_reconnect: bool = True
    connection_initialized: bool = False
    first_login: bool = False
    reassembler: ChatReassembler = field(default_factory=ChatReassembler)
    pending: PendingResponses = field(default_factory=PendingResponses)

    @property
    def channel_bound(self) -> bool:
        return self.channel_id is not None

    def bind_channel(self, channel):
        self.channel = channel
        self.channel_id = str(channel.id)
