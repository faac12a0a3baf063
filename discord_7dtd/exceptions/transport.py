from enum import Enum


class TransportAuthFailure(Exception):
    """The game server refused the telnet password, or asked for it again mid-session."""


class CommandFailureKind(Enum):
    NOT_RESPONDING = "response not received"
    NOT_CONNECTED = "socket not writable"
    OTHER = "other"


class TransportCommandFailure(Exception):
    def __init__(self, kind: CommandFailureKind, message: str = None):
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)

    @classmethod
    def not_responding(cls):
        return cls(CommandFailureKind.NOT_RESPONDING)

    @classmethod
    def not_connected(cls):
        return cls(CommandFailureKind.NOT_CONNECTED)

    @classmethod
    def other(cls, message: str):
        return cls(CommandFailureKind.OTHER, message)
