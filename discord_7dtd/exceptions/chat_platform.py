class ChatPlatformAuthFailure(Exception):
    """Discord rejected the configured bot token."""


class ChatPlatformTransientDisconnect(Exception):
    def __init__(self, reason: str, code: int = None):
        self.reason = reason
        self.code = code
        super().__init__(f"{reason} ({code})")


class ChannelResolutionFailure(Exception):
    pass


class RichMessageSendFailure(Exception):
    pass
