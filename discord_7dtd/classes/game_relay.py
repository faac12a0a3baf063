import logging
import discord
from discord_7dtd.classes.app_config import AppConfig
from discord_7dtd.classes.chat_reassembler import BUFFERING
from discord_7dtd.classes.line_classifier import Chat, GlobalMessage, ShutdownNotice, password_error
from discord_7dtd.classes.relay_state import RelayState
from discord_7dtd.exceptions.chat_platform import RichMessageSendFailure

logger = logging.getLogger("GameRelay")

SHUTDOWN_COLOR = 14164000
PRIVATE_MARKER = "*(Private)*"
# Local connections echo our own `say` commands back as new output.
LOCAL_ECHO_PREFIX = "Server: ["
JOIN_LEAVE_SUFFIX = "the game"
COMMAND_MARKER = ": /"


class GameRelay:
    """Moves messages between the game console and the bound Discord channel."""

    def __init__(self, state: RelayState, config: AppConfig, chat, session, supervisor):
        self.state = state
        self.config = config
        self.chat = chat
        self.session = session
        self.supervisor = supervisor

    async def handle_data(self, data: str):
        password = password_error(data)
        if password is not None:
            if password.variant == "incorrect":
                self.supervisor.fatal("ERROR: Received password prompt! (Telnet password is incorrect)")
            else:
                self.supervisor.fatal("ERROR: Received password prompt!")
            return

        # Lines must be handled strictly in order: the reassembler and the
        # pending requests both depend on what came just before.
        for line in data.split("\n"):
            if line == "":
                continue
            await self.handle_line(line)

    async def handle_line(self, line: str):
        event = self.state.reassembler.feed(line)
        if event is BUFFERING:
            return

        request = self.state.pending.resolve(event)
        if request is not None:
            await request.complete(event)
            return

        if isinstance(event, ShutdownNotice):
            await self.handle_shutdown()
            return

        await self.relay_event(event)

    def format_event(self, event):
        """Apply the relay filters; returns the Discord text or None to drop."""
        if isinstance(event, Chat):
            if self.config.get_flag("disable-chatmsgs"):
                return None
            msg = event.body
            if event.is_private:
                if not self.config.get_flag("show-private-chat"):
                    return None
                msg = f"{PRIVATE_MARKER} {msg}"
        elif isinstance(event, GlobalMessage):
            if self.config.get_flag("disable-gmsgs"):
                return None
            msg = event.body
            join_leave = msg.endswith(JOIN_LEAVE_SUFFIX)
            if join_leave and self.config.get_flag("disable-join-leave-gmsgs"):
                return None
            if not join_leave and self.config.get_flag("disable-misc-gmsgs"):
                return None
        else:
            return None

        if msg.startswith(LOCAL_ECHO_PREFIX):
            return None
        # Looks like someone typed a command in-game.
        if not self.config.get_flag("hide-prefix") and COMMAND_MARKER in msg:
            return None
        if not msg:
            return None
        return msg

    async def relay_event(self, event):
        if self.state.channel is None:
            return
        msg = self.format_event(event)
        if msg is None:
            return
        if self.config.get_flag("log-messages"):
            logger.info(msg)
        try:
            await self.chat.send_to_channel(self.state.channel, content=msg)
        except Exception as e:
            logger.error(f"Failed to relay message to Discord: {e}")

    async def handle_shutdown(self):
        # Keeping the session around after this crashes the next `say`.
        logger.info("The server has shut down. Closing connection...")
        self.session.destroy()
        if self.state.channel is None:
            return
        embed = discord.Embed(color=SHUTDOWN_COLOR, description="The server has shut down.")
        try:
            try:
                await self.chat.send_to_channel(self.state.channel, embed=embed)
            except RichMessageSendFailure:
                await self.chat.send_to_channel(self.state.channel, content="**The server has shut down.**")
        except Exception as e:
            logger.error(f"Failed to send message with error: {e}")

    async def send_to_game(self, username: str, content: str):
        if self.config.get_flag("disable-chatmsgs"):
            return
        # The response also arrives on the data stream, which relays it.
        try:
            await self.session.execute(f'say "[{username}] {content}"')
        except Exception as e:
            logger.error(f"Error while attempting to send message: {e}")
