import logging
import discord
from discord_7dtd import __version__
from discord_7dtd.classes.app_config import AppConfig
from discord_7dtd.classes.line_classifier import DayInfo, PlayerCount, VersionInfo, classify
from discord_7dtd.classes.relay_state import ConnectionState, RelayState
from discord_7dtd.exceptions.chat_platform import RichMessageSendFailure
from discord_7dtd.exceptions.config import ConfigPersistFailure
from discord_7dtd.exceptions.transport import CommandFailureKind, TransportCommandFailure

logger = logging.getLogger("CommandProcessor")

# These always work, whatever prefix is configured.
DEFAULT_INFO_COMMANDS = ("7d!info", "7d!help")

STATUS_MESSAGES = {
    ConnectionState.ERROR: ":red_circle: Error",
    ConnectionState.CONNECTING: ":white_circle: Connecting...",
    ConnectionState.ONLINE: ":large_blue_circle: Online",
}


def horde_message(event: DayInfo) -> str:
    days = event.horde_countdown
    return f"{event.text}\n{days} day{'' if days == 1 else 's'} to next horde."


class CommandProcessor:
    def __init__(self, state: RelayState, config: AppConfig, chat, session, status_manager, relay):
        self.state = state
        self.config = config
        self.chat = chat
        self.session = session
        self.status_manager = status_manager
        self.relay = relay
        self.command_handlers = {
            "INFO": self.info,
            "I": self.info,
            "HELP": self.info,
            "H": self.info,
        }
        # Commands that talk to the game server; switched off by disable-commands.
        self.game_command_handlers = {
            "TIME": self.time,
            "T": self.time,
            "DAY": self.time,
            "VERSION": self.version,
            "V": self.version,
            "PLAYERS": self.players,
            "P": self.players,
            "PL": self.players,
            "LP": self.players,
        }

    @property
    def prefix(self) -> str:
        return self.config.get_command_prefix()

    def is_mentioned(self, message) -> bool:
        user = self.chat.user
        content = message.content
        if user is not None and (f"<@{user.id}>" in content or f"<@!{user.id}>" in content):
            return True
        return content in DEFAULT_INFO_COMMANDS

    def parse_command(self, content: str) -> str:
        cmd = content.upper()
        if cmd.startswith(self.prefix):
            cmd = cmd[len(self.prefix):]
        return cmd.strip()

    def in_bound_channel(self, message) -> bool:
        return self.state.channel_id is not None and str(message.channel.id) == self.state.channel_id

    def is_direct_message(self, message) -> bool:
        return message.guild is None

    def can_manage(self, message) -> bool:
        if message.guild is None:
            return False
        permissions = getattr(message.author, "guild_permissions", None)
        return bool(permissions is not None and permissions.manage_guild)

    def in_bound_guild(self, message) -> bool:
        guild = getattr(self.state.channel, "guild", None)
        return guild is not None and message.guild is not None and guild.id == message.guild.id

    async def reply(self, channel, content=None, embed=None):
        try:
            return await self.chat.send_to_channel(channel, content=content, embed=embed)
        except RichMessageSendFailure:
            raise
        except Exception as e:
            logger.error(f"Failed to send reply: {e}")

    async def process_message(self, message):
        if self.chat.user is not None and message.author == self.chat.user:
            return

        mentioned = self.is_mentioned(message)
        if message.content.upper().startswith(self.prefix) or mentioned:
            await self.process_command(message, mentioned)
        elif self.in_bound_channel(message) and not self.is_direct_message(message):
            await self.relay.send_to_game(message.author.name, message.clean_content)

    async def process_command(self, message, mentioned: bool = False):
        if message.author.bot:
            return
        cmd = self.parse_command(message.content)

        if cmd.startswith("SETCHANNEL"):
            await self.set_channel(message, cmd)
        if cmd.startswith("EXEC") and self.config.get_flag("allow-exec-command"):
            await self.exec(message, cmd)

        # Everything below only works in the bound channel or in DMs.
        if not self.in_bound_channel(message) and not self.is_direct_message(message):
            return

        handler = self.command_handlers.get(cmd)
        if handler is None and mentioned:
            handler = self.info
        if handler is not None:
            await handler(message)
            return

        if self.config.get_flag("disable-commands"):
            return
        handler = self.game_command_handlers.get(cmd)
        if handler is not None:
            await handler(message)

    async def set_channel(self, message, cmd: str):
        allowed = self.can_manage(message) and (self.state.channel is None or self.in_bound_guild(message))
        if not allowed:
            await message.author.send("You do not have permission to do this. (setchannel)")
            return
        logger.info(f"User {message.author} ({message.author.id}) executed command: {cmd}")

        target = await self.resolve_channel_target(message)
        if target is None:
            await self.reply(message.channel, ":x: Failed to identify the channel you specified.")
            return

        if (
            self.state.channel is not None
            and target.id == self.state.channel.id
            and self.state.set_channel_error is None
        ):
            await self.reply(message.channel, ":warning: This channel is already set as the bot's active channel!")
            return

        self.state.bind_channel(target)
        try:
            self.config.set_config_value("channel", self.state.channel_id)
        except ConfigPersistFailure as e:
            logger.error(
                f"Failed to write to the config file with the following err:\n{e.error}\n"
                "Make sure your config file is not read-only or missing"
            )
            self.state.set_channel_error = e
            await self.reply(
                message.channel,
                f":warning: Channel set successfully to <#{target.id}> ({target.id}), however the configuration "
                "has failed to save. The configured channel will not save when the bot restarts. "
                "See the bot's console for more info.",
            )
        else:
            self.state.set_channel_error = None
            await self.reply(
                message.channel,
                f":white_check_mark: The channel has been successfully set to <#{target.id}> ({target.id})",
            )
        await self.status_manager.refresh()

    async def resolve_channel_target(self, message):
        argument = message.content[len(self.prefix) + len("SETCHANNEL"):].strip()
        if not argument:
            return message.channel
        if message.channel_mentions:
            return message.channel_mentions[0]
        channel_id = argument.replace("<#", "").replace(">", "")
        if not channel_id.isdigit():
            return None
        return await self.chat.find_channel(int(channel_id))

    async def exec(self, message, cmd: str):
        if not (self.can_manage(message) and self.in_bound_guild(message)):
            await message.author.send("You do not have permission to do this. (exec)")
            return
        logger.info(f"User {message.author} ({message.author.id}) executed command: {cmd}")
        # Only the separator after the keyword goes; the rest is sent as typed.
        command = message.content[len(self.prefix) + len("EXEC"):]
        if command.startswith(" "):
            command = command[1:]
        try:
            response = await self.session.execute(command)
            logger.debug(f"exec response: {response!r}")
        except Exception as e:
            await self.handle_cmd_error(message.channel, e)

    def info_text(self) -> str:
        status = STATUS_MESSAGES.get(self.state.connection_state, ":red_circle: Error Unknown Status")
        commands = ""
        if not self.config.get_flag("disable-commands"):
            pre = self.prefix.lower()
            commands = f"\n**Commands:** {pre}info, {pre}time, {pre}version, {pre}players"
        return (
            f"Server connection: {status}{commands}\n\n"
            f"*7DTD-Discord v{__version__} - Powered by discord.py {discord.__version__}.*"
        )

    async def info(self, message):
        text = self.info_text()
        try:
            await self.reply(message.channel, embed=discord.Embed(description=text))
        except RichMessageSendFailure as e:
            # If the embed fails, try sending without it.
            logger.debug(f"Embed failed ({e}), falling back to plain text.")
            await self.reply(message.channel, text)

    async def handle_cmd_error(self, channel, error):
        if not isinstance(error, TransportCommandFailure):
            error = TransportCommandFailure.other(str(error))
        if error.kind == CommandFailureKind.NOT_RESPONDING:
            msg = "Command failed because the server is not responding. It may be frozen or loading."
        elif error.kind == CommandFailureKind.NOT_CONNECTED:
            msg = (
                "Command failed because the bot is not connected to the server. "
                f"Type {self.prefix.lower()}info to see the current status."
            )
        else:
            msg = f'Command failed with error "{error.message}"'
        await self.reply(channel, msg)

    async def query(self, message, command: str, shape, respond):
        """Run a console command and answer with the first line of the expected shape.

        When the immediate response doesn't contain it, the answer is left to
        turn up later on the console stream.
        """
        try:
            response = await self.session.execute(command)
        except Exception as e:
            await self.handle_cmd_error(message.channel, e)
            return
        for line in (response or "").split("\n"):
            event = classify(line)
            if isinstance(event, shape):
                await respond(event, message.channel)
                return
        self.state.pending.register(shape, message.channel, respond)

    async def send_time(self, event: DayInfo, channel):
        await self.reply(channel, horde_message(event))

    async def send_text(self, event, channel):
        await self.reply(channel, event.text)

    async def time(self, message):
        await self.query(message, "gettime", DayInfo, self.send_time)

    async def version(self, message):
        await self.query(message, "version", VersionInfo, self.send_text)

    async def players(self, message):
        await self.query(message, "lp", PlayerCount, self.send_text)
