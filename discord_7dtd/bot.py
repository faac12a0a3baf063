import asyncio, importlib, os
import discord, logging
from discord.ext import commands
from discord_7dtd.classes.reconnect_supervisor import DISCORD_RECONNECT_DELAY
from discord_7dtd.classes.relay_state import RelayState
from discord_7dtd.exceptions.chat_platform import (
    ChannelResolutionFailure,
    ChatPlatformAuthFailure,
    ChatPlatformTransientDisconnect,
    RichMessageSendFailure,
)

logger = logging.getLogger("DiscordBot")

# Gateway close code for an invalid token.
AUTHENTICATION_FAILED = 4004


class DiscordBot:
    discord_instance = None

    def __init__(self, token, state: RelayState, supervisor, command_prefix: str = "7d!"):
        self.token = token
        self.state = state
        self.supervisor = supervisor
        self.command_processor = None
        self.status_manager = None
        self.game_connector = None
        intents = discord.Intents.default()
        intents.message_content = True
        self.bot = commands.Bot(command_prefix=command_prefix, intents=intents, help_command=None)
        self.cogs_loaded = False
        DiscordBot.discord_instance = self

    @classmethod
    def get_instance(cls):
        return cls.discord_instance

    @property
    def user(self):
        return self.bot.user

    async def set_command_processor(self, command_processor):
        self.command_processor = command_processor

    async def set_status_manager(self, status_manager):
        self.status_manager = status_manager

    async def set_game_connector(self, game_connector):
        self.game_connector = game_connector

    async def on_ready(self):
        await self.status_manager.on_discord_ready()

        guild_count = len(self.bot.guilds)
        if guild_count == 0:
            logger.warning(
                "The bot is currently not in a Discord server. You can invite it to a guild using this invite link:\n"
                f"https://discord.com/oauth2/authorize?client_id={self.bot.user.id}&scope=bot"
            )
        elif guild_count > 1:
            logger.warning(
                "The bot is currently in more than one guild. It is highly recommended that you verify "
                "'Public bot' is UNCHECKED on this page:\n"
                f"https://discord.com/developers/applications/{self.bot.user.id}"
            )

        if self.state.channel_id is not None:
            try:
                self.state.channel = await self.resolve_channel(self.state.channel_id)
            except ChannelResolutionFailure as e:
                self.state.channel = None
                logger.error(str(e))

        # Wait until the Discord client is ready before connecting to the game.
        if not self.state.connection_initialized:
            self.state.connection_initialized = True
            await self.game_connector()

    async def start_once(self):
        try:
            await self.bot.start(self.token)
        except discord.LoginFailure as e:
            raise ChatPlatformAuthFailure(str(e)) from e
        except discord.ConnectionClosed as e:
            if e.code == AUTHENTICATION_FAILED:
                raise ChatPlatformAuthFailure(e.reason) from e
            raise ChatPlatformTransientDisconnect(e.reason, e.code) from e
        except (discord.GatewayNotFound, discord.HTTPException, OSError) as e:
            raise ChatPlatformTransientDisconnect(str(e)) from e

    async def run(self):
        await self.load_cogs()
        self.bot.event(self.on_ready)
        while self.state.do_reconnect:
            try:
                await self.start_once()
            except ChatPlatformAuthFailure as e:
                self.supervisor.fatal(f"Discord login failed ({e}). Please double-check the configured token and try again.")
                return
            except ChatPlatformTransientDisconnect as e:
                logger.warning(f"Discord client disconnected with reason: {e}.")
            else:
                # start() only returns once close() was called.
                return
            if not self.state.do_reconnect:
                return
            logger.info(f"Attempting to reconnect in {DISCORD_RECONNECT_DELAY}s...")
            await self.bot.close()
            self.bot.clear()
            await asyncio.sleep(DISCORD_RECONNECT_DELAY)

    async def close(self):
        if not self.bot.is_closed():
            await self.bot.close()

    async def load_cogs(self, cogs_path=None):
        if self.cogs_loaded:
            return
        package_root = os.path.dirname(os.path.abspath(__file__))
        cogs_path = cogs_path or os.path.join(package_root, "cogs")
        logger.debug("Loading cogs! Path: " + cogs_path)
        for root, _, files in os.walk(cogs_path):
            for file in files:
                if not file.endswith(".py") or file.startswith("__"):
                    continue
                relative = os.path.relpath(os.path.join(root, file), os.path.dirname(package_root))
                cog_path = relative.replace(os.sep, ".")[:-3]
                try:
                    cog_module = importlib.import_module(cog_path)
                    cog_class = getattr(cog_module, file[:-3].capitalize())
                    await self.bot.add_cog(cog_class(self.bot))
                    logger.debug(f"Loaded cog: {cog_path}")
                except Exception as e:
                    logger.error(f"Failed to load cog: {cog_path}")
                    logger.error(e)
        self.cogs_loaded = True

    async def find_channel(self, channel_id):
        try:
            channel_id = int(channel_id)
        except (TypeError, ValueError):
            return None
        channel = self.bot.get_channel(channel_id)
        if channel is not None:
            return channel
        for guild in self.bot.guilds:
            for channel in guild.channels:
                if isinstance(channel, discord.TextChannel) and channel.id == channel_id:
                    return channel
        return None

    async def resolve_channel(self, channel_id):
        channel = await self.find_channel(channel_id)
        if channel is None:
            raise ChannelResolutionFailure(f"Failed to identify channel with ID '{channel_id}'")
        return channel

    async def send_to_channel(self, channel, content=None, embed=None):
        if embed is None:
            return await channel.send(content=content)
        # Channels without the "Embed Links" permission reject these.
        try:
            return await channel.send(content=content, embed=embed)
        except discord.HTTPException as e:
            raise RichMessageSendFailure(str(e)) from e

    async def update_presence(self, activity: str, status: str):
        await self.bot.change_presence(activity=discord.Game(name=activity), status=discord.Status(status))
