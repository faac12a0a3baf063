# Discord cog that feeds every incoming message to the command processor, which
# either runs a 7d! command or forwards the text to the game.
import logging
from discord.ext import commands
from discord_7dtd.bot import DiscordBot

logger = logging.getLogger("RelayCog")


class Relay(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.discord = DiscordBot.get_instance()

    @commands.Cog.listener()
    async def on_message(self, message):
        if message.author == self.bot.user:
            return
        try:
            await self.discord.command_processor.process_message(message)
        except Exception as e:
            logger.error(f"Error handling message {message.id}: {e}", exc_info=True)

    @commands.Cog.listener()
    async def on_command_error(self, ctx, error):
        # Commands are parsed by the command processor, not discord.ext.
        if isinstance(error, commands.CommandNotFound):
            return
        logger.error(f"Command error: {error}")
