import asyncio, logging
from datetime import datetime
from discord_7dtd.bot import DiscordBot
from discord_7dtd.classes.app_config import AppConfig
from discord_7dtd.classes.command_processor import CommandProcessor
from discord_7dtd.classes.demo_session import DemoSession
from discord_7dtd.classes.game_relay import GameRelay
from discord_7dtd.classes.pending_responses import PendingResponses
from discord_7dtd.classes.reconnect_supervisor import TELNET_RECONNECT_DELAY, ReconnectSupervisor
from discord_7dtd.classes.relay_state import RelayState
from discord_7dtd.classes.status_manager import StatusManager
from discord_7dtd.classes.telnet_session import TelnetSession

logger = logging.getLogger("RelayApp")

TELNET_TIMEOUT = 15


class RelayApp:
    """Wires the telnet session, the Discord bot and the relay together."""

    def __init__(self, config: AppConfig, session=None, discord_bot=None):
        self.config = config
        self.skip_discord = config.get_flag("skip-discord-auth")
        self.state = RelayState(
            channel_id=config.get_channel_id(),
            pending=PendingResponses(timeout=config.get_pending_request_timeout()),
        )
        self.supervisor = ReconnectSupervisor(self.state)
        self.session = session or self.create_session()
        self.discord = discord_bot or DiscordBot(
            config.get_token(), self.state, self.supervisor, command_prefix=config.get_command_prefix().lower()
        )
        self.status_manager = StatusManager(
            self.state,
            self.discord,
            prefix=config.get_command_prefix(),
            disabled=config.get_flag("disable-status-updates"),
            skip_ready_updates=self.skip_discord,
            heartbeat_interval=config.get_heartbeat_interval(),
        )
        self.relay = GameRelay(self.state, config, self.discord, self.session, self.supervisor)
        self.command_processor = CommandProcessor(
            self.state, config, self.discord, self.session, self.status_manager, self.relay
        )

        self.session.on("ready", self.on_session_ready)
        self.session.on("close", self.on_session_close)
        self.session.on("error", self.on_session_error)
        self.session.on("failedlogin", self.on_session_failed_login)
        self.session.on("data", self.relay.handle_data)

    def create_session(self):
        if self.config.get_flag("demo-mode"):
            return DemoSession()
        return TelnetSession(
            host=self.config.get_ip(),
            port=self.config.get_port(),
            password=self.config.get_password(),
            timeout=TELNET_TIMEOUT,
            log_telnet=self.config.get_flag("log-telnet"),
            debug=self.config.get_flag("debug-mode"),
        )

    async def on_session_ready(self):
        logger.info(f"Connected to game. ({datetime.now()})")
        await self.status_manager.on_transport_ready()

    async def on_session_close(self):
        logger.info("Connection to game closed.")
        # A held-back half line can't be continued on a new connection.
        self.state.reassembler.clear()
        await self.status_manager.on_transport_close()
        if self.state.do_reconnect:
            self.session.terminate()
            self.supervisor.schedule(TELNET_RECONNECT_DELAY, self.session.connect, "telnet reconnect")

    async def on_session_error(self, error):
        logger.info(f"An error occurred while connecting to the game:\n{error}")
        await self.status_manager.on_transport_error()

    async def on_session_failed_login(self):
        self.supervisor.fatal(f"Login to game failed! ({datetime.now()})")

    async def connect_game(self):
        await self.session.connect()

    async def run(self) -> int:
        discord_task = None
        if self.skip_discord:
            # Nothing to wait for, connect right away.
            await self.connect_game()
        else:
            await self.discord.set_command_processor(self.command_processor)
            await self.discord.set_status_manager(self.status_manager)
            await self.discord.set_game_connector(self.connect_game)
            discord_task = asyncio.create_task(self.discord.run())
            discord_task.add_done_callback(self._discord_finished)
        try:
            return await self.supervisor.wait()
        finally:
            # Also reached when the loop cancels us on Ctrl+C.
            await self.close()
            if discord_task is not None and not discord_task.done():
                discord_task.cancel()

    def _discord_finished(self, task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.supervisor.fatal(f"Discord client stopped with an error: {error}")
        else:
            self.supervisor.shutdown()

    async def close(self):
        self.supervisor.shutdown()
        self.status_manager.stop_heartbeat()
        self.session.terminate()
        if not self.skip_discord:
            await self.discord.close()
