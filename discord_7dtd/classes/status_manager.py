import asyncio, logging
from discord_7dtd.classes.relay_state import ConnectionState, RelayState

logger = logging.getLogger("StatusManager")

HEARTBEAT_INTERVAL = 3600


class StatusManager:
    """Keeps the bot's Discord presence in step with the telnet connection.

    `set_status` caches the last state it saw and skips duplicates; call
    `refresh` to push the current state again regardless.
    """

    def __init__(self, state: RelayState, presence, prefix: str = "7d!", disabled: bool = False,
                 skip_ready_updates: bool = False, heartbeat_interval: float = HEARTBEAT_INTERVAL):
        self.state = state
        self.presence = presence
        self.prefix = prefix.lower()
        self.disabled = disabled
        self.skip_ready_updates = skip_ready_updates
        self.heartbeat_interval = heartbeat_interval
        self.heartbeat_task = None

    @property
    def current(self) -> ConnectionState:
        return self.state.connection_state

    def describe(self, status: ConnectionState):
        if status == ConnectionState.CONNECTING:
            return f"Connecting... | Type {self.prefix}info", "dnd"
        if status == ConnectionState.ERROR:
            return f"Error | Type {self.prefix}help", "dnd"
        if status == ConnectionState.ONLINE:
            if not self.state.channel_bound:
                return f"No channel | Type {self.prefix}setchannel", "idle"
            return f"7DTD | Type {self.prefix}help", "online"
        return None

    async def set_status(self, status: ConnectionState):
        if status == self.state.connection_state:
            return
        self.state.connection_state = status
        if self.disabled:
            return
        description = self.describe(status)
        if description is None:
            return
        activity, presence_status = description
        logger.debug(f"Updating presence: {activity} ({presence_status})")
        try:
            await self.presence.update_presence(activity, presence_status)
        except Exception as e:
            logger.error(f"Failed to update presence: {e}")

    async def refresh(self):
        status = self.state.connection_state
        self.state.connection_state = ConnectionState.UNKNOWN
        await self.set_status(status)

    async def on_transport_ready(self):
        if self.skip_ready_updates:
            return
        await self.set_status(ConnectionState.ONLINE)

    async def on_transport_close(self):
        # An error close must not overwrite the error state.
        if self.state.connection_state != ConnectionState.ERROR:
            await self.set_status(ConnectionState.CONNECTING)

    async def on_transport_error(self):
        await self.set_status(ConnectionState.ERROR)

    async def on_discord_ready(self):
        if not self.state.first_login:
            self.state.first_login = True
            logger.info("Discord client connected successfully.")
            self.state.connection_state = ConnectionState.CONNECTING
            self.start_heartbeat()
        else:
            logger.info("Discord client re-connected successfully.")
            await self.refresh()

    def start_heartbeat(self):
        if self.heartbeat_task is not None and not self.heartbeat_task.done():
            return self.heartbeat_task
        self.heartbeat_task = asyncio.create_task(self._heartbeat())
        return self.heartbeat_task

    def stop_heartbeat(self):
        if self.heartbeat_task is not None:
            self.heartbeat_task.cancel()
            self.heartbeat_task = None

    async def _heartbeat(self):
        # Presence set once eventually shows up blank on Discord; keep re-sending it.
        while True:
            await self.refresh()
            await asyncio.sleep(self.heartbeat_interval)
