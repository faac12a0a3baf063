import logging
from discord_7dtd.classes.telnet_session import SessionEvents

logger = logging.getLogger("DemoSession")

DEMO_RESPONSES = {
    "gettime": "Day 1, 07:00\n6 days to next horde.",
    "version": "Game version: Alpha 17 (b240) Compatibility Version: Alpha 17 (Simulated)",
    "lp": "Total of 0 in the game",
}


class DemoSession(SessionEvents):
    """Stands in for the game server so the bot can be tried without one."""

    def __init__(self, responses: dict = None):
        super().__init__()
        self.responses = dict(DEMO_RESPONSES if responses is None else responses)
        self.connected = False
        self.executed = []

    async def connect(self):
        logger.info("Demo client ready")
        self.connected = True
        await self.emit("ready")
        return True

    async def execute(self, command: str) -> str:
        self.executed.append(command)
        return self.responses.get(command, "")

    def destroy(self):
        self.connected = False

    def terminate(self):
        self.connected = False
