import asyncio, logging
from discord_7dtd.classes.relay_state import RelayState

logger = logging.getLogger("ReconnectSupervisor")

TELNET_RECONNECT_DELAY = 5
DISCORD_RECONNECT_DELAY = 6


class ReconnectSupervisor:
    def __init__(self, state: RelayState):
        self.state = state
        self.tasks = set()
        self.exit_code = None
        self.stopped = asyncio.Event()

    @property
    def active(self) -> bool:
        return self.state.do_reconnect

    def schedule(self, delay: float, callback, description: str = "reconnect"):
        """Run `callback` after `delay` seconds unless shutdown happened meanwhile."""
        if not self.state.do_reconnect:
            return None
        task = asyncio.create_task(self._run_later(delay, callback, description))
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task

    async def _run_later(self, delay, callback, description):
        await asyncio.sleep(delay)
        # The flag may have been cleared while we slept.
        if not self.state.do_reconnect:
            logger.debug(f"Skipping {description}, shutting down.")
            return
        logger.info(f"Attempting {description}...")
        try:
            result = callback()
            if asyncio.iscoroutine(result):
                await result
        except Exception as e:
            logger.error(f"{description} failed: {e}", exc_info=True)

    def fatal(self, reason: str):
        logger.critical(reason)
        self.shutdown(exit_code=1)

    def shutdown(self, exit_code: int = 0):
        self.state.do_reconnect = False
        if self.exit_code is None:
            self.exit_code = exit_code
        for task in list(self.tasks):
            task.cancel()
        self.stopped.set()

    async def wait(self) -> int:
        await self.stopped.wait()
        return self.exit_code or 0
