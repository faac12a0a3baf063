import asyncio, logging
import telnetlib3
from discord_7dtd.classes.line_classifier import PASSWORD_INCORRECT
from discord_7dtd.exceptions.transport import TransportAuthFailure, TransportCommandFailure

logger = logging.getLogger("TelnetSession")

PASSWORD_PROMPT_MARKER = "please enter password:"
LOGIN_FAILED_MARKER = "password incorrect"


class SessionEvents:
    """Minimal listener registry shared by the telnet and demo sessions."""

    EVENTS = ("ready", "close", "error", "failedlogin", "data")

    def __init__(self):
        self.handlers = {event: [] for event in self.EVENTS}

    def on(self, event: str, handler):
        if event not in self.handlers:
            raise ValueError(f"Unknown session event '{event}'")
        self.handlers[event].append(handler)
        return handler

    async def emit(self, event: str, *args):
        for handler in self.handlers[event]:
            try:
                await handler(*args)
            except Exception as e:
                logger.error(f"Error in '{event}' handler {handler}: {e}", exc_info=True)


class TelnetSession(SessionEvents):
    def __init__(self, host: str, port: int, password: str, timeout: float = 15, exec_timeout: float = 5,
                 log_telnet: bool = False, debug: bool = False):
        super().__init__()
        self.host = host
        self.port = port
        self.password = password
        self.timeout = timeout
        self.exec_timeout = exec_timeout
        self.log_telnet = log_telnet
        self.debug = debug
        self.reader = None
        self.writer = None
        self.reader_task = None
        self.connected = False
        self.close_emitted = True
        self.lock = asyncio.Lock()
        self.pending = None
        self.pending_buffer = []

    async def connect(self):
        logger.info(f"Connecting to {self.host}:{self.port}...")
        self.close_emitted = False
        try:
            self.reader, self.writer = await asyncio.wait_for(
                telnetlib3.open_connection(self.host, self.port, encoding="utf8"), self.timeout
            )
            await asyncio.wait_for(self._login(), self.timeout)
        except TransportAuthFailure:
            self._close_writer()
            await self.emit("failedlogin")
            return False
        except (OSError, asyncio.TimeoutError, EOFError) as e:
            self._close_writer()
            await self.emit("error", e)
            await self._emit_close()
            return False

        self.connected = True
        self.reader_task = asyncio.create_task(self._reader_loop())
        await self.emit("ready")
        return True

    async def _read_until(self, marker: str) -> str:
        received = ""
        while marker not in received.lower():
            chunk = await self.reader.read(1024)
            if not chunk:
                raise EOFError("Connection closed during login")
            received += chunk
        return received

    async def _login(self):
        await self._read_until(PASSWORD_PROMPT_MARKER)
        self.writer.write(self.password + "\r\n")
        response = await self._read_until("\n")
        if LOGIN_FAILED_MARKER in response.lower() or response == PASSWORD_INCORRECT:
            raise TransportAuthFailure("Password rejected by the server")
        logger.debug(f"Login response: {response!r}")

    async def _reader_loop(self):
        try:
            while True:
                data = await self.reader.read(4096)
                if not data:
                    break
                if self.debug:
                    logger.debug(f"[DEBUG] Buffer length: {len(data)}; Buffer dump: {data}")
                if self.log_telnet:
                    logger.info(f"[Telnet] {data}")
                # Everything goes to the stream; output arriving while a command
                # waits is also copied into that command's response.
                await self.emit("data", data)
                if self.pending is not None and not self.pending.done():
                    self._collect_response(data)
        except asyncio.CancelledError:
            raise
        except (OSError, ConnectionError) as e:
            await self.emit("error", e)
        finally:
            self.connected = False
        await self._emit_close()

    def _collect_response(self, data: str):
        self.pending_buffer.append(data)
        # The console has no real prompt; a response ends with a bare line break.
        if data.endswith("\r\n"):
            self.pending.set_result("".join(self.pending_buffer))

    async def _emit_close(self):
        if self.close_emitted:
            return
        self.close_emitted = True
        await self.emit("close")

    async def execute(self, command: str) -> str:
        if not self.connected or self.writer is None:
            raise TransportCommandFailure.not_connected()
        async with self.lock:
            self.pending = asyncio.get_running_loop().create_future()
            self.pending_buffer = []
            try:
                self.writer.write(command + "\n")
                return await asyncio.wait_for(self.pending, self.exec_timeout)
            except asyncio.TimeoutError:
                raise TransportCommandFailure.not_responding()
            except (OSError, ConnectionError) as e:
                raise TransportCommandFailure.other(str(e))
            finally:
                self.pending = None
                self.pending_buffer = []

    def destroy(self):
        """Drop the connection; the reader loop notices and emits 'close'."""
        self.connected = False
        self._close_writer()

    def terminate(self):
        """Tear down any leftovers from a previous connection without emitting events."""
        self.connected = False
        self.close_emitted = True
        task = self.reader_task
        # 'close' handlers run inside the reader task itself; it is finishing anyway.
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        self.reader_task = None
        self._close_writer()

    def _close_writer(self):
        if self.writer is not None:
            try:
                self.writer.close()
            except Exception as e:
                logger.debug(f"Error closing telnet writer: {e}")
        self.writer = None
