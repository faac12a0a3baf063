import logging, time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Type
from discord_7dtd.classes.line_classifier import ClassifiedEvent

logger = logging.getLogger("PendingResponses")


@dataclass
class PendingRequest:
    shape: Type[ClassifiedEvent]
    origin: Any
    respond: Callable[[ClassifiedEvent, Any], Awaitable[None]]
    created_at: float = field(default_factory=time.monotonic)

    async def complete(self, event: ClassifiedEvent):
        await self.respond(event, self.origin)


class PendingResponses:
    """Matches unlabeled console output to the command that asked for it.

    The console answers commands on the shared output stream with no request id,
    so each expected answer shape (DayInfo, VersionInfo, PlayerCount) gets one
    slot. A newer request of the same shape replaces the older one.
    """

    def __init__(self, timeout: float = 0, clock: Callable[[], float] = time.monotonic):
        # timeout <= 0 keeps a request until it is matched or replaced.
        self.timeout = timeout
        self.clock = clock
        self.slots: Dict[Type[ClassifiedEvent], PendingRequest] = {}

    def register(self, shape, origin, respond) -> PendingRequest:
        if shape in self.slots:
            logger.debug(f"Replacing unanswered {shape.__name__} request.")
        request = PendingRequest(shape=shape, origin=origin, respond=respond, created_at=self.clock())
        self.slots[shape] = request
        return request

    def pending(self, shape) -> Optional[PendingRequest]:
        return self.slots.get(shape)

    def resolve(self, event: ClassifiedEvent) -> Optional[PendingRequest]:
        """Take the request waiting for this event's shape, if any."""
        request = self.slots.get(type(event))
        if request is None:
            return None
        del self.slots[type(event)]
        if self.timeout > 0 and self.clock() - request.created_at > self.timeout:
            logger.info(f"Dropping stale {request.shape.__name__} request.")
            return None
        return request
