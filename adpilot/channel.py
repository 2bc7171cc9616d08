import asyncio
from collections import defaultdict
from collections.abc import Callable, Coroutine
from typing import Any

import structlog

from adpilot.events import Event
from adpilot.logging import get_logger

type Handler[E: Event] = Callable[[E], Coroutine[Any, Any, None]]

_logger = get_logger(__name__)


class Channel:
    """In-process event bus for turn side effects (audit logs, metrics hooks).

    Handlers subscribed to a base class also receive its subclasses. Each
    delivery runs as a background task with the event's user bound to the
    log context; a failing handler is logged and never reaches the turn.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[Handler]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    def subscribe[E: Event](self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(handler)

    def _handlers_for(self, event: Event) -> list[Handler]:
        return [h for cls in type(event).__mro__ for h in self._handlers.get(cls, ())]

    def publish(self, event: Event) -> None:
        for handler in self._handlers_for(event):
            task = asyncio.create_task(self._deliver(handler, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for deliveries, including ones published by handlers meanwhile."""
        while pending := [t for t in self._tasks if not t.done()]:
            await asyncio.gather(*pending)

    async def _deliver(self, handler: Handler, event: Event) -> None:
        with structlog.contextvars.bound_contextvars(user_id=event.user_id):
            try:
                await handler(event)
            except Exception:
                _logger.exception("%s handler %s failed", type(event).__name__, handler.__qualname__)
