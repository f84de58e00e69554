"""Event bus infrastructure for the ReAct engine.

Provides an asynchronous pub-sub event bus plus an in-memory event store
for replay and debugging.  The bus dispatches ``DomainEvent`` instances to
registered handlers, catching and logging errors so that a single failing
subscriber never breaks a run.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Sequence
from typing import Any

from react_engine.domain.events import DomainEvent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------
AsyncHandler = Callable[[DomainEvent], Any]  # may be sync or async callable


# ===================================================================== #
#  Asynchronous Event Bus                                                #
# ===================================================================== #

class AsyncEventBus:
    """Async event bus the engine publishes its lifecycle events on.

    Handlers may be either regular callables or coroutine functions; the
    bus awaits whatever a handler returns when it is awaitable.

    Usage::

        bus = AsyncEventBus()
        bus.subscribe(StepRecorded, my_async_handler)
        await bus.publish(StepRecorded(...))
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[AsyncHandler]] = defaultdict(list)
        self._global_handlers: list[AsyncHandler] = []

    # -- subscription -------------------------------------------------------

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: AsyncHandler,
    ) -> None:
        """Register *handler* (sync or async) for *event_type*."""
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: AsyncHandler) -> None:
        """Register *handler* (sync or async) for all event types."""
        self._global_handlers.append(handler)

    def unsubscribe(
        self,
        event_type: type[DomainEvent],
        handler: AsyncHandler,
    ) -> bool:
        """Remove *handler* from *event_type*. Returns ``True`` if found."""
        handlers = self._handlers.get(event_type, [])
        try:
            handlers.remove(handler)
            return True
        except ValueError:
            return False

    # -- publishing ---------------------------------------------------------

    async def publish(self, event: DomainEvent) -> None:
        """Publish *event* to all matching handlers (global first)."""
        handlers = list(self._global_handlers) + list(
            self._handlers.get(type(event), [])
        )
        for handler in handlers:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Error in event handler %r for %s",
                    handler,
                    type(event).__name__,
                )

    async def publish_many(self, events: Sequence[DomainEvent]) -> None:
        """Publish a batch of events in order."""
        for event in events:
            await self.publish(event)

    # -- introspection / lifecycle ------------------------------------------

    def handler_count(self, event_type: type[DomainEvent] | None = None) -> int:
        """Return the number of handlers registered."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        total = sum(len(hs) for hs in self._handlers.values())
        return total + len(self._global_handlers)

    def clear(self) -> None:
        """Remove all registered handlers."""
        self._handlers.clear()
        self._global_handlers.clear()


# ===================================================================== #
#  Event Store                                                           #
# ===================================================================== #

class EventStore:
    """In-memory append-only event store for replay and debugging.

    Wire it to a bus so that every published event is kept::

        store = EventStore()
        bus = AsyncEventBus()
        bus.subscribe_all(store.append)
    """

    def __init__(self, max_size: int = 0) -> None:
        """Create a store.

        Parameters
        ----------
        max_size:
            Maximum number of events to keep.  ``0`` means unlimited.
        """
        self._events: list[DomainEvent] = []
        self._max_size = max_size
        self._lock = threading.Lock()

    def append(self, event: DomainEvent) -> None:
        """Append a single event, evicting the oldest beyond *max_size*."""
        with self._lock:
            self._events.append(event)
            if self._max_size > 0 and len(self._events) > self._max_size:
                self._events = self._events[-self._max_size:]

    def query(
        self,
        event_type: type[DomainEvent] | None = None,
        run_id: str | None = None,
        limit: int = 0,
    ) -> Sequence[DomainEvent]:
        """Return events matching the optional filters.

        Parameters
        ----------
        event_type:
            If given, only return events that are instances of this type.
        run_id:
            If given, only return events emitted by that run.
        limit:
            Maximum number of events to return (0 = unlimited).
        """
        with self._lock:
            result: list[DomainEvent] = list(self._events)

        if event_type is not None:
            result = [e for e in result if isinstance(e, event_type)]
        if run_id is not None:
            result = [e for e in result if e.run_id == run_id]
        if limit > 0:
            result = result[-limit:]
        return result

    @property
    def latest(self) -> DomainEvent | None:
        """Return the most recently appended event, or ``None``."""
        with self._lock:
            return self._events[-1] if self._events else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def clear(self) -> None:
        """Remove all stored events."""
        with self._lock:
            self._events.clear()
