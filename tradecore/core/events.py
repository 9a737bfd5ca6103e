"""Event bus for decoupled communication between the clock and the economy."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class Event:
    """Base class for all events."""
    pass


@dataclass
class SimTick(Event):
    """Pushed by the external clock when whole ticks have elapsed."""
    ticks_elapsed: int = 1


@dataclass
class BigJump(Event):
    """Pushed by the external clock for a time skip (sleep, travel, fast-forward)."""
    hours: float


@dataclass
class MarketCreated(Event):
    """Fired when a station market is registered."""
    station_id: str
    faction_id: str
    econ_profile_id: str
    commodity_ids: tuple[str, ...] = ()


@dataclass
class PriceChanged(Event):
    """Fired when a recomputed price moves significantly."""
    station_id: str
    commodity_id: str
    old_price: float
    new_price: float


@dataclass
class TradeCompleted(Event):
    """Fired when a trade is executed against a market."""
    agent_id: str
    station_id: str
    commodity_id: str
    quantity: int
    is_buy: bool
    total_price: float


@dataclass
class MarketEventApplied(Event):
    """Fired when a random economic event hits a market."""
    event_id: str
    station_id: str
    title: str = ""
    # commodity id -> (supply delta, demand delta)
    deltas: dict[str, tuple[float, float]] = field(default_factory=dict)


EventHandler = Callable[[Event], None]


class EventBus:
    """Central event bus for publishing and subscribing to events."""

    def __init__(self) -> None:
        self._handlers: dict[type[Event], list[EventHandler]] = {}
        self._queued_events: list[Event] = []
        self._processing: bool = False

    def subscribe(self, event_type: type[Event], handler: EventHandler) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type[Event], handler: EventHandler) -> None:
        """Unsubscribe a handler from an event type."""
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        If called while a handler is running, the event is queued and
        dispatched after the current one, so ticks stay in arrival order.
        A handler error propagates and drops whatever is still queued.
        """
        if self._processing:
            self._queued_events.append(event)
            return

        self._processing = True
        try:
            self._dispatch(event)
            while self._queued_events:
                current_queue = self._queued_events
                self._queued_events = []
                for queued in current_queue:
                    self._dispatch(queued)
        except Exception:
            # Events queued behind a failing handler belong to the failed publish
            self._queued_events.clear()
            raise
        finally:
            self._processing = False

    def _dispatch(self, event: Event) -> None:
        """Dispatch an event to handlers of its type and its base types."""
        for registered_type, handlers in list(self._handlers.items()):
            if isinstance(event, registered_type):
                for handler in list(handlers):
                    handler(event)

    def clear(self) -> None:
        """Clear all handlers and queued events."""
        self._handlers.clear()
        self._queued_events.clear()
