"""Structured events emitted while a swap progresses.

Components publish events on an ``EventStream``; callers subscribe to
observe transitions and errors. Logging is just one subscriber
(``log_event``), attached by default.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from swapintent.models import EscrowPhase, MonitorOutcome, OrderStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SwapEvent:
    """Base class for all events."""

    order_hash: str


@dataclass(frozen=True)
class OrderSubmitted(SwapEvent):
    quote_id: Optional[str]


@dataclass(frozen=True)
class StatusChanged(SwapEvent):
    previous: OrderStatus
    current: OrderStatus


@dataclass(frozen=True)
class PollFailed(SwapEvent):
    error: Exception
    backoff_seconds: float


@dataclass(frozen=True)
class EscrowPhaseChanged(SwapEvent):
    previous: EscrowPhase
    current: EscrowPhase


@dataclass(frozen=True)
class SecretReleased(SwapEvent):
    index: int


@dataclass(frozen=True)
class SecretSkipped(SwapEvent):
    """A ready fill pointed at an index we hold no secret for."""

    index: int


@dataclass(frozen=True)
class MonitorFinished(SwapEvent):
    outcome: MonitorOutcome
    final_status: OrderStatus
    elapsed_seconds: float


EventHandler = Callable[[SwapEvent], Any]


class EventStream:
    """Fan-out of swap events to subscribed handlers."""

    def __init__(self, handlers: Optional[list[EventHandler]] = None):
        self._handlers: list[EventHandler] = list(handlers or [])

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Add a handler. Returns a callable that removes it again."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: SwapEvent) -> None:
        """Deliver an event to every handler.

        A failing handler is logged and does not stop delivery to the others.
        """
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler {handler!r} failed on {type(event).__name__}: {e}")


def log_event(event: SwapEvent) -> None:
    """Render an event to the module logger."""
    short_hash = event.order_hash[:10]

    if isinstance(event, OrderSubmitted):
        logger.info(f"Order {short_hash} submitted (quoteId={event.quote_id})")
    elif isinstance(event, StatusChanged):
        logger.info(f"Order {short_hash} status: {event.previous.value} -> {event.current.value}")
    elif isinstance(event, PollFailed):
        logger.warning(
            f"Status check error for {short_hash}: {event.error} "
            f"(retrying in {event.backoff_seconds:.1f}s)"
        )
    elif isinstance(event, EscrowPhaseChanged):
        logger.info(f"Order {short_hash} escrow: {event.previous.value} -> {event.current.value}")
    elif isinstance(event, SecretReleased):
        logger.info(f"Order {short_hash} shared secret for fill {event.index}")
    elif isinstance(event, SecretSkipped):
        logger.warning(f"Order {short_hash} fill {event.index} has no matching secret")
    elif isinstance(event, MonitorFinished):
        logger.info(
            f"Order {short_hash} finished: {event.outcome.value} "
            f"(last status {event.final_status.value}, {event.elapsed_seconds:.1f}s)"
        )
    else:
        logger.debug(f"Event {event!r}")


def default_event_stream() -> EventStream:
    """Event stream with the logging subscriber attached."""
    return EventStream([log_event])
