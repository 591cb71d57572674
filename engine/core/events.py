"""
Typed event bus for decoupled communication.

Uses Enums for event types to prevent magic strings. Every dialogue
service publishes its notifications here; observers subscribe by
event type and keep the returned Subscription to detach later.

Usage:
    class DialogueEvent(Enum):
        DIALOGUE_STARTED = auto()

    # Subscribe
    subscription = event_bus.subscribe(DialogueEvent.DIALOGUE_STARTED, on_started)

    # Publish
    event_bus.publish(DialogueEvent.DIALOGUE_STARTED, dialogue_id="phase0_intro")

    # Detach
    subscription.cancel()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from weakref import WeakMethod, ref

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """
    Event data container.

    Attributes:
        type: The event type (Enum member)
        data: Dictionary of event-specific data
        consumed: Whether the event has been handled
    """
    type: Enum
    data: dict[str, Any] = field(default_factory=dict)
    consumed: bool = False

    def consume(self) -> None:
        """Mark event as consumed (stops propagation)."""
        self.consumed = True

    def get(self, key: str, default: Any = None) -> Any:
        """Get event data by key."""
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Get event data by key (dict-style)."""
        return self.data[key]


# Type alias for event handlers
EventHandler = Callable[[Event], None]


class Subscription:
    """Handle returned by EventBus.subscribe; cancel() detaches the handler."""

    def __init__(self, bus: EventBus, event_type: Enum, handler_ref: Any):
        self._bus = bus
        self.event_type = event_type
        self._handler_ref = handler_ref
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._bus._remove_ref(self.event_type, self._handler_ref)


class EventBus:
    """
    Central event bus for publish/subscribe messaging.

    Features:
    - Typed events (Enum-based)
    - Priority ordering (stable for equal priorities)
    - Weak references (auto-cleanup when handlers are deleted)
    - One-shot handlers
    - Event consumption (stops propagation)
    - Subscription handles for explicit detachment
    """

    def __init__(self):
        # Map of event type -> list of (priority, handler, one_shot)
        self._handlers: dict[Enum, list[tuple[int, Any, bool]]] = {}
        # Queue for events published during handling
        self._event_queue: list[Event] = []
        self._is_publishing = False

    def subscribe(
        self,
        event_type: Enum,
        handler: EventHandler,
        priority: int = 0,
        one_shot: bool = False,
        weak: bool = True,
    ) -> Subscription:
        """
        Subscribe to an event type.

        Args:
            event_type: The event type to listen for
            handler: Callback function(event: Event)
            priority: Higher priority handlers are called first (default 0)
            one_shot: If True, handler is removed after first call
            weak: If True, use weak reference (handler auto-removed if deleted)

        Returns:
            Subscription handle; call cancel() to unsubscribe
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []

        if weak:
            if hasattr(handler, '__self__'):
                handler_ref = WeakMethod(handler)
            else:
                handler_ref = ref(handler)
        else:
            handler_ref = handler

        # Insert after every handler with priority >= this one
        handlers = self._handlers[event_type]
        insert_idx = len(handlers)
        for i, (p, _, _) in enumerate(handlers):
            if priority > p:
                insert_idx = i
                break

        handlers.insert(insert_idx, (priority, handler_ref, one_shot))
        return Subscription(self, event_type, handler_ref)

    def unsubscribe(self, event_type: Enum, handler: EventHandler) -> None:
        """
        Unsubscribe from an event type.

        Args:
            event_type: The event type
            handler: The handler to remove
        """
        if event_type not in self._handlers:
            return

        self._handlers[event_type] = [
            (p, h, o) for p, h, o in self._handlers[event_type]
            if self._get_handler(h) != handler
        ]

    def _remove_ref(self, event_type: Enum, handler_ref: Any) -> None:
        if event_type not in self._handlers:
            return

        self._handlers[event_type] = [
            (p, h, o) for p, h, o in self._handlers[event_type]
            if h is not handler_ref
        ]

    def publish(self, event_type: Enum, **data: Any) -> Event:
        """
        Publish an event.

        Args:
            event_type: The event type
            **data: Event data as keyword arguments

        Returns:
            The Event object (check .consumed to see if it was handled)
        """
        event = Event(type=event_type, data=data)

        if self._is_publishing:
            # Delivered once the current dispatch finishes
            self._event_queue.append(event)
        else:
            self._dispatch(event)

        return event

    def clear(self, event_type: Enum | None = None) -> None:
        """
        Clear handlers.

        Args:
            event_type: If specified, only clear handlers for this type.
                       If None, clear all handlers.
        """
        if event_type is None:
            self._handlers.clear()
        elif event_type in self._handlers:
            del self._handlers[event_type]

    def handler_count(self, event_type: Enum) -> int:
        """Number of live handlers registered for an event type."""
        return sum(
            1 for _, h, _ in self._handlers.get(event_type, [])
            if self._get_handler(h) is not None
        )

    def _dispatch(self, event: Event) -> None:
        """Dispatch event to handlers."""
        self._is_publishing = True
        try:
            self._deliver(event)
            while self._event_queue:
                self._deliver(self._event_queue.pop(0))
        finally:
            self._is_publishing = False

    def _deliver(self, event: Event) -> None:
        if event.type not in self._handlers:
            return

        # Snapshot so handlers may subscribe/unsubscribe while we iterate
        handlers = list(self._handlers[event.type])
        to_remove = []

        for entry in handlers:
            _, handler_ref, one_shot = entry
            handler = self._get_handler(handler_ref)

            if handler is None:
                # Weak reference was garbage collected
                to_remove.append(entry)
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in event handler for {event.type}")

            if one_shot:
                to_remove.append(entry)

            if event.consumed:
                break

        if to_remove and event.type in self._handlers:
            self._handlers[event.type] = [
                e for e in self._handlers[event.type] if e not in to_remove
            ]

    def _get_handler(self, handler_ref: Any) -> EventHandler | None:
        """Resolve handler from reference."""
        if isinstance(handler_ref, (ref, WeakMethod)):
            return handler_ref()
        return handler_ref
