"""Change notification registry.

This module broadcasts committed settings mutations to subscribers.
Delivery is synchronous on the caller's thread, in subscription order.
"""

from __future__ import annotations

import threading
from typing import Callable

from core.errors import StashNotificationError, StashReentrancyError
from core.logging_config import get_logger
from core.types import ChangeEvent

_LOGGER = get_logger(__name__)

ChangeHandler = Callable[[ChangeEvent], None]


class Subscription:
    """Handle controlling the lifetime of one subscriber registration.

    Closing the handle unsubscribes the handler. It can also be used
    as a context manager to scope a subscription to a block.
    """

    def __init__(self, notifier: "ChangeNotifier", handler: ChangeHandler) -> None:
        self._notifier = notifier
        self._handler = handler

    @property
    def handler(self) -> ChangeHandler:
        return self._handler

    @property
    def active(self) -> bool:
        return self._notifier.is_subscribed(self._handler)

    def close(self) -> None:
        """Unsubscribe the handler; closing twice is a no-op."""
        self._notifier.unsubscribe(self._handler)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ChangeNotifier:
    """Thread-safe registry of change event handlers."""

    def __init__(self) -> None:
        self._handlers: list[ChangeHandler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: ChangeHandler) -> Subscription:
        """Register a handler for change events.

        Registering the same handler twice keeps a single registration.

        Args:
            handler: Callable receiving each ChangeEvent.

        Returns:
            Subscription handle for the registration.
        """
        if not callable(handler):
            raise TypeError(f"Change handler must be callable, got {type(handler).__name__}.")
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)
        return Subscription(self, handler)

    def unsubscribe(self, handler: ChangeHandler) -> None:
        """Remove a handler; unknown handlers are ignored."""
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def is_subscribed(self, handler: ChangeHandler) -> bool:
        with self._lock:
            return handler in self._handlers

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to every handler registered at call time.

        Every handler runs even if an earlier one fails; the first failure
        is then raised to the publisher.

        Args:
            event: Committed change to broadcast.

        Raises:
            StashNotificationError: If any handler raised.
        """
        with self._lock:
            handlers = list(self._handlers)
        first_error: Exception | None = None
        for handler in handlers:
            try:
                handler(event)
            except Exception as error:
                _LOGGER.error(
                    "settings_change_handler_failed",
                    action=event.action.value,
                    key=event.key,
                    error=str(error),
                )
                if first_error is None:
                    first_error = error
        if isinstance(first_error, StashReentrancyError):
            raise first_error
        if first_error is not None:
            raise StashNotificationError(
                f"Change handler failed for {event.action.value} event: {first_error}. "
                "The mutation was committed; fix or unsubscribe the failing handler."
            ) from first_error
