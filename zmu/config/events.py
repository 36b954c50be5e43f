"""
Configuration Event Notifier.

Synchronous, in-process notifications fired after a configuration mutation
has been committed. Every callback receives the Configuration first,
followed by the event's own arguments:

- CHANGE: (config, key, value)
- RESET:  (config,)
- LOADED: (config, path)
- SAVED:  (config, path)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List

from loguru import logger

EventCallback = Callable[..., Any]


class ConfigEvent(Enum):
    """Lifecycle events of a Configuration."""

    CHANGE = "OnConfigChange"
    RESET = "OnConfigReset"
    LOADED = "OnConfigLoaded"
    SAVED = "OnConfigSaved"


class EventNotifier:
    """
    Holds subscribers per event and delivers notifications to them in
    subscription order.

    Usage::

        events = EventNotifier()
        events.subscribe(ConfigEvent.CHANGE, lambda config, key, value: ...)
        events.fire(ConfigEvent.CHANGE, config, "IntTest", 100)
    """

    def __init__(self) -> None:
        self._subscribers: Dict[ConfigEvent, List[EventCallback]] = {
            event: [] for event in ConfigEvent
        }

    def subscribe(self, event: ConfigEvent, callback: EventCallback) -> None:
        """Register ``callback`` for ``event``. Subscribing twice is a no-op."""
        callbacks = self._subscribers[event]
        if callback not in callbacks:
            callbacks.append(callback)

    def unsubscribe(self, event: ConfigEvent, callback: EventCallback) -> bool:
        """
        Remove ``callback`` from ``event``.

        Returns:
            True if the callback was subscribed.
        """
        callbacks = self._subscribers[event]
        if callback in callbacks:
            callbacks.remove(callback)
            return True
        return False

    def subscribers(self, event: ConfigEvent) -> List[EventCallback]:
        """Return a copy of the callbacks subscribed to ``event``."""
        return list(self._subscribers[event])

    def fire(self, event: ConfigEvent, config: Any, *args: Any) -> int:
        """
        Deliver ``event`` to every subscriber.

        A subscriber that raises is logged with its traceback and does not
        stop delivery to the others; the mutation has already happened.

        Returns:
            Number of subscribers that were called.
        """
        delivered = 0
        for callback in list(self._subscribers[event]):
            delivered += 1
            try:
                callback(config, *args)
            except Exception:
                logger.exception(
                    f"Subscriber {callback!r} failed while handling {event.value}"
                )
        return delivered
