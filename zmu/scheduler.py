"""
Tick Scheduler.

Stand-in for the host's "run every tick" event: callbacks are registered
with ``add`` and invoked once per ``tick()`` with the tick number. A
callback may remove itself (or others) while the tick is running; the
change takes effect from the next tick.
"""

from __future__ import annotations

from typing import Callable, List

from loguru import logger

TickCallback = Callable[[int], None]


class TickScheduler:
    """Ordered set of per-tick callbacks."""

    def __init__(self) -> None:
        self._callbacks: List[TickCallback] = []
        self._ticks = 0

    @property
    def ticks(self) -> int:
        """Number of ticks run so far."""
        return self._ticks

    def add(self, callback: TickCallback) -> None:
        """Run ``callback`` on every tick until removed. Adding twice is a no-op."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def remove(self, callback: TickCallback) -> bool:
        """
        Stop running ``callback``.

        Returns:
            True if it was registered.
        """
        if callback in self._callbacks:
            self._callbacks.remove(callback)
            return True
        return False

    def tick(self) -> int:
        """
        Advance one tick and run every registered callback.

        A callback that raises is logged and the remaining callbacks still
        run.

        Returns:
            Number of callbacks invoked.
        """
        self._ticks += 1
        invoked = 0
        for callback in list(self._callbacks):
            invoked += 1
            try:
                callback(self._ticks)
            except Exception:
                logger.exception(f"Tick callback {callback!r} failed on tick {self._ticks}")
        return invoked

    def __contains__(self, callback: object) -> bool:
        return callback in self._callbacks

    def __len__(self) -> int:
        return len(self._callbacks)
