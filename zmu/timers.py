"""
Timers Module.

Runs callbacks at whole-minute intervals of world time, a set number of
times or forever::

    clock = ManualClock()
    timers = TimerRegistry(clock)
    timers.attach(scheduler)

    def announce(timer, text):
        print(text, timer.repeats)

    # every 2 minutes, 11 runs in total (the first run plus 10 repeats)
    timers.add("myTimer", 2, 10, announce, "repeats left:")

Timers share a non-unique ``id`` so groups can be fetched or removed
together; each also gets a registry-unique ``uid``.
"""

from __future__ import annotations

import itertools
import math
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple, Union

from loguru import logger

if TYPE_CHECKING:
    from zmu.scheduler import TickScheduler

TimerCallback = Callable[..., Any]
Clock = Callable[[], float]


class ManualClock:
    """World clock advanced explicitly, in minutes."""

    def __init__(self, minutes: float = 0.0) -> None:
        self.minutes = minutes

    def advance(self, minutes: float) -> float:
        self.minutes += minutes
        return self.minutes

    def __call__(self) -> float:
        return self.minutes


class MonotonicClock:
    """World clock following wall time (one world minute per real minute by default)."""

    def __init__(self, minutes_per_second: float = 1 / 60) -> None:
        self.minutes_per_second = minutes_per_second
        self._origin = time.monotonic()

    def __call__(self) -> float:
        return (time.monotonic() - self._origin) * self.minutes_per_second


@dataclass
class Timer:
    """
    A scheduled callback.

    Attributes:
        id: Group label, not unique.
        delay: Whole minutes between runs.
        repeats: Runs left after the next one. True or a negative number
            repeats forever; 0 or False makes the next run the last.
        callback: Called as ``callback(timer, *args)``.
        args: Extra arguments for the callback.
        next: World minute of the next run.
        uid: Unique identifier within the owning registry.
    """

    id: str
    delay: int
    repeats: Union[int, bool] = 0
    callback: Optional[TimerCallback] = None
    args: Tuple[Any, ...] = ()
    next: float = 0.0
    uid: str = ""
    _registry: Optional["TimerRegistry"] = field(default=None, repr=False, compare=False)

    @property
    def is_last_run(self) -> bool:
        return self.repeats is False or (
            self.repeats is not True and self.repeats == 0
        )

    def trigger(self, now: Optional[float] = None) -> None:
        """
        Run the callback and schedule the next run.

        Args:
            now: Current world minute; read from the registry clock if None.
        """
        if self.is_last_run:
            self.delete()
        elif self.repeats is not True and self.repeats > 0:
            self.repeats -= 1

        if now is None:
            now = self._registry.clock() if self._registry is not None else self.next
        self.next = now + self.delay

        if self.callback is not None:
            self.callback(self, *self.args)

    def delete(self) -> None:
        """Remove this timer from its registry."""
        if self._registry is not None:
            self._registry.remove(self)


class TimerRegistry:
    """
    Active timers of one world clock.

    ``check`` triggers every due timer, at most once per whole world minute;
    ``attach`` runs it from a TickScheduler.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock: Clock = clock or MonotonicClock()
        self._timers: Dict[str, Timer] = {}
        self._counter = itertools.count(1)
        self._last_minute: Optional[int] = None

    def add(
        self,
        timer_id: str,
        delay: float,
        repeats: Union[int, bool] = 0,
        callback: Optional[TimerCallback] = None,
        *args: Any,
    ) -> Timer:
        """
        Create a timer whose first run is ``delay`` minutes from now.

        Args:
            timer_id: Group label (need not be unique).
            delay: Minutes between runs, floored to a whole number.
            repeats: See ``Timer.repeats``.
            callback: Called as ``callback(timer, *args)``.
            *args: Extra callback arguments.

        Returns:
            The new Timer.
        """
        whole_delay = math.floor(delay)
        timer = Timer(
            id=timer_id,
            delay=whole_delay,
            repeats=repeats,
            callback=callback,
            args=args,
            next=self.clock() + whole_delay,
            uid=f"{timer_id}-{next(self._counter)}",
            _registry=self,
        )
        self._timers[timer.uid] = timer
        logger.debug(f"Timer added: {timer.uid} (delay={whole_delay}m, repeats={repeats})")
        return timer

    def remove(self, timer: Union[str, Timer]) -> bool:
        """Remove one timer by uid or instance."""
        uid = timer.uid if isinstance(timer, Timer) else timer
        return self._timers.pop(uid, None) is not None

    def remove_all(self, timer_id: Union[str, Timer]) -> int:
        """
        Remove every timer in a group.

        Returns:
            Number of timers removed.
        """
        matches = self.get_all(timer_id)
        for uid in matches:
            del self._timers[uid]
        return len(matches)

    def get(self, uid: str) -> Optional[Timer]:
        return self._timers.get(uid)

    def get_all(self, timer_id: Union[str, Timer]) -> Dict[str, Timer]:
        """Return the timers of a group keyed by uid."""
        if isinstance(timer_id, Timer):
            timer_id = timer_id.id
        return {uid: t for uid, t in self._timers.items() if t.id == timer_id}

    def check(self, tick: Optional[int] = None) -> int:
        """
        Trigger every due timer, once per whole world minute.

        Args:
            tick: Tick number when driven by a TickScheduler (unused).

        Returns:
            Number of timers triggered.
        """
        now = self.clock()
        minute = math.floor(now)
        if minute == self._last_minute:
            return 0
        self._last_minute = minute

        triggered = 0
        for timer in list(self._timers.values()):
            # removed by an earlier callback in this pass
            if timer.uid not in self._timers:
                continue
            if timer.next <= now:
                timer.trigger(now)
                triggered += 1
        return triggered

    def attach(self, scheduler: "TickScheduler") -> None:
        """Run ``check`` on every tick of ``scheduler``."""
        scheduler.add(self.check)

    def detach(self, scheduler: "TickScheduler") -> bool:
        return scheduler.remove(self.check)

    def __len__(self) -> int:
        return len(self._timers)

    def __contains__(self, uid: object) -> bool:
        return uid in self._timers
