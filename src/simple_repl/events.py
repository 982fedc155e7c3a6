"""Events — one-shot triggers on user actions, and deferred callbacks.

The HUD closes itself on the next unrelated user action. Whatever drives
the layout (an editor binding, a TUI) reports those actions with
``EventBus.emit``.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol

logger = logging.getLogger(__name__)


class EventKind(enum.Enum):
    CURSOR_MOVED = "cursor_moved"
    CMDLINE_ENTER = "cmdline_enter"
    INSERT_ENTER = "insert_enter"


DISMISS_EVENTS = (
    EventKind.CURSOR_MOVED,
    EventKind.CMDLINE_ENTER,
    EventKind.INSERT_ENTER,
)


@dataclass(eq=False)
class Trigger:
    """A callback waiting for the first of several event kinds."""

    kinds: frozenset[EventKind]
    callback: Callable[[EventKind], None]
    fired: bool = field(default=False, init=False)
    cancelled: bool = field(default=False, init=False)

    @property
    def pending(self) -> bool:
        return not (self.fired or self.cancelled)

    def cancel(self) -> None:
        self.cancelled = True


class EventBus:
    """Dispatches user-action events to one-shot triggers.

    A trigger fires at most once, on the first emitted event matching any
    of its kinds, and is then dropped for all of them.
    """

    def __init__(self) -> None:
        self._triggers: list[Trigger] = []

    def once(
        self, kinds: Iterable[EventKind], callback: Callable[[EventKind], None]
    ) -> Trigger:
        trigger = Trigger(kinds=frozenset(kinds), callback=callback)
        self._triggers.append(trigger)
        return trigger

    def emit(self, kind: EventKind) -> int:
        """Fire all pending triggers listening for ``kind``.

        Returns the number of triggers fired.
        """
        due = [t for t in self._triggers if t.pending and kind in t.kinds]
        # Drop fired and cancelled triggers before running callbacks, a
        # callback may register new ones
        self._triggers = [t for t in self._triggers if t.pending and t not in due]
        for trigger in due:
            trigger.fired = True
            try:
                trigger.callback(kind)
            except Exception:
                logger.exception("Trigger callback for %s failed", kind.value)
        return len(due)

    @property
    def pending(self) -> int:
        return sum(1 for t in self._triggers if t.pending)


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> None: ...


class LoopScheduler:
    """Runs deferred callbacks on the running asyncio loop.

    A delay of zero or less runs the callback right away. Without a running
    loop the callback also runs right away, there is nothing to defer to.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        if delay <= 0:
            callback()
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop, running deferred callback now")
            callback()
            return
        loop.call_later(delay, callback)
