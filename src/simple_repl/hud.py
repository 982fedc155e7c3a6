"""HUD — a transient floating window that peeks at the latest REPL output.

After text is sent to a REPL the HUD pops up (unless the REPL is already
visible), follows the output as it arrives, and closes itself on the next
cursor movement, command-line entry or insert.
"""

from __future__ import annotations

import enum
import itertools
import logging
from typing import Any

from simple_repl.config import ShowMode
from simple_repl.events import (
    DISMISS_EVENTS,
    EventBus,
    LoopScheduler,
    Scheduler,
    Trigger,
)
from simple_repl.layout import Layout
from simple_repl.pty.buffer import TerminalBuffer
from simple_repl.pty.session import ReplSession

logger = logging.getLogger(__name__)

# Window variable marking a floating window as a HUD
HUD_VAR = "simple_repl_hud"


class HudAction(enum.Enum):
    OPEN = "open"  # No HUD yet, open one
    CLOSE = "close"  # Close the existing HUD
    KEEP = "keep"  # Leave the existing HUD alone
    SKIP = "skip"  # No HUD and none wanted


def decide(show: ShowMode, regular: int, overlay: int) -> HudAction:
    """Decide what to do with the HUD of one REPL on the current tabpage.

    Args:
        show: The show mode of the request.
        regular: Number of regular windows showing the REPL.
        overlay: Number of HUD windows showing the REPL.
    """
    if overlay > 0:
        if show == ShowMode.NEVER or (show == ShowMode.IF_NOT_VISIBLE and regular > 0):
            return HudAction.CLOSE
        return HudAction.KEEP
    if show == ShowMode.NEVER:
        return HudAction.SKIP
    if regular > 0 and show == ShowMode.IF_NOT_VISIBLE:
        return HudAction.SKIP
    return HudAction.OPEN


def default_hud_config(name: str, columns: int = 80, lines: int = 24) -> dict[str, Any]:
    """Top-right floating window, a third of the screen wide."""
    return {
        "title": f" REPL Output: {name} ",
        "relative": "editor",
        "border": "single",
        "style": "minimal",
        "anchor": "NE",
        "row": 0,
        "col": columns,
        "width": max(columns // 3, 50),
        "height": max(lines // 4, 10),
    }


class Hud:
    """Applies the show policy to the layout and manages open HUD windows."""

    def __init__(
        self,
        layout: Layout,
        events: EventBus,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.layout = layout
        self.events = events
        self.scheduler = scheduler if scheduler is not None else LoopScheduler()
        # Session name -> (generation, show mode) of the scheduled open
        self._pending: dict[str, tuple[int, ShowMode]] = {}
        self._generations = itertools.count(1)
        self._triggers: dict[int, Trigger] = {}

    def windows(self, session: ReplSession) -> list[int]:
        """HUD windows of ``session`` on the current tabpage."""
        return [
            w.id for w in self.layout.windows_for(session.name) if w.vars.get(HUD_VAR)
        ]

    def update(
        self,
        session: ReplSession,
        show: ShowMode,
        config: dict[str, Any] | None = None,
        delay: float = 0.0,
    ) -> HudAction:
        """Open, close or keep the HUD of ``session``.

        Opening is deferred by ``delay`` seconds so freshly sent input has
        a chance to produce output before the cursor is placed.
        """
        windows = self.layout.windows_for(session.name)
        overlays = [w.id for w in windows if w.vars.get(HUD_VAR)]
        regular = len(windows) - len(overlays)
        action = decide(show, regular, len(overlays))
        logger.debug(
            "HUD %s: show=%s regular=%d overlay=%d -> %s",
            session.name,
            show.value,
            regular,
            len(overlays),
            action.value,
        )

        if action == HudAction.CLOSE:
            for win_id in overlays:
                self.close(win_id)
        if action in (HudAction.CLOSE, HudAction.SKIP):
            if self._pending.pop(session.name, None) is not None:
                logger.debug("Cancelled pending HUD for %s", session.name)
        elif action == HudAction.OPEN:
            pending = self._pending.get(session.name)
            if pending is not None:
                # Already scheduled, the latest show mode wins
                self._pending[session.name] = (pending[0], show)
                return HudAction.KEEP
            generation = next(self._generations)
            self._pending[session.name] = (generation, show)
            self.scheduler.call_later(
                delay, lambda: self._open(session, config, generation)
            )
        return action

    def _open(
        self, session: ReplSession, config: dict[str, Any] | None, generation: int
    ) -> int | None:
        pending = self._pending.get(session.name)
        if pending is None or pending[0] != generation:
            return None
        del self._pending[session.name]
        show = pending[1]
        if not session.alive:
            logger.debug("REPL %s gone before its HUD could open", session.name)
            return None
        # The layout may have changed while the open was pending
        windows = self.layout.windows_for(session.name)
        overlay = sum(1 for w in windows if w.vars.get(HUD_VAR))
        if decide(show, len(windows) - overlay, overlay) != HudAction.OPEN:
            return None

        if config is None:
            config = default_hud_config(session.name)
        win_id = self.layout.open_float(session.name, config)
        self.layout.get(win_id).vars[HUD_VAR] = True
        self.layout.set_cursor(win_id, session.buffer.last_non_blank_row())

        self._triggers[win_id] = self.events.once(
            DISMISS_EVENTS, lambda _kind: self.close(win_id)
        )
        session.buffer.add_listener(self._follower(win_id))
        logger.debug("Opened HUD %d for %s", win_id, session.name)
        return win_id

    def _follower(self, win_id: int):
        def follow(buffer: TerminalBuffer) -> bool:
            if not self.layout.is_valid(win_id):
                return False
            self.layout.set_cursor(win_id, buffer.last_row())
            return True

        return follow

    def close(self, win_id: int) -> None:
        trigger = self._triggers.pop(win_id, None)
        if trigger is not None:
            trigger.cancel()
        if self.layout.close_window(win_id):
            logger.debug("Closed HUD %d", win_id)
