"""Layout — headless model of tabpages and the windows showing REPL output.

A window shows one buffer, identified by name (the session name). Regular
windows belong to a tabpage and persist until closed. Floating windows are
placed over a tabpage with a geometry dict that is stored as given.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Literal

logger = logging.getLogger(__name__)

SplitLocation = Literal["current", "split", "vsplit"]


@dataclass
class Window:
    id: int
    tabpage: int
    buffer: str
    floating: bool = False
    geometry: dict[str, Any] = field(default_factory=dict)
    cursor: tuple[int, int] = (1, 0)
    vars: dict[str, Any] = field(default_factory=dict)


class Layout:
    """Tabpages and windows, with a current tabpage and a current window.

    Starts with one tabpage holding one window on an unnamed buffer.
    """

    def __init__(self) -> None:
        self._windows: dict[int, Window] = {}
        self._win_ids = itertools.count(1000)
        self._tab_ids = itertools.count(1)
        self._tabpages: dict[int, int] = {}  # tabpage -> current window
        self.current_tabpage = 0
        self.new_tabpage()

    def new_tabpage(self, buffer: str = "") -> int:
        """Open a tabpage with a single window and make it current."""
        tab = next(self._tab_ids)
        win = self._add(tab, buffer)
        self._tabpages[tab] = win.id
        self.current_tabpage = tab
        return tab

    def set_tabpage(self, tab: int) -> None:
        if tab not in self._tabpages:
            raise KeyError(f"No tabpage {tab}")
        self.current_tabpage = tab

    @property
    def tabpages(self) -> list[int]:
        return list(self._tabpages)

    @property
    def current_window(self) -> int:
        return self._tabpages[self.current_tabpage]

    def _add(self, tab: int, buffer: str, **kwargs: Any) -> Window:
        win = Window(id=next(self._win_ids), tabpage=tab, buffer=buffer, **kwargs)
        self._windows[win.id] = win
        return win

    def get(self, win_id: int) -> Window | None:
        return self._windows.get(win_id)

    def is_valid(self, win_id: int) -> bool:
        return win_id in self._windows

    def windows_for(self, buffer: str, tabpage: int | None = None) -> list[Window]:
        """Windows showing ``buffer`` on a tabpage (default: the current one)."""
        tab = self.current_tabpage if tabpage is None else tabpage
        return [
            w for w in self._windows.values() if w.buffer == buffer and w.tabpage == tab
        ]

    def open_window(
        self, buffer: str, location: SplitLocation = "current", focus: bool = False
    ) -> int:
        """Show ``buffer`` in a regular window and return its id.

        A regular window already showing the buffer on the current tabpage
        is reused. Otherwise ``split``/``vsplit`` opens a new window and
        ``current`` replaces the buffer of the current window. Unless
        ``focus`` is set, the previously current window stays current.
        """
        for win in self.windows_for(buffer):
            if not win.floating:
                return win.id

        src = self.current_window
        if location in ("split", "vsplit"):
            win = self._add(self.current_tabpage, buffer)
            logger.debug("%s window %d for %s", location, win.id, buffer)
        else:
            win = self._windows[src]
            win.buffer = buffer
            win.cursor = (1, 0)
        if focus:
            self._tabpages[self.current_tabpage] = win.id
        return win.id

    def open_float(self, buffer: str, config: dict[str, Any]) -> int:
        """Open a floating window over the current tabpage without entering it."""
        win = self._add(
            self.current_tabpage, buffer, floating=True, geometry=dict(config)
        )
        logger.debug("Floating window %d for %s", win.id, buffer)
        return win.id

    def close_window(self, win_id: int) -> bool:
        """Close a window. Returns False if it was already gone.

        Closing the last regular window of a tabpage leaves an empty
        window behind, a tabpage is never without one.
        """
        win = self._windows.pop(win_id, None)
        if win is None:
            return False
        if self._tabpages.get(win.tabpage) == win_id:
            remaining = [
                w.id
                for w in self._windows.values()
                if w.tabpage == win.tabpage and not w.floating
            ]
            if remaining:
                self._tabpages[win.tabpage] = remaining[0]
            else:
                self._tabpages[win.tabpage] = self._add(win.tabpage, "").id
        return True

    def close_buffer_windows(self, buffer: str) -> int:
        """Close every window on any tabpage that shows ``buffer``."""
        ids = [w.id for w in self._windows.values() if w.buffer == buffer]
        for win_id in ids:
            self.close_window(win_id)
        return len(ids)

    def set_cursor(self, win_id: int, row: int, col: int = 0) -> None:
        win = self._windows.get(win_id)
        if win is None:
            raise KeyError(f"Invalid window {win_id}")
        win.cursor = (row, col)
