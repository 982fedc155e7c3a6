"""Terminal content buffer for REPL sessions."""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)

ContentListener = Callable[["TerminalBuffer"], "bool | None"]


class TerminalBuffer:
    """Thread-safe rolling buffer holding the output of one session.

    Stores up to ``max_lines`` ANSI-stripped lines, the text a window shows.

    Output arrives in arbitrary chunks. A chunk that does not end in a
    newline leaves the last line open and the next chunk continues it, so
    ``"hel"`` followed by ``"lo\\n"`` yields a single ``"hello"`` line.

    Content listeners are called synchronously after every feed. A listener
    that returns ``False`` is detached.
    """

    def __init__(self, max_lines: int = 50_000) -> None:
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._total_lines: int = 0  # Total lines ever started
        self._open_line: bool = False  # Last line still being written
        self._lock = threading.Lock()
        self._listeners: dict[int, ContentListener] = {}
        self._listener_ids = itertools.count(1)
        # Event-based notification (set after attach_loop)
        self._data_event: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def attach_loop(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Attach an asyncio event loop so feed() can signal waiters.

        Must be called from the asyncio thread (or pass an explicit loop).
        """
        self._loop = loop or asyncio.get_running_loop()
        self._data_event = asyncio.Event()

    def feed(self, text: str) -> None:
        """Append cleaned (ANSI-stripped) terminal output."""
        if not text:
            return
        parts = text.split("\n")
        with self._lock:
            for i, part in enumerate(parts):
                if i == 0 and self._open_line and self._lines:
                    self._lines[-1] += part
                    continue
                if i == len(parts) - 1 and part == "":
                    # Trailing newline: next chunk starts a fresh line
                    break
                self._lines.append(part)
                self._total_lines += 1
            self._open_line = not text.endswith("\n")
        self._notify()

    def _notify(self) -> None:
        if self._data_event is not None and self._loop is not None:
            self._loop.call_soon_threadsafe(self._data_event.set)
        for handle, listener in list(self._listeners.items()):
            try:
                keep = listener(self)
            except Exception:
                logger.exception("Content listener %d failed, detaching", handle)
                keep = False
            if keep is False:
                self._listeners.pop(handle, None)

    def add_listener(self, listener: ContentListener) -> int:
        """Register a content listener and return its handle."""
        handle = next(self._listener_ids)
        self._listeners[handle] = listener
        return handle

    def remove_listener(self, handle: int) -> None:
        self._listeners.pop(handle, None)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def wait_for_data(self, timeout: float | None = None) -> bool:
        """Wait until new data is fed (or timeout).

        Returns True if data arrived, False on timeout.
        """
        if self._data_event is None:
            await asyncio.sleep(0.05)
            return True
        try:
            await asyncio.wait_for(self._data_event.wait(), timeout=timeout)
            self._data_event.clear()
            return True
        except asyncio.TimeoutError:
            return False

    def read(self, offset: int = 0, limit: int = 500) -> list[str]:
        """Read cleaned lines starting at a 0-based offset."""
        with self._lock:
            lines = list(self._lines)
        start = min(offset, len(lines))
        end = min(start + limit, len(lines))
        return lines[start:end]

    def read_tail(self, n: int = 100) -> list[str]:
        """Read the last N cleaned lines."""
        with self._lock:
            lines = list(self._lines)
        return lines[-n:] if len(lines) > n else lines

    def read_all(self) -> str:
        with self._lock:
            return "\n".join(self._lines)

    def last_row(self) -> int:
        """1-based number of the last line; an empty buffer has row 1."""
        with self._lock:
            return max(len(self._lines), 1)

    def last_non_blank_row(self) -> int:
        """1-based row of the last line with visible content.

        Falls back to ``last_row()`` when every line is blank, a shell that
        just started often has nothing but empty lines.
        """
        with self._lock:
            for i in range(len(self._lines) - 1, -1, -1):
                if self._lines[i].strip():
                    return i + 1
            return max(len(self._lines), 1)

    @property
    def line_count(self) -> int:
        """Current number of lines in the buffer."""
        with self._lock:
            return len(self._lines)

    @property
    def total_lines(self) -> int:
        """Total number of lines ever started."""
        with self._lock:
            return self._total_lines

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()
            self._total_lines = 0
            self._open_line = False
