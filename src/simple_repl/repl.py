"""SimpleRepl — open named REPLs, send text to them, peek at their output."""

from __future__ import annotations

import logging
import warnings
from typing import Any, Sequence

from simple_repl.config import HudOptions, OpenOptions, SendOptions, SimpleReplConfig
from simple_repl.dispatch import ensure_terminated, normalize, send
from simple_repl.events import EventBus, Scheduler
from simple_repl.hud import Hud, default_hud_config
from simple_repl.layout import Layout
from simple_repl.pty.session import ReplSession
from simple_repl.registry import SessionRegistry, repl_name
from simple_repl.text import Position, motion_lines, selection_lines

logger = logging.getLogger(__name__)


class SimpleRepl:
    """Entry point tying the registry, the layout and the HUD together.

    Create one per process and hand it to whatever binds keys or commands.
    REPLs are addressed by their short name; the registry stores them under
    the prefixed name (``simple_repl:<name>``).
    """

    def __init__(
        self,
        config: SimpleReplConfig | None = None,
        registry: SessionRegistry | None = None,
        layout: Layout | None = None,
        events: EventBus | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.config = config if config is not None else SimpleReplConfig()
        # An empty registry is falsy, compare against None
        if registry is None:
            registry = SessionRegistry(shell=self.config.shell)
        self.registry = registry
        self.layout = layout if layout is not None else Layout()
        self.events = events if events is not None else EventBus()
        self.hud = Hud(self.layout, self.events, scheduler)

    def repl_name(self, name: str | None = None) -> str:
        return repl_name(name, self.config.prefix)

    def get(self, name: str | None = None) -> ReplSession | None:
        return self.registry.get(self.repl_name(name))

    async def open_repl(
        self,
        name: str | None = None,
        cmd: str | None = None,
        opts: OpenOptions | dict[str, Any] | None = None,
    ) -> ReplSession:
        """Create and/or open the REPL called ``name``.

        An existing REPL is reused and its startup options are ignored.
        A new one is started in ``opts.create.cwd`` and ``opts.create.cmd``
        is run in it. ``opts.win`` decides where it is shown: ``current``,
        ``split``, ``vsplit``, ``hud`` or ``none``.

        ``cmd`` is the older way of passing ``opts.create.cmd`` and is
        deprecated.

        Raises:
            SpawnError: The REPL process could not be started.
        """
        if not isinstance(opts, OpenOptions):
            opts = OpenOptions.model_validate(opts or {})
        create = opts.create
        if cmd is not None:
            warnings.warn(
                "open_repl(name, cmd) is deprecated, use opts={'create': {'cmd': ...}}",
                DeprecationWarning,
                stacklevel=2,
            )
            if not create.cmd:
                create = create.model_copy(update={"cmd": cmd})
        # The command must end in a newline to actually run
        create = create.model_copy(update={"cmd": ensure_terminated(create.cmd)})

        full_name = self.repl_name(name)
        session, created = await self.registry.start(full_name, create)
        if not created:
            logger.debug("Reusing REPL %s", full_name)

        if opts.win == "hud":
            self._update_hud(name, session, opts.hud)
        elif opts.win != "none":
            win = self.layout.open_window(full_name, opts.win, opts.focus)
            self.layout.set_cursor(win, session.buffer.last_row())
        return session

    def send_to_repl(
        self,
        name: str | None,
        lines: Sequence[str],
        opts: SendOptions | dict[str, Any] | None = None,
    ) -> bool:
        """Send ``lines`` to the REPL called ``name``.

        Does nothing if the REPL does not exist or there is nothing to send.

        Returns:
            True if text was written to the REPL.
        """
        opts = self._send_options(opts)
        session = self.get(name)
        if session is None:
            logger.debug("No REPL %s, ignoring send", self.repl_name(name))
            return False
        if not send(session, normalize(lines, opts.new_line)):
            return False

        if opts.scroll:
            row = session.buffer.last_row()
            for win in self.layout.windows_for(session.name):
                if not win.floating:
                    self.layout.set_cursor(win.id, row)
        self._update_hud(name, session, opts.hud)
        return True

    def send_selection(
        self,
        name: str | None,
        lines: Sequence[str],
        start: Position,
        end: Position,
        opts: SendOptions | dict[str, Any] | None = None,
    ) -> bool:
        """Send the visual selection between ``start`` and ``end`` of ``lines``."""
        return self.send_to_repl(name, selection_lines(lines, start, end), opts)

    def send_motion(
        self,
        name: str | None,
        lines: Sequence[str],
        start: Position,
        end: Position,
        opts: SendOptions | dict[str, Any] | None = None,
    ) -> bool:
        """Send the text a motion covered, ``start`` and ``end`` inclusive."""
        return self.send_to_repl(name, motion_lines(lines, start, end), opts)

    async def close_repl(self, name: str | None = None) -> bool:
        """Stop the REPL and close every window showing it."""
        full_name = self.repl_name(name)
        self.layout.close_buffer_windows(full_name)
        return await self.registry.close(full_name)

    async def shutdown(self) -> None:
        for info in self.registry.list_sessions():
            self.layout.close_buffer_windows(info["name"])
        await self.registry.cleanup()

    def _send_options(self, opts: SendOptions | dict[str, Any] | None) -> SendOptions:
        if opts is None:
            return self.config.send
        if isinstance(opts, SendOptions):
            return opts
        base = self.config.send.model_dump()
        hud = {**base["hud"], **opts.get("hud", {})}
        return SendOptions.model_validate({**base, **opts, "hud": hud})

    def _update_hud(
        self, name: str | None, session: ReplSession, hud: HudOptions
    ) -> None:
        config = hud.config
        if config is None:
            config = default_hud_config(
                name or self.config.prefix, self.config.columns, self.config.lines
            )
        self.hud.update(session, hud.show, config, hud.delay)
