"""REPL session — an interactive shell running in a managed pseudo-terminal."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import pty
import signal
import subprocess
from dataclasses import dataclass, field
from typing import Callable

from simple_repl.errors import SessionClosedError, SpawnError
from simple_repl.pty.ansi import sanitize_output, strip_ansi
from simple_repl.pty.buffer import TerminalBuffer

logger = logging.getLogger(__name__)


class SessionStatus(enum.Enum):
    """Lifecycle states for a REPL session."""

    PENDING = "pending"  # Created, start() not called yet
    RUNNING = "running"
    CLOSING = "closing"  # Close requested, waiting for process to die
    CLOSED = "closed"  # Closed by us
    EXITED = "exited"  # Process exited on its own


@dataclass
class ReplSession:
    """A named interactive shell in its own pseudo-terminal.

    The shell is spawned in a new process group so the whole tree (shell
    plus whatever REPL was started inside it) can be killed at once. Its
    output is cleaned and collected in a ``TerminalBuffer``, the display
    surface content that windows show.

    The session name is exported as ``SIMPLE_REPL_NAME`` so the process
    can be found by name from outside.
    """

    name: str
    shell: str = field(default_factory=lambda: os.environ.get("SHELL", "/bin/sh"))
    cwd: str = field(default_factory=os.getcwd)
    env: dict[str, str] = field(default_factory=dict)

    buffer: TerminalBuffer = field(default_factory=TerminalBuffer)
    _master_fd: int = field(default=-1, init=False)
    _proc: subprocess.Popen | None = field(default=None, init=False)
    _pgid: int = field(default=0, init=False)
    _reader_task: asyncio.Task | None = field(default=None, init=False)
    _status: SessionStatus = field(default=SessionStatus.PENDING, init=False)
    _on_exit: Callable[[ReplSession, int | None], None] | None = field(
        default=None, init=False
    )

    @property
    def command(self) -> list[str]:
        return [self.shell]

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc else None

    def set_on_exit(self, callback: Callable[[ReplSession, int | None], None]) -> None:
        """Set a callback for when the process exits on its own.

        Not called when the session is closed via close().
        """
        self._on_exit = callback

    async def start(self) -> None:
        """Spawn the shell in a new pty with its own process group.

        Raises:
            SpawnError: The working directory or the shell is unusable.
        """
        cwd = os.path.abspath(os.path.expanduser(self.cwd))
        master_fd, slave_fd = pty.openpty()

        env = {**os.environ, **self.env}
        env["SIMPLE_REPL_NAME"] = self.name
        env.setdefault("TERM", "dumb")

        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                start_new_session=True,
                env=env,
                cwd=cwd,
            )
        except OSError as e:
            os.close(master_fd)
            raise SpawnError(self.name, self.command, str(e)) from e
        finally:
            os.close(slave_fd)

        self._master_fd = master_fd
        self._pgid = os.getpgid(self._proc.pid)
        self._status = SessionStatus.RUNNING

        self.buffer.attach_loop(asyncio.get_running_loop())
        self._reader_task = asyncio.create_task(self._read_loop())

        logger.info(
            "REPL %s started: pid=%d cwd=%s cmd=%s",
            self.name,
            self._proc.pid,
            cwd,
            " ".join(self.command),
        )

    async def _read_loop(self) -> None:
        """Continuously read output from the pty master fd."""
        loop = asyncio.get_running_loop()
        try:
            while self._status == SessionStatus.RUNNING:
                try:
                    data = await loop.run_in_executor(
                        None, os.read, self._master_fd, 4096
                    )
                except OSError:
                    break
                if not data:
                    break
                text = data.decode("utf-8", errors="replace")
                self.buffer.feed(sanitize_output(strip_ansi(text)))
        finally:
            if self._status == SessionStatus.RUNNING:
                self._status = SessionStatus.EXITED
                exit_code = self._release()
                logger.info("REPL %s exited (code=%s)", self.name, exit_code)
                if self._on_exit:
                    try:
                        self._on_exit(self, exit_code)
                    except Exception:
                        logger.exception(
                            "Error in on_exit callback for REPL %s", self.name
                        )

    def send(self, payload: str) -> None:
        """Write ``payload`` verbatim to the session's input.

        Nothing is appended; callers decide on terminators. An empty
        payload is ignored.

        Raises:
            SessionClosedError: The process is not running.
        """
        if not payload:
            return
        if self._status != SessionStatus.RUNNING:
            raise SessionClosedError(self.name)
        data = payload.encode()
        # Large payloads may need several writes on a full pty
        while data:
            written = os.write(self._master_fd, data)
            data = data[written:]
        logger.debug("REPL %s <- %d bytes", self.name, len(payload))

    async def wait_for_output(
        self, start_line: int, timeout: float = 10.0, settle_time: float = 0.3
    ) -> list[str]:
        """Wait for output to settle, return lines produced after start_line."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        last_count = start_line
        settled_at = None

        while loop.time() < deadline:
            current = self.buffer.total_lines
            if current > last_count:
                last_count = current
                settled_at = loop.time()
            elif settled_at and (loop.time() - settled_at) > settle_time:
                break

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            wait_time = settle_time if settled_at else min(remaining, 0.5)
            await self.buffer.wait_for_data(timeout=wait_time)

        count = self.buffer.total_lines - start_line
        if count > 0:
            return self.buffer.read_tail(count)
        return []

    def close(self) -> None:
        """Kill the process tree and release the pty. Idempotent."""
        if self._status not in (SessionStatus.RUNNING, SessionStatus.CLOSING):
            return

        self._status = SessionStatus.CLOSING
        try:
            os.killpg(self._pgid, signal.SIGKILL)
            logger.info("Closed REPL %s (pgid=%d)", self.name, self._pgid)
        except ProcessLookupError:
            logger.debug("Process group already gone: %d", self._pgid)
        except OSError as e:
            logger.warning("Error killing REPL %s: %s", self.name, e)

        self._release()
        self._status = SessionStatus.CLOSED

    def _release(self) -> int | None:
        """Reap the process and close the pty master. Returns the exit code."""
        exit_code = None
        if self._proc is not None:
            try:
                exit_code = self._proc.wait(timeout=2)
            except subprocess.TimeoutExpired:
                logger.warning("REPL %s did not exit in time", self.name)

        if self._master_fd >= 0:
            try:
                os.close(self._master_fd)
            except OSError:
                pass
            self._master_fd = -1
        return exit_code

    @property
    def alive(self) -> bool:
        return self._status == SessionStatus.RUNNING

    @property
    def status(self) -> SessionStatus:
        return self._status

    def __del__(self) -> None:
        if self._status in (SessionStatus.RUNNING, SessionStatus.CLOSING):
            self.close()
