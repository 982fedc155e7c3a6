"""Session registry — at most one live REPL per name."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Callable

from simple_repl.config import StartupOptions
from simple_repl.dispatch import send
from simple_repl.pty.session import ReplSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[..., ReplSession]

DEFAULT_PREFIX = "simple_repl"


def repl_name(name: str | None = None, prefix: str = DEFAULT_PREFIX) -> str:
    """Compose the session name: the prefix alone, or ``prefix:name``."""
    if not name:
        return prefix
    return f"{prefix}:{name}"


class SessionRegistry:
    """Maps names to live REPL sessions.

    Sessions are created on the first ``start()`` for a name and reused
    afterwards. A session whose process has exited no longer counts: the
    name is absent again and the next ``start()`` spawns a fresh one.

    ``start()`` holds a lock across the spawn so that two concurrent
    starts for the same name cannot both create a session.
    """

    def __init__(
        self,
        factory: SessionFactory = ReplSession,
        shell: str | None = None,
    ) -> None:
        self._sessions: dict[str, ReplSession] = {}
        self._factory = factory
        self._shell = shell or os.environ.get("SHELL", "/bin/sh")
        self._lock = asyncio.Lock()

    def get(self, name: str) -> ReplSession | None:
        """Look up a live session. Never creates one."""
        session = self._sessions.get(name)
        if session is None:
            return None
        if not session.alive:
            logger.debug("REPL %s is no longer running, forgetting it", name)
            del self._sessions[name]
            return None
        return session

    async def start(
        self, name: str, startup: StartupOptions | None = None
    ) -> tuple[ReplSession, bool]:
        """Return the session for ``name``, creating it if needed.

        An existing session is returned untouched and ``startup`` is
        ignored, including its ``on_create`` callback.

        Returns:
            ``(session, created)``.

        Raises:
            SpawnError: The process could not be started. Nothing is
                registered in that case.
        """
        async with self._lock:
            session = self.get(name)
            if session is not None:
                return session, False

            startup = startup or StartupOptions()
            session = self._factory(name=name, shell=self._shell, cwd=startup.cwd)
            await session.start()
            self._sessions[name] = session
            logger.info("Created REPL %s in %s", name, startup.cwd)

        send(session, startup.cmd)
        if startup.on_create is not None:
            startup.on_create(session)
        return session, True

    async def close(self, name: str) -> bool:
        """Close a session and forget it. Returns False if it was unknown."""
        session = self._sessions.pop(name, None)
        if session is None:
            return False
        session.close()
        return True

    def list_sessions(self) -> list[dict[str, Any]]:
        return [
            {
                "name": s.name,
                "cwd": s.cwd,
                "command": " ".join(s.command),
                "alive": s.alive,
                "status": s.status.value,
                "lines": s.buffer.line_count,
            }
            for s in self._sessions.values()
        ]

    async def cleanup(self) -> None:
        """Close all sessions. Called on shutdown."""
        for name in list(self._sessions.keys()):
            await self.close(name)
        logger.info("All REPL sessions cleaned up")

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._sessions)
