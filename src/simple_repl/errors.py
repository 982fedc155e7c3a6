"""Exceptions raised by simple-repl."""

from __future__ import annotations


class SimpleReplError(Exception):
    """Base class for all simple-repl errors."""


class SpawnError(SimpleReplError):
    """The REPL process could not be started."""

    def __init__(self, name: str, command: list[str], reason: str) -> None:
        self.name = name
        self.command = command
        self.reason = reason
        super().__init__(
            f"Failed to start REPL {name!r} ({' '.join(command)}): {reason}"
        )


class SessionClosedError(SimpleReplError):
    """Input was written to a session whose process is gone."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"REPL session {name!r} is not running")
