"""Text dispatch — turn lines into a payload and write it to a session."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

logger = logging.getLogger(__name__)


class Writable(Protocol):
    name: str

    def send(self, payload: str) -> None: ...


def normalize(lines: Sequence[str], separator: str = "\n") -> str:
    """Join ``lines`` with ``separator`` and make sure the result ends in one.

    Most REPLs only evaluate input once they see a line terminator, so a
    single line still gets a trailing separator. No lines (or a single
    empty line) produce an empty payload.
    """
    text = separator.join(lines)
    if not text:
        return ""
    if not text.endswith(separator):
        text += separator
    return text


def ensure_terminated(cmd: str, terminator: str = "\n") -> str:
    """Append ``terminator`` unless ``cmd`` is empty or already ends with it."""
    if cmd and not cmd.endswith(terminator):
        return cmd + terminator
    return cmd


def send(session: Writable | None, payload: str) -> bool:
    """Write ``payload`` to ``session``.

    A missing session or an empty payload is a no-op.

    Returns:
        True if anything was written.
    """
    if session is None:
        logger.debug("No REPL session, dropping %d chars", len(payload))
        return False
    if not payload:
        return False
    session.send(payload)
    return True
