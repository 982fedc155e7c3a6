"""PTY process management — REPL shells in managed pseudo-terminals.

Every REPL runs in its own pty and process group, with its output cleaned
and collected in a rolling buffer that windows display.
"""

from simple_repl.pty.buffer import TerminalBuffer
from simple_repl.pty.session import ReplSession, SessionStatus

__all__ = [
    "ReplSession",
    "SessionStatus",
    "TerminalBuffer",
]
