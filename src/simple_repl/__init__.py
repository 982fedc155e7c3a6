"""simple-repl — named REPL sessions with a transient output HUD."""

from simple_repl.config import (
    HudOptions,
    OpenOptions,
    SendOptions,
    ShowMode,
    SimpleReplConfig,
    StartupOptions,
)
from simple_repl.errors import SessionClosedError, SimpleReplError, SpawnError
from simple_repl.repl import SimpleRepl

__version__ = "0.1.0"

__all__ = [
    "HudOptions",
    "OpenOptions",
    "SendOptions",
    "SessionClosedError",
    "ShowMode",
    "SimpleRepl",
    "SimpleReplConfig",
    "SimpleReplError",
    "SpawnError",
    "StartupOptions",
]
