"""Output cleaning for text read from a pseudo-terminal."""

from __future__ import annotations

import re

# CSI sequences (colors, cursor movement) and OSC sequences (window titles)
_CSI_RE = re.compile(r"\x1b\[[0-9;?]*[a-zA-Z]")
_OSC_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")


def strip_ansi(text: str) -> str:
    """Strip ANSI escape sequences from text."""
    return _CSI_RE.sub("", _OSC_RE.sub("", text))


def sanitize_output(text: str) -> str:
    """Drop control characters a line buffer cannot display.

    Tabs and newlines survive. Carriage returns are removed, the pty
    translates every newline into ``\\r\\n``.
    """
    cleaned = []
    for ch in text:
        cp = ord(ch)
        if ch in ("\t", "\n"):
            cleaned.append(ch)
        elif cp >= 32 and not 0x7F <= cp < 0xA0:
            cleaned.append(ch)
    return "".join(cleaned)
