"""Configuration — Pydantic models for simple-repl options."""

from __future__ import annotations

import enum
import json
import os
from typing import Any, Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ShowMode(str, enum.Enum):
    """If and when the HUD window is shown after sending text."""

    ALWAYS = "always"
    NEVER = "never"
    IF_NOT_VISIBLE = "if_not_visible"


WindowLocation = Literal["current", "split", "vsplit", "hud", "none"]


class StartupOptions(BaseModel):
    """How a REPL is started. Only considered if the REPL is newly created."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cwd: str = Field(default_factory=os.getcwd, description="Working directory")
    cmd: str = Field(
        default="",
        description="Command typed into the shell after startup (empty: plain shell)",
    )
    on_create: Callable[..., Any] | None = Field(
        default=None,
        description="Called once with the new session right after it was created",
    )


class HudOptions(BaseModel):
    """HUD (floating peek window) options."""

    show: ShowMode = Field(default=ShowMode.IF_NOT_VISIBLE)
    config: dict[str, Any] | None = Field(
        default=None,
        description=(
            "Floating window geometry (relative, anchor, row, col, width, "
            "height, border, style, title). Passed to the layout verbatim; "
            "None uses the default top-right placement."
        ),
    )
    delay: float = Field(
        default=0.1,
        description="Seconds to wait for output before placing the HUD cursor",
    )


class OpenHudOptions(HudOptions):
    """HUD options for opening a REPL with ``win='hud'``: shown by default."""

    show: ShowMode = Field(default=ShowMode.ALWAYS)


class OpenOptions(BaseModel):
    """Where and how to open a REPL."""

    win: WindowLocation = Field(default="split")
    focus: bool = Field(
        default=False,
        description="Focus the REPL window. Only relevant for 'split' and 'vsplit'",
    )
    create: StartupOptions = Field(default_factory=StartupOptions)
    hud: OpenHudOptions = Field(
        default_factory=OpenHudOptions,
        description="HUD options used when win is 'hud'",
    )

    @field_validator("win", mode="before")
    @classmethod
    def _overlay_alias(cls, value: Any) -> Any:
        return "hud" if value == "overlay" else value


class SendOptions(BaseModel):
    """Options for sending text to a REPL."""

    new_line: str = Field(
        default="\n",
        description=(
            "Used to join the lines before they are sent. rlwrap users can "
            "pass Ctrl-O ('\\x0f') to keep sent code out of the history"
        ),
    )
    hud: HudOptions = Field(default_factory=HudOptions)
    scroll: bool = Field(
        default=True, description="Scroll regular REPL windows to the latest output"
    )


class SimpleReplConfig(BaseModel):
    """Top-level simple-repl configuration."""

    shell: str = Field(
        default_factory=lambda: os.environ.get("SHELL", "/bin/sh"),
        description="Shell every REPL is started in",
    )
    prefix: str = Field(default="simple_repl", description="Session name prefix")
    columns: int = Field(default=80, description="Screen width for HUD geometry")
    lines: int = Field(default=24, description="Screen height for HUD geometry")
    send: SendOptions = Field(default_factory=SendOptions)

    @classmethod
    def load(cls, config_path: str | None = None) -> SimpleReplConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            SIMPLE_REPL_SHELL     - Shell used for new REPLs
            SIMPLE_REPL_NEW_LINE  - Line separator for sent text
            SIMPLE_REPL_HUD_SHOW  - always / never / if_not_visible
            SIMPLE_REPL_HUD_DELAY - Seconds before the HUD is placed
        """
        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        env_shell = os.environ.get("SIMPLE_REPL_SHELL")
        if env_shell:
            config_data["shell"] = env_shell

        send = config_data.get("send", {})
        hud = send.get("hud", {})

        env_new_line = os.environ.get("SIMPLE_REPL_NEW_LINE")
        if env_new_line:
            # Allow escapes like "\n" or "\x0f" in the environment
            send["new_line"] = env_new_line.encode().decode("unicode_escape")

        env_show = os.environ.get("SIMPLE_REPL_HUD_SHOW")
        if env_show:
            hud["show"] = env_show.lower()

        env_delay = os.environ.get("SIMPLE_REPL_HUD_DELAY")
        if env_delay:
            hud["delay"] = float(env_delay)

        if hud:
            send["hud"] = hud
        if send:
            config_data["send"] = send

        return cls.model_validate(config_data)
