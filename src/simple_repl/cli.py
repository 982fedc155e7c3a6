"""CLI entry point for simple-repl."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from simple_repl import __version__
from simple_repl.config import SimpleReplConfig
from simple_repl.errors import SpawnError

app = typer.Typer(
    name="simple-repl",
    help="Start a named REPL, send text to it and show its output.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


async def _run(
    config: SimpleReplConfig,
    name: str | None,
    cmd: str,
    path: str,
    lines: list[str],
    timeout: float,
) -> list[str]:
    """Start the REPL, send ``lines`` and collect what it prints."""
    from simple_repl.repl import SimpleRepl

    repl = SimpleRepl(config=config)
    try:
        session = await repl.open_repl(
            name, opts={"win": "none", "create": {"cwd": path, "cmd": cmd}}
        )
        # Let the shell print its prompt and run the startup command first
        await session.wait_for_output(0, timeout=timeout)
        start = session.buffer.total_lines
        repl.send_to_repl(name, lines, {"hud": {"show": "never"}})
        return await session.wait_for_output(start, timeout=timeout)
    finally:
        await repl.shutdown()


@app.command()
def run(
    name: str | None = typer.Argument(None, help="Name of the REPL."),
    cmd: str = typer.Option(
        "", "--cmd", help="Command started inside the shell (e.g. 'python3 -i')."
    ),
    path: str = typer.Option(
        ".", "--path", "-p", help="Directory the REPL is started in."
    ),
    file: str | None = typer.Option(
        None, "--file", "-f", help="Send this file instead of stdin."
    ),
    new_line: str | None = typer.Option(
        None, "--new-line", help="Separator used to join the lines sent."
    ),
    timeout: float = typer.Option(
        10.0, "--timeout", "-t", help="Seconds to wait for output to settle."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Start a REPL, send it text and print the output it produced."""
    setup_logging(verbose)

    if file is not None and not os.path.isfile(file):
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(1)

    config = SimpleReplConfig.load(config_file)
    if new_line is not None:
        config.send.new_line = new_line

    if file is not None:
        with open(file) as f:
            text = f.read()
    else:
        text = sys.stdin.read()
    lines = text.splitlines()

    try:
        output = asyncio.run(_run(config, name, cmd, path, lines, timeout))
    except SpawnError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    console = Console()
    console.print(
        Panel(
            Text("\n".join(output)),
            title=f"REPL Output: {name or config.prefix}",
            border_style="dim",
        )
    )


@app.command()
def version() -> None:
    """Print the simple-repl version."""
    typer.echo(f"simple-repl v{__version__}")


if __name__ == "__main__":
    app()
