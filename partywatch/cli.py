#!/usr/bin/env python3
"""
Command-line interface for the party notification bridge.
"""

import sys
import asyncio
import logging
from pathlib import Path

import click
from click.core import ParameterSource
from rich.console import Console
from rich.table import Table
from rich.logging import RichHandler
from rich.markup import escape

from .config import ConfigError, load_settings
from .parser.messages import ChatMessage, DecodeError, decode_message
from .parser.tokenizer import LineTokenizer
from .parser.categorizer import build_notification
from .streaming.session import ConnectError, run_bridge

# Set up rich console for pretty output
console = Console()

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def notification_options(f):
    """Add the per-event toggle flags to a command."""
    toggles = [
        ("fill", "the party is filled"),
        ("disband", "the party is disbanded"),
        ("join", "someone joins the party"),
        ("leave", "someone leaves the party"),
    ]
    for name, description in reversed(toggles):
        f = click.option(
            f"--notify-{name}/--no-notify-{name}",
            f"notify_{name}",
            help=f"Send a notification when {description}",
        )(f)
    return f


def given_options(ctx, values):
    """Keep only the options actually passed on the command line."""
    return {
        name: value
        for name, value in values.items()
        if ctx.get_parameter_source(name) is not ParameterSource.DEFAULT
    }


def load_or_exit(config_path, overrides):
    """Load settings, exiting with a diagnostic on configuration errors."""
    try:
        return load_settings(config_path, overrides)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a YAML config file",
)
@click.pass_context
def cli(ctx, verbose, config_path):
    """Partywatch - FFXIV party notifications via Pushover"""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--addr", default=None, help="ACT/IINACT websocket server address (host:port)")
@click.option("--key", default=None, help="Pushover user key")
@click.option("--token", default=None, help="Pushover application token")
@click.option(
    "--reconnect",
    default=None,
    type=click.IntRange(min=0),
    help="Reconnect this many times after the stream ends (default: never)",
)
@notification_options
@click.pass_context
def run(ctx, addr, key, token, reconnect, **toggles):
    """Listen to the event stream and forward party notifications."""
    overrides = {
        "server_address": addr,
        "user_key": key,
        "app_token": token,
        "reconnect_attempts": reconnect,
        **given_options(ctx, toggles),
    }
    settings = load_or_exit(ctx.obj["config_path"], overrides)

    try:
        settings.validate()
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    settings.log_configuration()

    try:
        asyncio.run(run_bridge(settings))
    except ConnectError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("capture_file", type=click.Path(exists=True, dir_okay=False))
@notification_options
@click.pass_context
def replay(ctx, capture_file, **toggles):
    """
    Show which notifications a captured stream would produce.

    CAPTURE_FILE holds one raw frame (JSON envelope) per line. Nothing is sent.
    """
    settings = load_or_exit(ctx.obj["config_path"], given_options(ctx, toggles))

    tokenizer = LineTokenizer()
    frames = 0
    malformed = 0
    chat_lines = 0

    table = Table(title=f"Notifications from {Path(capture_file).name}")
    table.add_column("Time", style="cyan")
    table.add_column("Code", justify="right")
    table.add_column("Title", style="green")
    table.add_column("Message")

    with open(capture_file, "r", encoding="utf-8") as f:
        for line_number, raw in enumerate(f, start=1):
            raw = raw.strip()
            if not raw:
                continue
            frames += 1

            try:
                message = decode_message(raw)
            except DecodeError as e:
                malformed += 1
                logger.warning(f"Line {line_number}: {e}")
                continue

            if not isinstance(message, ChatMessage):
                continue

            chat_lines += 1
            log_line = tokenizer.parse_line(message.data)
            notification = build_notification(log_line, settings.toggles)
            if notification is None:
                continue

            table.add_row(
                log_line.time.isoformat() if log_line.time else "",
                f"0x{log_line.code:04x}",
                escape(notification.title),
                escape(notification.message),
            )

    if table.row_count:
        console.print(table)
    else:
        console.print("[yellow]No notifications would be sent[/yellow]")

    console.print(f"[cyan]Frames:[/cyan] {frames}")
    console.print(f"[cyan]Chat lines:[/cyan] {chat_lines}")
    console.print(f"[cyan]Rejected chat lines:[/cyan] {tokenizer.error_count}")
    console.print(f"[cyan]Malformed frames:[/cyan] {malformed}")
    console.print(f"[cyan]Notifications:[/cyan] {table.row_count}")


if __name__ == "__main__":
    cli()
