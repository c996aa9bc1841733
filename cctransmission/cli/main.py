"""Command-line interface for controlling a Transmission daemon."""

from __future__ import annotations

import contextlib
import re
from pathlib import Path
from typing import Any, Iterator

import click
from rich.console import Console
from rich.table import Table

from cctransmission import __version__
from cctransmission.client.dispatch import SIMPLE_PROPERTIES
from cctransmission.client.session import TransmissionClient
from cctransmission.client.torrent import Torrent
from cctransmission.config.config import init_config
from cctransmission.models import ClientConfig, LogLevel
from cctransmission.utils.exceptions import CCTError
from cctransmission.utils.logging_config import (
    LoggingContext,
    get_logger,
    setup_logging,
)

logger = get_logger(__name__)
console = Console()

_INT_RE = re.compile(r"^-?\d+$")


class DaemonRefusedError(click.ClickException):
    """The daemon answered but declined the request."""

    exit_code = 1


class ClientError(click.ClickException):
    """The request could not be carried out (connection, protocol, arguments)."""

    exit_code = 2


def parse_value(raw: str) -> Any:
    """Convert a command-line string into the value sent to the daemon."""
    low = raw.lower()
    if low in {"true", "yes", "on"}:
        return 1
    if low in {"false", "no", "off"}:
        return 0
    if _INT_RE.match(raw):
        return int(raw)
    return raw


def _format_value(value: Any) -> str:
    if value is None:
        return "[dim]unset[/dim]"
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


@contextlib.contextmanager
def _session(ctx: click.Context) -> Iterator[TransmissionClient]:
    """Open a client from the context's settings and close it afterwards."""
    client_config: ClientConfig = ctx.obj["client_config"]
    try:
        with TransmissionClient.from_config(client_config) as client:
            yield client
    except CCTError as e:
        logger.debug("Command failed", exc_info=True)
        raise ClientError(str(e)) from e


def _require(ok: bool, failure: str) -> None:
    if not ok:
        raise DaemonRefusedError(failure)


def _torrent_table(torrents: list[Torrent], title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Hash", style="green")
    table.add_column("Name")
    for torrent in torrents:
        table.add_row(str(torrent.id), torrent.hash or "", torrent.name or "")
    return table


@click.group()
@click.version_option(__version__, prog_name="cctransmission")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path",
)
@click.option("--socket", "-s", "socket_path", help="Path to the daemon control socket")
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds to wait for each daemon reply (default: wait forever)",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v: info, -vv: debug)",
)
@click.option("--debug", "-d", is_flag=True, help="Log raw protocol traffic")
@click.pass_context
def cli(ctx, config, socket_path, timeout, verbose, debug):
    """Control a running Transmission daemon over its UNIX socket."""
    ctx.ensure_object(dict)

    try:
        config_manager = init_config(config, configure_logging=False)
    except CCTError as e:
        raise ClientError(str(e)) from e
    cfg = config_manager.config

    overrides: dict[str, Any] = {}
    if socket_path:
        overrides["socket_path"] = socket_path
    if timeout is not None:
        overrides["read_timeout"] = timeout
    if debug:
        overrides["debug"] = True
    client_config = cfg.client.model_copy(update=overrides)

    if debug or verbose >= 2:
        cfg.observability.log_level = LogLevel.DEBUG
    elif verbose == 1:
        cfg.observability.log_level = LogLevel.INFO
    setup_logging(cfg.observability)

    ctx.obj["config_manager"] = config_manager
    ctx.obj["config"] = cfg
    ctx.obj["client_config"] = client_config


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration as TOML."""
    click.echo(ctx.obj["config_manager"].export(), nl=False)


@cli.command()
@click.pass_context
def info(ctx):
    """Show the daemon's label and protocol range."""
    with _session(ctx) as client:
        server = client.server_info
    table = Table(title="Daemon")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Label", server.label or "unknown")
    table.add_row("Protocol", f"{server.min}-{server.max}")
    table.add_row("Socket", client.socket_path)
    console.print(table)


@cli.command()
@click.argument("source", type=click.Path())
@click.option(
    "--upload",
    is_flag=True,
    help="Read SOURCE locally and send its contents instead of its path",
)
@click.option(
    "--autostart/--no-autostart",
    default=None,
    help="Start downloading immediately (default: daemon preference)",
)
@click.option("--directory", "-o", help="Directory to download into")
@click.pass_context
def add(ctx, source, upload, autostart, directory):
    """Add a torrent file to the daemon."""
    kwargs: dict[str, Any] = {"autostart": autostart, "directory": directory}
    if upload:
        try:
            kwargs["data"] = Path(source).read_bytes()
        except OSError as e:
            raise ClientError(f"Cannot read {source}: {e}") from e
    else:
        kwargs["file"] = str(Path(source).expanduser().resolve())

    with LoggingContext("add", source=source), _session(ctx) as client:
        added = client.add_torrent(**kwargs)
    _require(added, f"Daemon refused to add {source}")
    console.print(f"[green]Added {source}[/green]")


@cli.command("list")
@click.pass_context
def list_torrents(ctx):
    """List active torrents."""
    with _session(ctx) as client:
        torrents = client.list_torrents()
    if torrents is None:
        raise DaemonRefusedError("Daemon did not return a torrent list")
    if not torrents:
        console.print("[yellow]No torrents[/yellow]")
        return
    console.print(_torrent_table(torrents, "Torrents"))


@cli.command()
@click.argument("info_hash")
@click.pass_context
def lookup(ctx, info_hash):
    """Show the torrent with INFO_HASH."""
    with _session(ctx) as client:
        torrent = client.lookup(info_hash)
    if torrent is None:
        raise DaemonRefusedError(f"No torrent with hash {info_hash}")
    table = Table(title=f"Torrent {torrent.id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key in sorted(torrent.info):
        table.add_row(key, _format_value(torrent.info[key]))
    console.print(table)


@cli.command("start-all")
@click.pass_context
def start_all(ctx):
    """Start all paused torrents."""
    with _session(ctx) as client:
        _require(client.start_all(), "Daemon refused to start torrents")
    console.print("[green]Started all torrents[/green]")


@cli.command("stop-all")
@click.pass_context
def stop_all(ctx):
    """Stop all running torrents."""
    with _session(ctx) as client:
        _require(client.stop_all(), "Daemon refused to stop torrents")
    console.print("[green]Stopped all torrents[/green]")


@cli.command("get")
@click.argument("name", type=click.Choice(SIMPLE_PROPERTIES))
@click.pass_context
def get_property(ctx, name):
    """Print the value of preference NAME."""
    with _session(ctx) as client:
        value = client.get(name)
    if value is None:
        raise DaemonRefusedError(f"Daemon did not report {name}")
    click.echo(_format_value(value))


@cli.command("set")
@click.argument("name", type=click.Choice(SIMPLE_PROPERTIES))
@click.argument("value")
@click.pass_context
def set_property(ctx, name, value):
    """Set preference NAME to VALUE.

    Use -1 with downlimit/uplimit to remove rate limiting.
    """
    parsed = parse_value(value)
    with _session(ctx) as client:
        _require(client.set(name, parsed), f"Daemon refused {name}={value}")
    console.print(f"[green]{name} = {parsed}[/green]")


@cli.command()
@click.pass_context
def prefs(ctx):
    """Show every simple preference."""
    with _session(ctx) as client:
        values = client.properties()
    table = Table(title="Preferences")
    table.add_column("Name", style="cyan")
    table.add_column("Value")
    for name, value in values.items():
        table.add_row(name, _format_value(value))
    console.print(table)


@cli.command()
@click.pass_context
def shutdown(ctx):
    """Ask the daemon to quit."""
    with _session(ctx) as client:
        client.shutdown()
    console.print("[green]Shutdown requested[/green]")


@cli.group()
def torrent():
    """Act on a single torrent."""


def _torrent_action(action: str, help_text: str) -> click.Command:
    @click.argument("info_hash")
    @click.pass_context
    def command(ctx, info_hash):
        with _session(ctx) as client:
            found = client.lookup(info_hash)
            if found is None:
                raise DaemonRefusedError(f"No torrent with hash {info_hash}")
            _require(getattr(found, action)(), f"Daemon refused to {action} {info_hash}")
        console.print(f"[green]{action}: {info_hash}[/green]")

    command.__doc__ = help_text
    return torrent.command(action)(command)


for _action, _help in (
    ("start", "Start the torrent with INFO_HASH."),
    ("stop", "Stop the torrent with INFO_HASH."),
    ("verify", "Re-check the data of the torrent with INFO_HASH."),
    ("remove", "Remove the torrent with INFO_HASH."),
):
    _torrent_action(_action, _help)


@torrent.command("status")
@click.argument("info_hash")
@click.pass_context
def torrent_status(ctx, info_hash):
    """Show live transfer status of the torrent with INFO_HASH."""
    with _session(ctx) as client:
        found = client.lookup(info_hash)
        if found is None:
            raise DaemonRefusedError(f"No torrent with hash {info_hash}")
        status = found.status()
    if status is None:
        raise DaemonRefusedError(f"Daemon has no status for {info_hash}")
    table = Table(title=f"Status of torrent {found.id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key in sorted(status):
        table.add_row(key, _format_value(status[key]))
    console.print(table)


def main() -> None:
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
