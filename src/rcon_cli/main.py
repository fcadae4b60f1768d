"""CLI startup entrypoint for rcon-cli."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

import typer
from rich.console import Console
from rich.markup import escape

from rcon_cli import __version__
from rcon_cli.adapters import RconClient, TelnetClient, WebRconClient
from rcon_cli.config import Settings
from rcon_cli.errors import RconCliError
from rcon_cli.executor import ProtocolDispatcher, run_single
from rcon_cli.interactive import InteractiveEngine
from rcon_cli.session import DEFAULT_PROTOCOL, ProtocolType, Session, resolve_session
from rcon_cli.telemetry.logging import FileCommandLog, configure_logging

app = typer.Typer(
    help="CLI for executing queries on a remote server.\n\n"
    "Runs in single mode when a command is given with -c, otherwise reads commands "
    "from the input stream in terminal mode.",
    add_completion=False,
)

_stderr = Console(stderr=True)


def _build_dispatcher(settings: Settings, output: TextIO) -> ProtocolDispatcher:
    return ProtocolDispatcher(
        rcon=RconClient(
            dial_timeout_seconds=settings.dial_timeout_seconds,
            read_timeout_seconds=settings.read_timeout_seconds,
        ),
        telnet=TelnetClient(
            dial_timeout_seconds=settings.dial_timeout_seconds,
            idle_seconds=settings.telnet_idle_seconds,
        ),
        web=WebRconClient(
            dial_timeout_seconds=settings.dial_timeout_seconds,
            read_timeout_seconds=settings.read_timeout_seconds,
        ),
        command_log=FileCommandLog(),
        output=output,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"rcon-cli {__version__}")
        raise typer.Exit()


@app.command()
def run(
    address: str = typer.Option("", "--address", "-a", help="Set host and port to remote server. Example 127.0.0.1:16260"),
    password: str = typer.Option("", "--password", "-p", help="Set password to remote server"),
    protocol: str = typer.Option(
        "", "--type", "-t", help=f"Allows to specify type of connection. Default value is {DEFAULT_PROTOCOL.value}"
    ),
    log: str = typer.Option(
        "", "--log", "-l", help="Path and name of the log file. If not specified, it is taken from the config"
    ),
    command: str = typer.Option(
        "", "--command", "-c", help="Command to execute on remote server. Required flag to run in single mode"
    ),
    env: str = typer.Option(
        "", "--env", "-e", help="Allows to select server credentials from selected environment in the configuration file"
    ),
    cfg: str = typer.Option("", "--cfg", help="Allows to specify the path and name of the configuration file"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True, help="Print the version and exit"
    ),
) -> None:
    """Execute a command on a remote server, or start terminal mode when no command is given."""
    settings = Settings()
    configure_logging(settings.log_level)

    flags = Session(address=address, password=password, protocol=ProtocolType.parse(protocol), log_path=log)
    output = sys.stdout
    try:
        session = resolve_session(
            flags,
            config_path=cfg or None,
            env_name=env or None,
            default_config_path=settings.config_path,
            default_env=settings.default_env,
        )
        dispatcher = _build_dispatcher(settings, output)
        if command:
            run_single(dispatcher, session, command)
        else:
            InteractiveEngine(dispatcher, sys.stdin, output).run(session)
    except RconCliError as exc:
        _stderr.print(f"[red]error:[/red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
