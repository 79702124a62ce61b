"""Typer application and CLI entry point for cloudflare-cli.

The root app uses :class:`~cloudflare_cli.dispatch.CommandTreeGroup`, so in
addition to the built-in commands registered here (``list``, ``describe``,
``tree``, ``api``) every resource of the command tree is available as a
sub-command group.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`cloudflare_cli.dispatch`: Tree-backed command groups.
    :mod:`cloudflare_cli.config`: Settings resolution.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from cloudflare_cli import __version__
from cloudflare_cli.dispatch import CommandTreeGroup, configure
from cloudflare_cli.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    cls=CommandTreeGroup,
    name="cloudflare",
    help="Call the Cloudflare API from the command line.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"cloudflare {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    tree: Optional[str] = typer.Option(
        None, "--tree", help="Command tree JSON to use instead of the bundled one."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="HTTP timeout in seconds."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    The options are read back from the root context by
    :mod:`cloudflare_cli.dispatch`, which may need them before this
    callback runs (while resolving a resource group).
    """
    configure(ctx)


# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from cloudflare_cli.commands.api import api_command  # noqa: E402
from cloudflare_cli.commands.discovery import (  # noqa: E402
    describe_command,
    list_command,
    tree_command,
)

app.command("list", help="List resources, or the operations of one resource.")(
    list_command
)
app.command("describe", help="Show the parameters and body of an operation.")(
    describe_command
)
app.command("tree", help="Print the whole command tree.")(tree_command)
app.command("api", help="Send a request to an arbitrary API path.")(api_command)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from cloudflare_cli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``cloudflare`` console script.

    Unhandled :class:`~cloudflare_cli.exceptions.CloudflareCliError`
    instances cause a clean exit with the error's ``exit_code``. All other
    exceptions produce a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from cloudflare_cli.exceptions import CloudflareCliError
        from cloudflare_cli.output import error

        if isinstance(exc, CloudflareCliError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
