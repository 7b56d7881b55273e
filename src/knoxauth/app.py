"""Typer application and CLI entry point for knoxauth.

This module wires the top-level Typer application, registers the built-in
sub-commands (``whoami``, ``transport``, ``request``, ``config``) and
provides :func:`main`, the console-script entry point declared in
``pyproject.toml``.

Global options describe *how* to bootstrap the client (host, client
certificate, verification opt-out) and how to format output.  They are
stored on ``ctx.obj`` and turned into a
:class:`~knoxauth.models.ClientConfig` by :func:`knoxauth.commands.load_config`.

See Also:
    :mod:`knoxauth.config`: configuration precedence.
    :mod:`knoxauth.output`: output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from knoxauth import __version__
from knoxauth.commands.config import config_app
from knoxauth.commands.identity import whoami_command
from knoxauth.commands.request import request_command
from knoxauth.commands.transport import transport_command
from knoxauth.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="knoxauth",
    help="Resolve Knox client identity and bootstrap mutual TLS.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("whoami")(whoami_command)
app.command("transport")(transport_command)
app.command("request")(request_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"knoxauth {__version__}")
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
    host: Optional[str] = typer.Option(
        None, "--host", "-H", help="Knox server host:port."
    ),
    cert_file: Optional[str] = typer.Option(
        None, "--cert", help="PEM client certificate for mutual TLS."
    ),
    key_file: Optional[str] = typer.Option(
        None, "--key", help="PEM private key matching --cert."
    ),
    insecure: bool = typer.Option(
        False, "--insecure", help="Skip server certificate verification (development only)."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~knoxauth.output.OutputManager`, routes
    library logging to stderr, and stores the bootstrap options in
    ``ctx.obj``.
    """
    from knoxauth.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["host"] = host
    ctx.obj["cert_file"] = cert_file
    ctx.obj["key_file"] = key_file
    ctx.obj["insecure"] = insecure


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback under the data directory and return its path."""
    from knoxauth.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``knoxauth`` console script.

    :class:`~knoxauth.exceptions.KnoxAuthError` exits with the error's
    ``exit_code``; anything else writes a crash log and exits with
    :data:`~knoxauth.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from knoxauth.exceptions import KnoxAuthError
        from knoxauth.output import error

        if isinstance(exc, KnoxAuthError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
