"""Typer application and CLI entry point for oauth2-mfa-cli.

This module wires together the top-level Typer application and registers the
built-in commands (``token``/``login``, ``authenticators``/``associate``,
``setup``, ``logout``).

:func:`main` backs the ``oauth2-mfa-cli`` console script. It installs signal
handlers and invokes the Typer app. Unhandled exceptions are written to a
crash log under the state directory.

See Also:
    :mod:`mfacli.config`: Settings resolution.
    :mod:`mfacli.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from mfacli import __version__
from mfacli.commands.authenticators import authenticators_app
from mfacli.commands.setup import setup_command
from mfacli.commands.token import logout_command, token_command
from mfacli.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="oauth2-mfa-cli",
    help="A simple app that shows how OAuth 2.0 MFA endpoints work.",
    no_args_is_help=True,
    add_completion=False,
)

app.command("token")(token_command)
app.command("login", help="Alias for 'token'.")(token_command)
app.add_typer(
    authenticators_app,
    name="authenticators",
    help="List, associate, or delete MFA authenticators.",
)
app.add_typer(authenticators_app, name="associate", help="Alias for 'authenticators'.")
app.command("setup")(setup_command)
app.command("logout")(logout_command)


def _version_callback(value: bool) -> None:
    """Handle --version before any command runs."""
    if value:
        typer.echo(f"oauth2-mfa-cli {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Print the version and exit.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print every HTTP request and response."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print errors, warnings and data."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Plain text output, no colour."
    ),
) -> None:
    """Configure output for whichever command follows.

    Installs the global :class:`~mfacli.output.OutputManager` and stores the
    verbose flag in ``ctx.obj`` for :class:`~mfacli.session.Session`.
    Entries already present in ``ctx.obj`` are kept.
    """
    from mfacli.output import OutputManager, set_output

    set_output(OutputManager(no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Exit immediately on SIGINT or SIGTERM."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nExit requested, quitting.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from mfacli.config import get_logs_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_logs_dir() / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``oauth2-mfa-cli`` console script.

    Unhandled :class:`~mfacli.exceptions.MfaCliError` instances cause a
    clean exit with the error's ``exit_code``. All other exceptions produce a
    crash log and a generic failure exit.

    Raises:
        SystemExit: On every path; the code is 0 for completed commands.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nExit requested, quitting.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from mfacli.exceptions import MfaCliError
        from mfacli.output import error

        if isinstance(exc, MfaCliError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error: {exc}. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
