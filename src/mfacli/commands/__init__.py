"""Built-in CLI sub-commands for mfacli.

* :mod:`~mfacli.commands.token` -- ``token``/``login`` and ``logout``.
* :mod:`~mfacli.commands.authenticators` -- ``authenticators``/``associate``
  with ``list``, ``new``, ``delete`` and ``delete-all``.
* :mod:`~mfacli.commands.setup` -- ``setup``.

Each module either exports a :class:`typer.Typer` sub-application (for the
authenticators group) or plain callback functions registered directly on the
root app.
"""

from __future__ import annotations

from typing import Any

import typer

from mfacli.output import get_output


def verbose_option() -> Any:
    """``--verbose``/``-v`` accepted after a command name as well as before it."""
    return typer.Option(
        False, "--verbose", "-v", help="Print every HTTP request and response."
    )


def apply_verbose(ctx: typer.Context, verbose: bool) -> None:
    """Fold a command-level ``--verbose`` into the flag set by the root callback.

    Must run before :meth:`~mfacli.session.Session.from_context` reads
    ``ctx.obj``. Child contexts share the root's ``obj`` dict.
    """
    if not verbose:
        return
    ctx.ensure_object(dict)["verbose"] = True
    get_output().enable_verbose()
