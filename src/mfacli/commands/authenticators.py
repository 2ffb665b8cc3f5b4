"""Authenticator commands -- list, enroll, and delete MFA authenticators.

Registered on the root app twice, as ``authenticators`` and ``associate``.
Without a subcommand the group lists authenticators. Every subcommand needs
an access token; when none is stored the login flow runs first.

Typical workflow::

    oauth2-mfa-cli authenticators            # list
    oauth2-mfa-cli authenticators new        # enroll and confirm
    oauth2-mfa-cli authenticators delete ID
    oauth2-mfa-cli authenticators delete-all
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

import typer

from mfacli.commands import apply_verbose, verbose_option
from mfacli.exceptions import InvalidUsageError
from mfacli.output import error, suggest

if TYPE_CHECKING:
    from mfacli.client.http import HttpClient
    from mfacli.session import Session

authenticators_app = typer.Typer(invoke_without_command=True)

Action = Callable[["Session", "HttpClient", str], object]


def _with_token(ctx: typer.Context, action: Action, verbose: bool = False) -> None:
    """Open a client, make sure a token is available, then run *action*."""
    from mfacli.session import Session

    apply_verbose(ctx, verbose)
    session = Session.from_context(ctx)
    with session.http_client() as client:
        token = session.access_token(client)
        if token is None:
            error("Could not obtain an access token.")
            suggest("Try again: oauth2-mfa-cli token")
            return
        action(session, client, token)


def _list(session: Session, client: HttpClient, token: str) -> None:
    session.authenticator_manager(client, token).list_authenticators()


@authenticators_app.callback()
def authenticators_callback(ctx: typer.Context, verbose: bool = verbose_option()) -> None:
    """List, associate, or delete MFA authenticators (lists when no subcommand is given)."""
    if ctx.invoked_subcommand is None:
        _with_token(ctx, _list, verbose)
    else:
        apply_verbose(ctx, verbose)


@authenticators_app.command("list")
def authenticators_list(ctx: typer.Context, verbose: bool = verbose_option()) -> None:
    """List the associated authenticators."""
    _with_token(ctx, _list, verbose)


@authenticators_app.command("new")
def authenticators_new(ctx: typer.Context, verbose: bool = verbose_option()) -> None:
    """Associate a new authenticator and confirm it."""

    def _associate(session: Session, client: HttpClient, token: str) -> None:
        session.association_flow(client).associate_new(token)

    _with_token(ctx, _associate, verbose)


@authenticators_app.command("delete")
def authenticators_delete(
    ctx: typer.Context,
    authenticator_id: Optional[str] = typer.Argument(
        None, help="Authenticator ID. Prompted for when omitted."
    ),
    verbose: bool = verbose_option(),
) -> None:
    """Delete an authenticator."""
    if authenticator_id is not None and not authenticator_id.strip():
        raise InvalidUsageError("Authenticator ID must not be empty.")

    def _delete(session: Session, client: HttpClient, token: str) -> None:
        target = authenticator_id or session.prompter.authenticator_id()
        session.authenticator_manager(client, token).delete(target)

    _with_token(ctx, _delete, verbose)


@authenticators_app.command("delete-all")
def authenticators_delete_all(ctx: typer.Context, verbose: bool = verbose_option()) -> None:
    """Delete all authenticators except recovery codes."""

    def _delete_all(session: Session, client: HttpClient, token: str) -> None:
        session.authenticator_manager(client, token).delete_all()

    _with_token(ctx, _delete_all, verbose)
