"""Token and logout commands.

``token`` (alias ``login``) prints a usable access token, running the
password grant with MFA when the stored token is missing or no longer
accepted by ``/userinfo``. ``logout`` discards the stored token.

Typical workflow::

    oauth2-mfa-cli token
    oauth2-mfa-cli token --scope "openid profile" --audience https://api.example.com/
    oauth2-mfa-cli logout
"""

from __future__ import annotations

from typing import Optional

import typer

from mfacli.commands import apply_verbose, verbose_option
from mfacli.models import DEFAULT_SCOPE
from mfacli.output import success


def token_command(
    ctx: typer.Context,
    scope: str = typer.Option(
        DEFAULT_SCOPE, "--scope", "-s", help="Space-separated scopes to request."
    ),
    audience: Optional[str] = typer.Option(
        None,
        "--audience",
        "-a",
        help="Audience of the requested token. Defaults to https://<domain>/mfa/.",
    ),
    verbose: bool = verbose_option(),
) -> None:
    """Perform a resource owner password credentials grant, with MFA if required.

    Prints the access token on stdout and stores it in ``.access-token``.
    """
    from mfacli.session import Session

    apply_verbose(ctx, verbose)
    session = Session.from_context(ctx)
    with session.http_client() as client:
        session.grant_flow(client).run(scope, audience)


def logout_command() -> None:
    """Discard the current access token (if any)."""
    from mfacli.auth.token_store import AccessTokenStore

    AccessTokenStore().clear()
    success("Logged out")
