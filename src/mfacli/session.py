"""Per-invocation wiring of settings, prompts, storage, and HTTP clients.

Commands build one :class:`Session` from the Typer context and ask it for
the objects they need. Tests swap collaborators through ``ctx.obj``:

* ``"prompter"`` -- a :class:`~mfacli.auth.prompts.Prompter` instance.
* ``"transport"`` -- an :class:`httpx.MockTransport` used by both clients.
* ``"sleep"`` -- the delay function used while polling.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import typer

from mfacli.auth.associate import AssociationFlow
from mfacli.auth.grant import MfaGrantFlow
from mfacli.auth.prompts import Prompter, TerminalPrompter
from mfacli.auth.token_endpoint import TokenEndpoint
from mfacli.auth.token_store import AccessTokenStore
from mfacli.authenticators import AuthenticatorManager
from mfacli.client.http import AsyncHttpClient, HttpClient
from mfacli.client.printer import RequestPrinter
from mfacli.models import Settings
from mfacli.output import get_output


@dataclass
class Session:
    """Everything one command invocation needs to talk to the tenant."""

    settings: Settings
    prompter: Prompter
    store: AccessTokenStore = field(default_factory=AccessTokenStore)
    verbose: bool = False
    transport: Any = None
    sleep: Callable[[float], None] = time.sleep

    @classmethod
    def from_context(cls, ctx: typer.Context) -> Session:
        """Build a session from the root callback's ``ctx.obj``.

        Runs interactive setup first when no settings exist yet.
        """
        from mfacli.commands.setup import ensure_settings

        obj: dict[str, Any] = ctx.obj or {}
        prompter = obj.get("prompter") or TerminalPrompter()
        return cls(
            settings=ensure_settings(prompter),
            prompter=prompter,
            verbose=bool(obj.get("verbose", False)),
            transport=obj.get("transport"),
            sleep=obj.get("sleep") or time.sleep,
        )

    def printer(self) -> Optional[RequestPrinter]:
        if not self.verbose:
            return None
        return RequestPrinter(get_output().debug)

    def http_client(self) -> HttpClient:
        return HttpClient(
            self.settings.base_url, printer=self.printer(), transport=self.transport
        )

    def async_http_client(self) -> AsyncHttpClient:
        return AsyncHttpClient(
            self.settings.base_url, printer=self.printer(), transport=self.transport
        )

    def token_endpoint(self, client: HttpClient) -> TokenEndpoint:
        return TokenEndpoint(client, self.settings, self.prompter, sleep=self.sleep)

    def grant_flow(self, client: HttpClient) -> MfaGrantFlow:
        return MfaGrantFlow(self.token_endpoint(client), self.store, self.prompter)

    def association_flow(self, client: HttpClient) -> AssociationFlow:
        return AssociationFlow(client, self.token_endpoint(client), self.store, self.prompter)

    def access_token(self, client: HttpClient) -> Optional[str]:
        """Return the stored token, logging in first when there is none."""
        token = self.store.load()
        if token:
            return token
        get_output().info(
            "To use the authenticators endpoint you must be logged-in, attempting to log in."
        )
        return self.grant_flow(client).run()

    def authenticator_manager(self, client: HttpClient, access_token: str) -> AuthenticatorManager:
        return AuthenticatorManager(client, access_token, self.async_http_client)
