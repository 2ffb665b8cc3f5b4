"""Authenticator association (enrollment) flow.

Enrolling a second factor takes two steps:

1. ``POST /mfa/associate`` with the operator's choice of authenticator. The
   tenant answers with an ``oob_code`` for out-of-band channels, a
   ``barcode_uri`` to scan into an OTP app, and recovery codes the first
   time a factor is added.
2. An MFA grant that proves the new factor works, polled while the tenant
   answers ``authorization_pending``. Its access token is persisted.

The flow runs either from ``oauth2-mfa-cli authenticators new`` with a stored
access token as bearer, or from inside
:class:`~mfacli.auth.grant.MfaGrantFlow` when the challenge endpoint answers
``association_required``; then the ``mfa_token`` is the bearer.
"""

from __future__ import annotations

from typing import Optional

from mfacli.auth.prompts import Prompter
from mfacli.auth.token_endpoint import TokenEndpoint, parse_body
from mfacli.auth.token_store import AccessTokenStore
from mfacli.client.http import HttpClient, HttpRequest
from mfacli.exceptions import ConnectionError_, ResponseFormatError
from mfacli.models import AssociationChoice, AssociationResponse
from mfacli.output import OutputManager, get_output


class AssociationFlow:
    """Enrolls and confirms a new authenticator.

    Args:
        client: Open HTTP client bound to the tenant.
        endpoint: Token endpoint used for the confirmation grant.
        store: Receives the access token once association is confirmed.
        prompter: Asked which authenticator to enroll.
        output: Diagnostics sink; defaults to the global manager.
    """

    def __init__(
        self,
        client: HttpClient,
        endpoint: TokenEndpoint,
        store: AccessTokenStore,
        prompter: Prompter,
        output: Optional[OutputManager] = None,
    ) -> None:
        self._client = client
        self._endpoint = endpoint
        self._store = store
        self._prompter = prompter
        self._output = output or get_output()

    def associate_new(self, bearer_token: str) -> Optional[str]:
        """Enroll a new authenticator and confirm it.

        Args:
            bearer_token: An access token with the ``enroll`` scope, or the
                ``mfa_token`` of a grant that requires association.

        Returns:
            The access token issued by the confirmation grant, or ``None``
            when association or confirmation failed (already reported).
        """
        choice = self._prompter.association_choice()

        try:
            association = self.request_association(bearer_token, choice)
        except (ConnectionError_, ResponseFormatError) as exc:
            self._output.error(f"Failed to associate authenticator: {exc}")
            return None
        if association is None:
            return None

        self._output.info("Authenticator partially associated, confirmation required.")
        self._display(association)

        try:
            result = self._endpoint.confirm(
                bearer_token,
                choice.type.value,
                choice.binding_method,
                association.oob_code,
            )
        except (ConnectionError_, ResponseFormatError) as exc:
            self._output.error(f"Association confirmation failed: {exc}")
            return None

        if result.error or not result.access_token:
            detail = result.describe_error() or "no access token in response"
            self._output.error(f"Association confirmation failed: {detail}")
            return None

        self._output.success("Association confirmed.")
        if result.expires_in is not None:
            self._output.info(f"Got access token, expires in: {result.expires_in}")
        self._store.save(result.access_token)
        self._output.info("The access token is:")
        self._output.print_data(result.access_token)
        return result.access_token

    def request_association(
        self, bearer_token: str, choice: AssociationChoice
    ) -> Optional[AssociationResponse]:
        """Send ``POST /mfa/associate``; report and return ``None`` on non-2xx."""
        response = self._client.send(
            HttpRequest.post("/mfa/associate", choice.to_request_body(), bearer=bearer_token)
        )
        if not response.is_success:
            self._output.error(
                f"Failed to associate authenticator (HTTP {response.status_code}): "
                f"{response.text}"
            )
            return None
        return parse_body(AssociationResponse, response)

    def _display(self, association: AssociationResponse) -> None:
        if association.barcode_uri:
            self._output.info(f"- Barcode/QR URL: {association.barcode_uri}")
            self._output.info("Open it with your authenticator app to add the account.")
        if association.secret:
            self._output.info(f"- Secret: {association.secret}")
        if association.recovery_codes:
            self._output.info(f"- Recovery codes: {', '.join(association.recovery_codes)}")
