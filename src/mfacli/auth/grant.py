"""Resource Owner Password grant with Multi-Factor Authentication.

:class:`MfaGrantFlow` drives the whole login:

.. code-block:: text

    stored token valid? ── yes ──> done
        │ no
    password grant ── access_token ──> persist, done (MFA disabled)
        │ error other than mfa_required ──> report, stop
        │ mfa_required + mfa_token
    challenge ── association_required ──> AssociationFlow(mfa_token)
        │ no challenge_type ──> report, stop
        │ otp | oob
    strong-auth grant ── authorization_pending ──> wait 5 s, repeat
        │ error ──> report, stop
        │ access_token
    persist, done

Server ``error`` codes steer the flow; transport failures and malformed
bodies are caught at :meth:`MfaGrantFlow.run` and reported. A token is
persisted only after a fully successful grant.
"""

from __future__ import annotations

from typing import Optional

from mfacli.auth.associate import AssociationFlow
from mfacli.auth.prompts import Prompter
from mfacli.auth.token_endpoint import TokenEndpoint
from mfacli.auth.token_store import AccessTokenStore
from mfacli.exceptions import ConnectionError_, ResponseFormatError
from mfacli.models import DEFAULT_SCOPE, GrantError, GrantResponse
from mfacli.output import OutputManager, get_output


class MfaGrantFlow:
    """One login attempt against one tenant.

    Args:
        endpoint: Issues the token/challenge/userinfo requests.
        store: Where the resulting access token is kept.
        prompter: Asked for username and password.
        association: Runs when the tenant requires an authenticator to be
            associated first. Built from *endpoint* when omitted.
        output: Diagnostics sink; defaults to the global manager.
    """

    def __init__(
        self,
        endpoint: TokenEndpoint,
        store: AccessTokenStore,
        prompter: Prompter,
        association: Optional[AssociationFlow] = None,
        output: Optional[OutputManager] = None,
    ) -> None:
        self._endpoint = endpoint
        self._store = store
        self._prompter = prompter
        self._output = output or get_output()
        self._association = association or AssociationFlow(
            endpoint.client, endpoint, store, prompter, self._output
        )

    def default_audience(self) -> str:
        return f"https://{self._endpoint.settings.domain}/mfa/"

    def run(self, scope: str = DEFAULT_SCOPE, audience: Optional[str] = None) -> Optional[str]:
        """Return a usable access token, logging in when the stored one is missing or stale.

        Returns:
            The access token, or ``None`` when the login failed (the reason
            has already been reported).
        """
        stored = self._store.load()
        if stored and self._endpoint.validate_token(stored):
            self._output.info("Found valid access token in storage, using that.")
            self._print_token(stored)
            return stored

        self._output.info(
            "No access token available in storage, "
            "performing a resource owner password credentials grant"
        )
        try:
            return self.login(scope, audience)
        except (ConnectionError_, ResponseFormatError) as exc:
            self._output.error(str(exc))
            return None

    def login(self, scope: str = DEFAULT_SCOPE, audience: Optional[str] = None) -> Optional[str]:
        """Run the password grant and, when required, the MFA steps.

        Raises:
            ConnectionError_: If the tenant cannot be reached.
            ResponseFormatError: If a response lacks a field the next step needs.
        """
        credentials = self._prompter.credentials()
        response = self._endpoint.password_grant(
            credentials,
            scope,
            audience if audience is not None else self.default_audience(),
        )

        if response.access_token:
            self._output.success("Logged in (MFA is disabled).")
            return self._finish(response)

        if response.error and response.error != GrantError.MFA_REQUIRED.value:
            self._output.error(f"Non MFA error code, failing: {response.describe_error()}")
            return None

        if not response.mfa_token:
            raise ResponseFormatError("Token endpoint required MFA but sent no mfa_token")

        self._output.info("MFA required. Got MFA token!")
        return self.complete_mfa(response.mfa_token)

    def complete_mfa(self, mfa_token: str) -> Optional[str]:
        """Challenge, then run the strong-auth grant for *mfa_token*."""
        challenge = self._endpoint.challenge(mfa_token)

        if challenge.association_required:
            self._output.info(
                "An authenticator factor must be associated to continue, "
                "starting the association process..."
            )
            return self._association.associate_new(mfa_token)

        if not challenge.challenge_type:
            detail = challenge.error_description or challenge.error or "no challenge_type"
            self._output.error(f"Error in MFA challenge response: {detail}")
            return None

        self._output.info(f"Selected MFA type is: {challenge.challenge_type}")

        result = self._endpoint.confirm(
            mfa_token,
            challenge.challenge_type,
            challenge.binding_method,
            challenge.oob_code,
        )
        if result.error:
            self._output.error(
                f"Strong grant authorization request failed: {result.describe_error()}"
            )
            return None
        if not result.access_token:
            raise ResponseFormatError("Strong grant authorization response has no access_token")
        return self._finish(result)

    def _finish(self, response: GrantResponse) -> str:
        assert response.access_token is not None
        if response.expires_in is not None:
            self._output.info(f"Got access token, expires in: {response.expires_in}")
        self._store.save(response.access_token)
        self._print_token(response.access_token)
        return response.access_token

    def _print_token(self, access_token: str) -> None:
        self._output.info("The access token is:")
        self._output.print_data(access_token)
