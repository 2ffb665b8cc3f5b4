"""Requests against the tenant's token, challenge, and userinfo endpoints.

:class:`TokenEndpoint` issues the individual requests that make up the MFA
password grant:

1. ``POST /oauth/token`` with ``grant_type=password``
   (:meth:`~TokenEndpoint.password_grant`).
2. ``POST /mfa/challenge`` to learn which second factor to use
   (:meth:`~TokenEndpoint.challenge`).
3. ``POST /oauth/token`` with an MFA grant type, carrying the one-time
   password or out-of-band code (:meth:`~TokenEndpoint.strong_auth_grant`),
   repeated every five seconds while the tenant answers
   ``authorization_pending`` (:meth:`~TokenEndpoint.confirm`).

It also calls ``GET /userinfo`` to decide whether a stored token is still
usable (:meth:`~TokenEndpoint.validate_token`).

Deciding *which* request comes next is left to
:class:`~mfacli.auth.grant.MfaGrantFlow` and
:class:`~mfacli.auth.associate.AssociationFlow`.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Sequence, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from mfacli.auth.polling import OOB_POLL_INTERVAL, poll_while_pending
from mfacli.auth.prompts import Prompter
from mfacli.client.http import HttpClient, HttpRequest, response_json
from mfacli.exceptions import ConnectionError_, ResponseFormatError
from mfacli.models import (
    DEFAULT_CHALLENGE_TYPES,
    GRANT_TYPE_MFA_OOB,
    GRANT_TYPE_MFA_OTP,
    GRANT_TYPE_PASSWORD,
    ChallengeResponse,
    ChallengeType,
    Credentials,
    GrantResponse,
    Settings,
)
from mfacli.output import OutputManager, get_output

M = TypeVar("M", bound=BaseModel)


def parse_body(model: type[M], response: httpx.Response) -> M:
    """Validate a JSON response body against *model*.

    Raises:
        ResponseFormatError: If a known field has the wrong type.
    """
    try:
        return model.model_validate(response_json(response))
    except ValidationError as exc:
        raise ResponseFormatError(
            f"Unexpected {model.__name__} (HTTP {response.status_code}): {exc}"
        ) from exc


class TokenEndpoint:
    """Issues grant-related requests for one tenant.

    Args:
        client: Open HTTP client bound to the tenant base URL.
        settings: Tenant settings; ``client_id`` is sent in every body.
        prompter: Asked for OTP and binding codes.
        sleep: Delay function used between ``authorization_pending`` polls.
        output: Diagnostics sink; defaults to the global manager.
    """

    def __init__(
        self,
        client: HttpClient,
        settings: Settings,
        prompter: Prompter,
        sleep: Callable[[float], None] = time.sleep,
        output: Optional[OutputManager] = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._prompter = prompter
        self._sleep = sleep
        self._output = output or get_output()

    @property
    def client(self) -> HttpClient:
        return self._client

    @property
    def settings(self) -> Settings:
        return self._settings

    def validate_token(self, access_token: str) -> bool:
        """Return ``True`` iff ``GET /userinfo`` succeeds with *access_token*.

        Any non-2xx status or transport failure counts as invalid. Nothing is
        persisted or cleared here.
        """
        try:
            response = self._client.send(HttpRequest.get("/userinfo", bearer=access_token))
        except ConnectionError_ as exc:
            self._output.debug(f"Token validation request failed: {exc}")
            return False
        return response.is_success

    def password_grant(
        self,
        credentials: Credentials,
        scope: str,
        audience: Optional[str] = None,
    ) -> GrantResponse:
        """Exchange username and password at the token endpoint."""
        body: dict[str, Any] = {
            "grant_type": GRANT_TYPE_PASSWORD,
            "username": credentials.username,
            "password": credentials.password,
            "scope": scope,
            "client_id": self._settings.client_id,
        }
        if audience:
            body["audience"] = audience
        response = self._client.send(HttpRequest.post("/oauth/token", body))
        return parse_body(GrantResponse, response)

    def challenge(
        self,
        mfa_token: str,
        challenge_types: Sequence[str] = DEFAULT_CHALLENGE_TYPES,
    ) -> ChallengeResponse:
        """Ask the tenant which second factor to use for *mfa_token*."""
        body = {
            "mfa_token": mfa_token,
            "challenge_type": " ".join(challenge_types),
            "client_id": self._settings.client_id,
        }
        response = self._client.send(HttpRequest.post("/mfa/challenge", body))
        return parse_body(ChallengeResponse, response)

    def strong_auth_body(
        self,
        mfa_token: str,
        challenge_type: str,
        binding_method: Optional[str] = None,
        oob_code: Optional[str] = None,
    ) -> dict[str, Any]:
        """Build the MFA grant body, prompting for a code when one is needed."""
        body: dict[str, Any] = {
            "mfa_token": mfa_token,
            "client_id": self._settings.client_id,
        }
        if challenge_type == ChallengeType.OTP.value:
            self._output.info("MFA mechanism is: TOTP")
            body["otp"] = self._prompter.code()
            body["grant_type"] = GRANT_TYPE_MFA_OTP
        elif challenge_type == ChallengeType.OOB.value:
            body["grant_type"] = GRANT_TYPE_MFA_OOB
            if oob_code is not None:
                body["oob_code"] = oob_code
            if binding_method == "prompt":
                self._output.info("MFA mechanism is: OOB with binding code prompt")
                body["binding_code"] = self._prompter.code()
            else:
                self._output.info("MFA mechanism is: OOB without binding code")
        else:
            raise ResponseFormatError(f"Unsupported challenge type: {challenge_type!r}")
        return body

    def strong_auth_grant(
        self,
        mfa_token: str,
        challenge_type: str,
        binding_method: Optional[str] = None,
        oob_code: Optional[str] = None,
    ) -> GrantResponse:
        """Send one MFA grant request (OTP or OOB) to the token endpoint."""
        body = self.strong_auth_body(mfa_token, challenge_type, binding_method, oob_code)
        response = self._client.send(HttpRequest.post("/oauth/token", body))
        return parse_body(GrantResponse, response)

    def confirm(
        self,
        mfa_token: str,
        challenge_type: str,
        binding_method: Optional[str] = None,
        oob_code: Optional[str] = None,
    ) -> GrantResponse:
        """Repeat :meth:`strong_auth_grant` until it stops being pending."""
        return poll_while_pending(
            lambda: self.strong_auth_grant(mfa_token, challenge_type, binding_method, oob_code),
            lambda result: result.is_pending,
            interval=OOB_POLL_INTERVAL,
            sleep=self._sleep,
            on_pending=self._report_pending,
        )

    def _report_pending(self, result: GrantResponse) -> None:
        self._output.info(
            f"Authorization pending, retrying in {OOB_POLL_INTERVAL:g} seconds..."
        )
