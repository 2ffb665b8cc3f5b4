"""Authenticator management against ``/mfa/authenticators``.

:class:`AuthenticatorManager` lists and deletes the current user's
authenticators with an access token obtained by
:class:`~mfacli.auth.grant.MfaGrantFlow`. Failures are reported through the
output system and returned as ``None``/``False``; they are never raised.

:meth:`AuthenticatorManager.delete_all` fans out one ``DELETE`` per
authenticator on a single event loop and waits for every one of them, so a
failing delete never prevents the others from being attempted. Recovery-code
authenticators are skipped.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from mfacli.client.http import AsyncHttpClient, HttpClient, HttpRequest
from mfacli.exceptions import ConnectionError_
from mfacli.models import Authenticator
from mfacli.output import OutputManager, get_output

_AUTHENTICATOR_LIST = TypeAdapter(list[Authenticator])


def authenticator_path(authenticator_id: str) -> str:
    """Return the DELETE path for *authenticator_id*, percent-encoding every reserved character."""
    return f"/mfa/authenticators/{quote(authenticator_id, safe='')}"


class AuthenticatorManager:
    """List and delete authenticators for the logged-in user.

    Args:
        client: Open blocking client bound to the tenant.
        access_token: Bearer token with ``read:authenticators`` and
            ``remove:authenticators`` scopes.
        async_client_factory: Builds the (unopened) async client used by
            :meth:`delete_all`.
        output: Diagnostics sink; defaults to the global manager.
    """

    def __init__(
        self,
        client: HttpClient,
        access_token: str,
        async_client_factory: Callable[[], AsyncHttpClient],
        output: Optional[OutputManager] = None,
    ) -> None:
        self._client = client
        self._access_token = access_token
        self._async_client_factory = async_client_factory
        self._output = output or get_output()

    def list_authenticators(self) -> Optional[list[Authenticator]]:
        """Fetch and print the authenticators.

        Returns:
            The authenticators, or ``None`` if the request failed.
        """
        self._output.info("Getting list of authenticators...")
        try:
            response = self._client.send(
                HttpRequest.get("/mfa/authenticators", bearer=self._access_token)
            )
        except ConnectionError_ as exc:
            self._output.error(f"Failed to list authenticators: {exc}")
            return None

        if not response.is_success:
            self._output.error(
                f"Failed to list authenticators (HTTP {response.status_code}): {response.text}"
            )
            return None

        try:
            payload = response.json()
            authenticators = _AUTHENTICATOR_LIST.validate_python(payload)
        except (ValueError, ValidationError) as exc:
            self._output.error(f"Failed to list authenticators: unexpected response: {exc}")
            return None

        self._output.info("Authenticators:")
        self._output.format_response(payload)
        return authenticators

    def delete(self, authenticator_id: str) -> bool:
        """Delete one authenticator. Succeeds only on HTTP 204."""
        request = HttpRequest.delete(
            authenticator_path(authenticator_id), bearer=self._access_token
        )
        try:
            response = self._client.send(request)
        except ConnectionError_ as exc:
            self._output.error(f"Failed to delete authenticator {authenticator_id}: {exc}")
            return False
        return self._report_delete(authenticator_id, response)

    def delete_all(self) -> Optional[list[bool]]:
        """Delete every authenticator except recovery codes, concurrently.

        Returns:
            One result per attempted delete, in listing order, or ``None``
            when the listing itself failed.
        """
        authenticators = self.list_authenticators()
        if authenticators is None:
            return None

        targets = [a.id for a in authenticators if not a.is_recovery_code]
        self._output.info("Deleting all authenticators...")
        results = asyncio.run(self._delete_many(targets))
        self._output.info("Done.")
        return results

    async def _delete_many(self, authenticator_ids: list[str]) -> list[bool]:
        if not authenticator_ids:
            return []
        async with self._async_client_factory() as client:
            outcomes = await asyncio.gather(
                *(self._delete_async(client, i) for i in authenticator_ids),
                return_exceptions=True,
            )
        results: list[bool] = []
        for authenticator_id, outcome in zip(authenticator_ids, outcomes):
            if isinstance(outcome, BaseException):
                self._output.error(
                    f"Failed to delete authenticator {authenticator_id}: {outcome}"
                )
                results.append(False)
            else:
                results.append(outcome)
        return results

    async def _delete_async(self, client: AsyncHttpClient, authenticator_id: str) -> bool:
        request = HttpRequest.delete(
            authenticator_path(authenticator_id), bearer=self._access_token
        )
        try:
            response = await client.send(request)
        except ConnectionError_ as exc:
            self._output.error(f"Failed to delete authenticator {authenticator_id}: {exc}")
            return False
        return self._report_delete(authenticator_id, response)

    def _report_delete(self, authenticator_id: str, response: httpx.Response) -> bool:
        if response.status_code == 204:
            self._output.success(f"Successfully deleted authenticator {authenticator_id}")
            return True
        self._output.error(
            f"Failed to delete authenticator {authenticator_id} "
            f"(HTTP {response.status_code}): {response.text}"
        )
        return False
