"""HTTP client adapter for the tenant's authentication API.

Every call the CLI makes is described by one structured value,
:class:`HttpRequest` (method, path, JSON body, optional bearer token), and
sent by :class:`HttpClient` (blocking, backed by :class:`httpx.Client`) or
:class:`AsyncHttpClient` (non-blocking, backed by
:class:`httpx.AsyncClient`, used for concurrent deletes).

The clients never raise on HTTP status: OAuth endpoints report
``mfa_required`` and friends as 4xx bodies that the grant flow must read.
Only transport failures are raised, as
:class:`~mfacli.exceptions.ConnectionError_`.

When a :class:`~mfacli.client.printer.RequestPrinter` is supplied, each
request and response is traced through it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import httpx

from mfacli.client.printer import RequestPrinter
from mfacli.exceptions import ConnectionError_

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class HttpRequest:
    """Description of one API call.

    Attributes:
        method: HTTP method.
        path: Path relative to the tenant base URL, e.g. ``/oauth/token``.
        json: JSON body, or ``None`` for requests without one.
        bearer: Token sent as ``Authorization: Bearer <bearer>``.
    """

    method: str
    path: str
    json: Optional[dict[str, Any]] = None
    bearer: Optional[str] = None

    @classmethod
    def get(cls, path: str, bearer: Optional[str] = None) -> HttpRequest:
        return cls("GET", path, bearer=bearer)

    @classmethod
    def post(
        cls, path: str, json: dict[str, Any], bearer: Optional[str] = None
    ) -> HttpRequest:
        return cls("POST", path, json=json, bearer=bearer)

    @classmethod
    def delete(cls, path: str, bearer: Optional[str] = None) -> HttpRequest:
        return cls("DELETE", path, bearer=bearer)

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.bearer:
            headers["Authorization"] = f"Bearer {self.bearer}"
        return headers


def response_json(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body, returning ``{}`` for empty or non-object bodies."""
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class HttpClient:
    """Blocking client bound to one tenant.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        base_url: Tenant base URL, e.g. ``https://example.auth0.com``.
        printer: Optional verbose tracer.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass
            :class:`httpx.MockTransport`).

    Example::

        with HttpClient(settings.base_url) as client:
            response = client.send(HttpRequest.get("/userinfo", bearer=token))
    """

    def __init__(
        self,
        base_url: str,
        printer: Optional[RequestPrinter] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._printer = printer
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> HttpClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def send(self, request: HttpRequest) -> httpx.Response:
        """Send *request* and return the response, whatever its status.

        Raises:
            ConnectionError_: On network or timeout errors.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        url = self._client.base_url.join(request.path)
        if self._printer:
            self._printer.print_request(request.method, url, request.headers, request.json)
        try:
            response = self._client.request(
                request.method, request.path, headers=request.headers, json=request.json
            )
        except httpx.HTTPError as exc:
            if self._printer:
                self._printer.print_failure(request.method, url, exc)
            raise ConnectionError_(f"{request.method} {request.path} failed: {exc}") from exc
        if self._printer:
            self._printer.print_response(response)
        return response


class AsyncHttpClient:
    """Non-blocking counterpart of :class:`HttpClient`.

    Must be used as an async context manager.
    """

    def __init__(
        self,
        base_url: str,
        printer: Optional[RequestPrinter] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._printer = printer
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> AsyncHttpClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def send(self, request: HttpRequest) -> httpx.Response:
        """Send *request* and return the response, whatever its status.

        Raises:
            ConnectionError_: On network or timeout errors.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        url = self._client.base_url.join(request.path)
        if self._printer:
            self._printer.print_request(request.method, url, request.headers, request.json)
        try:
            response = await self._client.request(
                request.method, request.path, headers=request.headers, json=request.json
            )
        except httpx.HTTPError as exc:
            if self._printer:
                self._printer.print_failure(request.method, url, exc)
            raise ConnectionError_(f"{request.method} {request.path} failed: {exc}") from exc
        if self._printer:
            self._printer.print_response(response)
        return response
