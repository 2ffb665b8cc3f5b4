"""Verbose HTTP trace with secret redaction.

:class:`RequestPrinter` renders each outgoing request and incoming response
in a wire-like format::

    >>> POST /oauth/token HTTP/1.1
        Host: example.auth0.com
        Content-Type: application/json
    {
      "grant_type": "password",
      "password": "********",
      ...
    }

The printer is handed to :class:`~mfacli.client.http.HttpClient` at
construction time together with the function it logs through, so nothing is
bound globally at import.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Callable, Optional

import httpx

_TRUNCATE_AT = 32
_TRUNCATED_FIELDS = ("mfa_token", "oob_code", "access_token", "id_token", "refresh_token")
_MASKED_FIELDS = ("password",)


def _truncate(value: str) -> str:
    if len(value) <= _TRUNCATE_AT:
        return value
    return value[:_TRUNCATE_AT] + "..."


def redact_body(body: Any) -> Any:
    """Return a copy of *body* with tokens truncated and passwords masked.

    Non-dict bodies are returned unchanged. The input is never mutated.
    """
    if not isinstance(body, dict):
        return body
    result = copy.deepcopy(body)
    for field in _TRUNCATED_FIELDS:
        if isinstance(result.get(field), str):
            result[field] = _truncate(result[field])
    for field in _MASKED_FIELDS:
        if result.get(field):
            result[field] = "********"
    return result


def redact_authorization(value: str) -> str:
    """Shorten the credential part of an ``Authorization`` header value."""
    scheme, _, credential = value.partition(" ")
    if not credential:
        return _truncate(value)
    return f"{scheme} {_truncate(credential)}"


class RequestPrinter:
    """Formats HTTP traffic and hands the text to *log*.

    Args:
        log: Sink for each formatted block, typically
            :meth:`~mfacli.output.OutputManager.info` bound to stderr.
    """

    def __init__(self, log: Callable[[str], None]) -> None:
        self._log = log

    def print_request(
        self,
        method: str,
        url: httpx.URL,
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
    ) -> None:
        path = url.raw_path.decode("ascii")
        lines = [
            f">>> {method.upper()} {path} HTTP/1.1",
            f"    Host: {url.host}",
            "    Content-Type: application/json",
        ]
        authorization = (headers or {}).get("Authorization")
        if authorization:
            lines.append(f"    Authorization: {redact_authorization(authorization)}")
        msg = "\n".join(lines) + "\n"
        if body is not None:
            msg += json.dumps(redact_body(body), indent=2) + "\n"
        self._log(msg)

    def print_response(self, response: httpx.Response) -> None:
        msg = f"<<< HTTP/1.1 {response.status_code} {response.reason_phrase}\n"
        if response.content:
            try:
                payload = response.json()
            except ValueError:
                msg += response.text + "\n"
            else:
                msg += json.dumps(redact_body(payload), indent=2) + "\n"
        self._log(msg)

    def print_failure(self, method: str, url: httpx.URL, exc: Exception) -> None:
        self._log(f"!!! {method.upper()} {url.path} failed: {exc}\n")
