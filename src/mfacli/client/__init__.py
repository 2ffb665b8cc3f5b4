"""HTTP client module for mfacli.

Provides the request descriptor and the synchronous/asynchronous clients
that talk to the tenant, plus the verbose request printer.

Classes:
    :class:`HttpRequest` -- structured description of one API call.
    :class:`HttpClient` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncHttpClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.
    :class:`RequestPrinter` -- redacting request/response tracer.
"""

from mfacli.client.http import AsyncHttpClient, HttpClient, HttpRequest, response_json
from mfacli.client.printer import RequestPrinter, redact_body

__all__ = [
    "AsyncHttpClient",
    "HttpClient",
    "HttpRequest",
    "RequestPrinter",
    "redact_body",
    "response_json",
]
