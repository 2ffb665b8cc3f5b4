"""Shared test fixtures for mfacli.

Provides an isolated state directory, output managers, a scripted prompter,
a recording sleep function and a stub tenant served through
:class:`httpx.MockTransport`. These fixtures are automatically discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx
import pytest

from mfacli.auth.prompts import Prompter
from mfacli.auth.token_store import AccessTokenStore
from mfacli.client.http import HttpClient
from mfacli.config import save_settings
from mfacli.models import AssociationChoice, ChallengeType, Credentials, Settings
from mfacli.output import OutputManager, reset_output, set_output


DOMAIN = "example.auth0.com"
CLIENT_ID = "abc"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager's Rich consoles keep references to sys.stdout and
    sys.stderr from creation time. CliRunner swaps those streams, so a
    fresh manager is needed for every test.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# State isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point MFACLI_HOME at a temporary directory.

    Clears the settings override variables and changes the working directory
    to tmp_path so that no test ever reads a real ``.settings`` file.
    """
    home = tmp_path / "state"
    monkeypatch.setenv("MFACLI_HOME", str(home))
    for var in ("MFACLI_DOMAIN", "MFACLI_CLIENT_ID"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    home.mkdir()
    return home


@pytest.fixture
def settings() -> Settings:
    return Settings(domain=DOMAIN, client_id=CLIENT_ID)


@pytest.fixture
def saved_settings(state_dir: Path, settings: Settings) -> Settings:
    """Settings written to the isolated state directory."""
    save_settings(settings)
    return settings


@pytest.fixture
def store(state_dir: Path) -> AccessTokenStore:
    return AccessTokenStore()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, colourless output manager."""
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a colourless output manager so capsys sees plain text."""
    output = OutputManager(no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Prompts and delays
# ---------------------------------------------------------------------------


class ScriptedPrompter(Prompter):
    """Prompter that answers from preset values and counts the questions."""

    def __init__(
        self,
        username: str = "user@example.com",
        password: str = "hunter2",
        codes: Optional[list[str]] = None,
        choice: Optional[AssociationChoice] = None,
        authenticator: str = "totp|dev_1",
        tenant: Optional[Settings] = None,
    ) -> None:
        self.username = username
        self.password = password
        self.codes = list(codes or [])
        self.choice = choice or AssociationChoice(type=ChallengeType.OTP)
        self.authenticator = authenticator
        self.tenant = tenant or Settings(domain=DOMAIN, client_id=CLIENT_ID)
        self.asked: list[str] = []

    def credentials(self) -> Credentials:
        self.asked.append("credentials")
        return Credentials(username=self.username, password=self.password)

    def code(self) -> str:
        self.asked.append("code")
        return self.codes.pop(0)

    def association_choice(self) -> AssociationChoice:
        self.asked.append("association_choice")
        return self.choice

    def authenticator_id(self) -> str:
        self.asked.append("authenticator_id")
        return self.authenticator

    def settings(self) -> Settings:
        self.asked.append("settings")
        return self.tenant


class SleepRecorder:
    """Drop-in for :func:`time.sleep` that records each delay."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


# ---------------------------------------------------------------------------
# Stub tenant
# ---------------------------------------------------------------------------

Reply = Union[tuple[int, Any], Exception, Callable[[httpx.Request], httpx.Response]]


class StubTenant:
    """In-memory authorization server behind an :class:`httpx.MockTransport`.

    Replies are queued per ``(method, path)``; the last queued reply repeats
    once the others are used up. Unrouted requests get a 404.
    """

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, path: str, *replies: Reply) -> None:
        self._routes[(method, path)] = list(replies)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"error": "not_found"})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        status, body = reply
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path == path
        ]

    def bodies(self, method: str, path: str) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.calls(method, path)]


@pytest.fixture
def tenant() -> StubTenant:
    return StubTenant()


@pytest.fixture
def client(tenant: StubTenant, settings: Settings) -> HttpClient:
    """An open HttpClient talking to the stub tenant."""
    with HttpClient(settings.base_url, transport=tenant.transport) as http:
        yield http


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
