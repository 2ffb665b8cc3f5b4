"""End-to-end tests of the CLI against a stub tenant.

Commands are invoked through the real root app with the prompter, transport
and sleep function injected through ``ctx.obj``.
"""

from __future__ import annotations

import json
import sys

import pytest

from mfacli import __version__
from mfacli.app import app, main
from mfacli.config import SETTINGS_FILENAME, TOKEN_FILENAME
from mfacli.exceptions import InvalidUsageError
from mfacli.models import AssociationChoice, ChallengeType, OobChannel

AUTHENTICATORS = [
    {"id": "totp|dev_1", "authenticator_type": "otp"},
    {"id": "recovery-code|dev_2", "authenticator_type": "recovery-code"},
]


@pytest.fixture
def invoke(cli_runner, tenant, prompter, sleep):
    """Run the root app with the stub tenant wired in."""

    def _invoke(*args: str):
        obj = {"prompter": prompter, "transport": tenant.transport, "sleep": sleep}
        return cli_runner.invoke(app, ["--no-color", *args], obj=obj)

    return _invoke


def _stored_token(state_dir) -> str:
    return (state_dir / TOKEN_FILENAME).read_text()


class TestTokenCommand:
    def test_otp_login_prints_and_stores_token(self, invoke, tenant, prompter, saved_settings, state_dir):
        prompter.codes = ["000000"]
        tenant.route(
            "POST",
            "/oauth/token",
            (403, {"error": "mfa_required", "mfa_token": "mfa123"}),
            (200, {"access_token": "tok1", "expires_in": 3600}),
        )
        tenant.route("POST", "/mfa/challenge", (200, {"challenge_type": "otp"}))

        result = invoke("token")

        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "tok1"
        assert "Got access token, expires in: 3600" in result.stderr
        assert _stored_token(state_dir) == "tok1"

    def test_login_alias(self, invoke, tenant, saved_settings, state_dir):
        tenant.route("POST", "/oauth/token", (200, {"access_token": "tok0"}))

        result = invoke("login")

        assert result.exit_code == 0, result.output
        assert "Logged in (MFA is disabled)." in result.stderr
        assert _stored_token(state_dir) == "tok0"

    def test_scope_and_audience_options(self, invoke, tenant, saved_settings):
        tenant.route("POST", "/oauth/token", (200, {"access_token": "tok0"}))

        result = invoke("token", "--scope", "openid", "--audience", "https://api.example.com/")

        assert result.exit_code == 0, result.output
        (body,) = tenant.bodies("POST", "/oauth/token")
        assert body["scope"] == "openid"
        assert body["audience"] == "https://api.example.com/"

    def test_valid_stored_token_is_reused(self, invoke, tenant, saved_settings, state_dir):
        (state_dir / TOKEN_FILENAME).write_text("stored")
        tenant.route("GET", "/userinfo", (200, {"sub": "auth0|1"}))

        result = invoke("token")

        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "stored"
        assert tenant.calls("POST", "/oauth/token") == []

    def test_rejected_login_exits_zero(self, invoke, tenant, saved_settings, state_dir):
        tenant.route("POST", "/oauth/token", (403, {"error": "invalid_grant", "error_description": "Wrong email or password."}))

        result = invoke("token")

        assert result.exit_code == 0, result.output
        assert "invalid_grant: Wrong email or password." in result.stderr
        assert result.stdout == ""
        assert not (state_dir / TOKEN_FILENAME).exists()

    def test_verbose_traces_requests_with_redaction(self, invoke, tenant, saved_settings):
        tenant.route("POST", "/oauth/token", (200, {"access_token": "tok0"}))

        result = invoke("--verbose", "token")

        assert result.exit_code == 0, result.output
        assert ">>> POST /oauth/token HTTP/1.1" in result.stderr
        assert "<<< HTTP/1.1 200 OK" in result.stderr
        assert '"password": "********"' in result.stderr
        assert "hunter2" not in result.output

    @pytest.mark.parametrize("flag", ["-v", "--verbose"])
    def test_verbose_after_command_name(self, invoke, tenant, saved_settings, flag):
        tenant.route("POST", "/oauth/token", (200, {"access_token": "tok0"}))

        result = invoke("token", flag)

        assert result.exit_code == 0, result.output
        assert ">>> POST /oauth/token HTTP/1.1" in result.stderr
        assert result.stdout.strip() == "tok0"

    def test_no_trace_without_verbose(self, invoke, tenant, saved_settings):
        tenant.route("POST", "/oauth/token", (200, {"access_token": "tok0"}))

        result = invoke("token")

        assert result.exit_code == 0, result.output
        assert ">>>" not in result.stderr


class TestSetup:
    def test_missing_settings_run_setup_first(self, invoke, tenant, prompter, state_dir):
        tenant.route("POST", "/oauth/token", (200, {"access_token": "tok0"}))

        result = invoke("token")

        assert result.exit_code == 0, result.output
        assert prompter.asked[0] == "settings"
        saved = json.loads((state_dir / SETTINGS_FILENAME).read_text())
        assert saved == {"domain": "example.auth0.com", "clientId": "abc"}

    def test_corrupt_settings_run_setup_again(self, invoke, tenant, prompter, state_dir):
        (state_dir / SETTINGS_FILENAME).write_text("{oops")
        tenant.route("POST", "/oauth/token", (200, {"access_token": "tok0"}))

        result = invoke("token")

        assert result.exit_code == 0, result.output
        assert "Warning: Invalid settings" in result.stderr
        assert "settings" in prompter.asked
        assert json.loads((state_dir / SETTINGS_FILENAME).read_text())["clientId"] == "abc"

    def test_setup_command(self, invoke, state_dir):
        result = invoke("setup")

        assert result.exit_code == 0, result.output
        assert "Settings saved to" in result.stderr
        assert (state_dir / SETTINGS_FILENAME).is_file()


class TestLogout:
    def test_logout_removes_token(self, invoke, state_dir):
        (state_dir / TOKEN_FILENAME).write_text("tok")

        result = invoke("logout")

        assert result.exit_code == 0
        assert "Logged out" in result.stderr
        assert not (state_dir / TOKEN_FILENAME).exists()

    def test_logout_twice(self, invoke, state_dir):
        assert invoke("logout").exit_code == 0
        result = invoke("logout")

        assert result.exit_code == 0
        assert "Logged out" in result.stderr


class TestAuthenticatorsCommand:
    @pytest.fixture(autouse=True)
    def _logged_in(self, saved_settings, state_dir):
        (state_dir / TOKEN_FILENAME).write_text("access-1")

    @pytest.mark.parametrize("args", [("authenticators",), ("authenticators", "list"), ("associate",)])
    def test_list(self, invoke, tenant, args):
        tenant.route("GET", "/mfa/authenticators", (200, AUTHENTICATORS))

        result = invoke(*args)

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == AUTHENTICATORS
        assert len(tenant.calls("GET", "/mfa/authenticators")) == 1

    @pytest.mark.parametrize(
        "args",
        [
            ("authenticators", "-v"),
            ("authenticators", "list", "--verbose"),
            ("authenticators", "delete-all", "-v"),
        ],
    )
    def test_verbose_after_subcommand_name(self, invoke, tenant, args):
        tenant.route("GET", "/mfa/authenticators", (200, AUTHENTICATORS))
        tenant.route("DELETE", "/mfa/authenticators/totp|dev_1", (204, None))

        result = invoke(*args)

        assert result.exit_code == 0, result.output
        assert ">>> GET /mfa/authenticators HTTP/1.1" in result.stderr

    def test_delete_with_argument(self, invoke, tenant, prompter):
        tenant.route("DELETE", "/mfa/authenticators/totp|dev_1", (204, None))

        result = invoke("authenticators", "delete", "totp|dev_1")

        assert result.exit_code == 0, result.output
        assert "Successfully deleted authenticator totp|dev_1" in result.stderr
        assert "authenticator_id" not in prompter.asked

    def test_delete_prompts_for_id(self, invoke, tenant, prompter):
        prompter.authenticator = "sms|dev_9"
        tenant.route("DELETE", "/mfa/authenticators/sms|dev_9", (204, None))

        result = invoke("associate", "delete")

        assert result.exit_code == 0, result.output
        assert prompter.asked == ["authenticator_id"]
        assert len(tenant.calls("DELETE", "/mfa/authenticators/sms|dev_9")) == 1

    def test_delete_rejects_blank_id(self, invoke, tenant):
        result = invoke("authenticators", "delete", " ")

        assert isinstance(result.exception, InvalidUsageError)
        assert tenant.requests == []

    def test_delete_all(self, invoke, tenant):
        tenant.route("GET", "/mfa/authenticators", (200, AUTHENTICATORS))
        tenant.route("DELETE", "/mfa/authenticators/totp|dev_1", (204, None))

        result = invoke("authenticators", "delete-all")

        assert result.exit_code == 0, result.output
        deletes = [r for r in tenant.requests if r.method == "DELETE"]
        assert [r.url.path for r in deletes] == ["/mfa/authenticators/totp|dev_1"]
        assert "Done." in result.stderr

    def test_new_associates_with_stored_token(self, invoke, tenant, prompter, sleep, state_dir):
        prompter.choice = AssociationChoice(type=ChallengeType.OOB, oob_channel=OobChannel.AUTH0)
        tenant.route("POST", "/mfa/associate", (200, {"oob_code": "oob1", "barcode_uri": "https://x"}))
        tenant.route("POST", "/oauth/token", (400, {"error": "authorization_pending"}), (200, {"access_token": "tok2"}))

        result = invoke("authenticators", "new")

        assert result.exit_code == 0, result.output
        assert sleep.calls == [5.0]
        assert result.stdout.strip() == "tok2"
        assert _stored_token(state_dir) == "tok2"
        (request,) = tenant.calls("POST", "/mfa/associate")
        assert request.headers["Authorization"] == "Bearer access-1"


class TestAuthenticatorsWithoutToken:
    def test_logs_in_first(self, invoke, tenant, saved_settings, state_dir):
        tenant.route("POST", "/oauth/token", (200, {"access_token": "fresh"}))
        tenant.route("GET", "/mfa/authenticators", (200, []))

        result = invoke("authenticators")

        assert result.exit_code == 0, result.output
        (listing,) = tenant.calls("GET", "/mfa/authenticators")
        assert listing.headers["Authorization"] == "Bearer fresh"

    def test_failed_login_is_reported(self, invoke, tenant, saved_settings):
        tenant.route("POST", "/oauth/token", (403, {"error": "invalid_grant"}))

        result = invoke("authenticators", "delete-all")

        assert result.exit_code == 0, result.output
        assert "Could not obtain an access token." in result.stderr
        assert tenant.calls("GET", "/mfa/authenticators") == []


def test_version(invoke):
    result = invoke("--version")

    assert result.exit_code == 0
    assert __version__ in result.stdout


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch):
        monkeypatch.setattr("mfacli.app._setup_signal_handlers", lambda: None)

    def test_handled_failure_exits_zero(self, monkeypatch, state_dir):
        monkeypatch.setattr(sys, "argv", ["oauth2-mfa-cli", "--no-color", "logout"])

        with pytest.raises(SystemExit) as excinfo:
            main()

        assert excinfo.value.code == 0

    def test_cli_error_uses_its_exit_code(self, monkeypatch, saved_settings, capsys):
        monkeypatch.setattr(sys, "argv", ["oauth2-mfa-cli", "--no-color", "authenticators", "delete", ""])

        with pytest.raises(SystemExit) as excinfo:
            main()

        assert excinfo.value.code == InvalidUsageError.exit_code
        assert "Authenticator ID must not be empty." in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(self, monkeypatch, state_dir, capsys):
        def _boom(self) -> None:
            raise RuntimeError("disk on fire")

        monkeypatch.setattr("mfacli.auth.token_store.AccessTokenStore.clear", _boom)
        monkeypatch.setattr(sys, "argv", ["oauth2-mfa-cli", "--no-color", "logout"])

        with pytest.raises(SystemExit) as excinfo:
            main()

        assert excinfo.value.code == 1
        logs = list((state_dir / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "disk on fire" in logs[0].read_text()
        assert "Unexpected error: disk on fire" in capsys.readouterr().err
