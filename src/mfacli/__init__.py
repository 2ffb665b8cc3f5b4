"""mfacli -- a command-line client for OAuth 2.0 password grants with MFA.

Logs in with the Resource Owner Password Credentials grant, completes
multi-factor challenges (one-time passwords, and out-of-band push, SMS or
e-mail confirmations), enrolls new authenticators, and manages the ones that
exist.

Typical workflow::

    oauth2-mfa-cli setup                   # store domain and client ID
    oauth2-mfa-cli token                   # log in, print the access token
    oauth2-mfa-cli authenticators new      # enroll another factor
    oauth2-mfa-cli logout

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Settings persistence and precedence resolution.
    auth: Grant and association flows, token store, prompts.
    authenticators: Authenticator listing and deletion.
    client: HTTP client adapter and verbose request printer.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
