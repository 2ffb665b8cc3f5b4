"""Setup command -- store the tenant domain and client ID.

Settings are written to ``.settings`` in the state directory and read by
every other command. When a command finds no settings (or a corrupt file)
it runs the same interactive setup before continuing.
"""

from __future__ import annotations

import typer

from mfacli.auth.prompts import Prompter, TerminalPrompter
from mfacli.config import resolve_settings, save_settings
from mfacli.exceptions import ConfigError
from mfacli.models import Settings
from mfacli.output import info, success, warning


def run_setup(prompter: Prompter) -> Settings:
    """Prompt for settings, save them, and return them."""
    settings = prompter.settings()
    path = save_settings(settings)
    success(f"Settings saved to {path}")
    return settings


def ensure_settings(prompter: Prompter) -> Settings:
    """Return the effective settings, running setup if none are usable."""
    try:
        settings = resolve_settings()
    except ConfigError as exc:
        warning(f"{exc}")
        info("Running setup again.")
        return run_setup(prompter)
    if settings is None:
        info("No settings found, running setup.")
        return run_setup(prompter)
    return settings


def setup_command(ctx: typer.Context) -> None:
    """Set up the Auth0 domain and client ID used by the other commands.

    Example::

        oauth2-mfa-cli setup
    """
    obj = ctx.obj or {}
    run_setup(obj.get("prompter") or TerminalPrompter())
