"""Interactive prompts for credentials, codes, and enrollment choices.

:class:`Prompter` is the interface the flows depend on;
:class:`TerminalPrompter` implements it with :func:`typer.prompt`. Invalid
answers raise :class:`click.BadParameter` from a ``value_proc``, which makes
click print the message and ask again, so nothing invalid is ever returned.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Callable

import click
import typer

from mfacli.models import (
    AssociationChoice,
    ChallengeType,
    Credentials,
    OobChannel,
    Settings,
    normalise_domain,
)

_PHONE_RE = re.compile(r"\+?\d+")


class Prompter(ABC):
    """Source of operator input for the grant and association flows."""

    @abstractmethod
    def credentials(self) -> Credentials:
        """Ask for username and password."""

    @abstractmethod
    def code(self) -> str:
        """Ask for a one-time password or binding code."""

    @abstractmethod
    def association_choice(self) -> AssociationChoice:
        """Ask which kind of authenticator to enroll."""

    @abstractmethod
    def authenticator_id(self) -> str:
        """Ask for the ID of an authenticator to delete."""

    @abstractmethod
    def settings(self) -> Settings:
        """Ask for the tenant domain and client ID."""


def _non_empty(label: str) -> Callable[[str], str]:
    def _check(value: str) -> str:
        value = value.strip()
        if not value:
            raise click.BadParameter(f"{label} must not be empty.")
        return value

    return _check


def _domain(value: str) -> str:
    try:
        return normalise_domain(value)
    except ValueError as exc:
        raise click.BadParameter(
            f"Enter the tenant host name, e.g. example.auth0.com ({exc})."
        ) from exc


def _phone_number(value: str) -> str:
    compact = re.sub(r"[\s-]", "", value)
    if not _PHONE_RE.fullmatch(compact):
        raise click.BadParameter("Use only digits and an optional leading plus sign.")
    return compact


class TerminalPrompter(Prompter):
    """Prompts on the controlling terminal."""

    def credentials(self) -> Credentials:
        username = typer.prompt(
            "Please enter your username", value_proc=_non_empty("Username")
        )
        password = typer.prompt(
            "Please enter your password",
            hide_input=True,
            value_proc=_non_empty("Password"),
        )
        return Credentials(username=username, password=password)

    def code(self) -> str:
        return typer.prompt("Please enter code", value_proc=_non_empty("Code"))

    def association_choice(self) -> AssociationChoice:
        kind = typer.prompt(
            "What type of MFA mechanism would you like to enable?",
            type=click.Choice([c.value for c in ChallengeType]),
            default=ChallengeType.OTP.value,
        )
        if kind == ChallengeType.OTP.value:
            return AssociationChoice(type=ChallengeType.OTP)

        channel = typer.prompt(
            "What type of OOB authenticator would you like to use?",
            type=click.Choice([c.value for c in OobChannel]),
            default=OobChannel.SMS.value,
        )
        choice = AssociationChoice(type=ChallengeType.OOB, oob_channel=OobChannel(channel))
        if choice.oob_channel == OobChannel.SMS:
            choice.phone_number = typer.prompt(
                "Please enter your cellphone number (only numbers and plus sign)",
                value_proc=_phone_number,
            )
        elif choice.oob_channel == OobChannel.EMAIL:
            choice.email = typer.prompt(
                "Please enter your e-mail address", value_proc=_non_empty("E-mail")
            )
        return choice

    def authenticator_id(self) -> str:
        return typer.prompt(
            "Please enter the authenticator ID", value_proc=_non_empty("Authenticator ID")
        )

    def settings(self) -> Settings:
        domain = typer.prompt("Please enter your Auth0 Domain", value_proc=_domain)
        client_id = typer.prompt(
            "Please enter your Auth0 client ID", value_proc=_non_empty("Client ID")
        )
        return Settings(domain=domain, client_id=client_id)
