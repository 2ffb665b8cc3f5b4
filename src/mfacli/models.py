"""Canonical Pydantic models shared across all mfacli modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Local state** -- persisted or held in memory by the CLI:
    :class:`Settings` and :class:`Credentials`.

**Server responses** -- parsed from the tenant's JSON bodies:
    :class:`GrantResponse`, :class:`ChallengeResponse`,
    :class:`AssociationResponse`, and :class:`Authenticator`.

**Operator answers** -- collected by the prompt provider:
    :class:`AssociationChoice`.

Response models use ``extra="allow"`` so that fields the tenant adds are kept
in ``model_extra`` and still show up in verbose output.
"""

from __future__ import annotations

import enum
import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


GRANT_TYPE_PASSWORD = "password"
GRANT_TYPE_MFA_OTP = "http://auth0.com/oauth/grant-type/mfa-otp"
GRANT_TYPE_MFA_OOB = "http://auth0.com/oauth/grant-type/mfa-oob"

DEFAULT_SCOPE = "openid profile enroll read:authenticators remove:authenticators"
DEFAULT_CHALLENGE_TYPES = ("otp", "oob")

_HOST_RE = re.compile(
    r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*(?::\d+)?"
)


class ChallengeType(str, enum.Enum):
    """Second-factor mechanisms offered by the challenge endpoint."""

    OTP = "otp"
    OOB = "oob"


class OobChannel(str, enum.Enum):
    """Delivery channels for out-of-band authenticators."""

    SMS = "sms"
    EMAIL = "email"
    AUTH0 = "auth0"


class GrantError(str, enum.Enum):
    """``error`` codes that steer the grant flow instead of ending it."""

    MFA_REQUIRED = "mfa_required"
    AUTHORIZATION_PENDING = "authorization_pending"
    ASSOCIATION_REQUIRED = "association_required"


# --- Local state ---


def normalise_domain(value: str) -> str:
    """Strip a pasted scheme and trailing slash and check that a host name remains.

    Raises:
        ValueError: If nothing is left or the rest is not a host name.
    """
    value = value.strip()
    for prefix in ("https://", "http://"):
        if value.startswith(prefix):
            value = value[len(prefix):]
    value = value.rstrip("/")
    if not value:
        raise ValueError("domain must not be empty")
    if not _HOST_RE.fullmatch(value):
        raise ValueError(f"{value!r} is not a host name")
    return value


class Settings(BaseModel):
    """Tenant settings created by ``oauth2-mfa-cli setup``.

    Stored as ``{"domain": ..., "clientId": ...}`` so that files written by
    earlier releases keep loading.

    Example::

        Settings(domain="example.auth0.com", client_id="abc")
    """

    model_config = ConfigDict(populate_by_name=True)

    domain: str = Field(min_length=1, description="Tenant host name, without scheme")
    client_id: str = Field(min_length=1, alias="clientId", description="OAuth client ID")

    @field_validator("domain")
    @classmethod
    def _normalise_domain(cls, value: str) -> str:
        return normalise_domain(value)

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}"


class Credentials(BaseModel):
    """Username and password for one password grant. Never persisted."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)


# --- Server responses ---


class GrantResponse(BaseModel):
    """Body returned by ``POST /oauth/token``.

    A response is either a success (``access_token`` set) or an error
    (``error`` set). An ``mfa_required`` error carries the ``mfa_token`` that
    identifies the in-progress challenge.
    """

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    id_token: Optional[str] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    expires_in: Optional[int] = None
    error: Optional[str] = None
    error_description: Optional[str] = None
    mfa_token: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.error == GrantError.AUTHORIZATION_PENDING.value

    def describe_error(self) -> str:
        """Return ``error: description`` for reporting, or an empty string."""
        if not self.error:
            return ""
        if self.error_description:
            return f"{self.error}: {self.error_description}"
        return self.error


class ChallengeResponse(BaseModel):
    """Body returned by ``POST /mfa/challenge``."""

    model_config = ConfigDict(extra="allow")

    challenge_type: Optional[str] = None
    binding_method: Optional[str] = None
    oob_code: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @property
    def association_required(self) -> bool:
        return self.error == GrantError.ASSOCIATION_REQUIRED.value


class AssociationResponse(BaseModel):
    """Body returned by ``POST /mfa/associate``."""

    model_config = ConfigDict(extra="allow")

    authenticator_type: Optional[str] = None
    oob_channel: Optional[str] = None
    oob_code: Optional[str] = None
    barcode_uri: Optional[str] = None
    secret: Optional[str] = None
    recovery_codes: Optional[list[str]] = None

    @field_validator("recovery_codes", mode="before")
    @classmethod
    def _coerce_codes(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class Authenticator(BaseModel):
    """An opaque authenticator record from ``GET /mfa/authenticators``."""

    model_config = ConfigDict(extra="allow")

    id: str
    authenticator_type: Optional[str] = None
    active: Optional[bool] = None

    @property
    def is_recovery_code(self) -> bool:
        return "recovery-code" in self.id


# --- Operator answers ---


class AssociationChoice(BaseModel):
    """What the operator wants to enroll.

    ``oob_channel`` is set only for ``oob``; ``phone_number`` only for the
    ``sms`` channel and ``email`` only for the ``email`` channel.
    """

    type: ChallengeType
    oob_channel: Optional[OobChannel] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None

    @property
    def binding_method(self) -> Optional[str]:
        """SMS codes must be typed back in; every other channel confirms on its own."""
        return "prompt" if self.oob_channel == OobChannel.SMS else None

    def to_request_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"authenticator_types": [self.type.value]}
        if self.type == ChallengeType.OOB and self.oob_channel is not None:
            body["oob_channels"] = [self.oob_channel.value]
        if self.phone_number:
            body["phone_number"] = self.phone_number
        if self.email:
            body["email"] = self.email
        return body
