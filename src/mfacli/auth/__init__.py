"""Authentication subsystem for mfacli.

This package contains the MFA password-grant state machine and its
collaborators:

- :class:`~mfacli.auth.grant.MfaGrantFlow` -- password grant, challenge,
  strong-auth grant, and OOB polling.
- :class:`~mfacli.auth.associate.AssociationFlow` -- authenticator
  enrollment and confirmation.
- :class:`~mfacli.auth.token_endpoint.TokenEndpoint` -- the individual
  requests both flows issue.
- :class:`~mfacli.auth.token_store.AccessTokenStore` -- the persisted
  bearer token.
- :class:`~mfacli.auth.prompts.Prompter` -- operator input.
"""

from mfacli.auth.associate import AssociationFlow
from mfacli.auth.grant import MfaGrantFlow
from mfacli.auth.polling import OOB_POLL_INTERVAL, poll_while_pending
from mfacli.auth.prompts import Prompter, TerminalPrompter
from mfacli.auth.token_endpoint import TokenEndpoint
from mfacli.auth.token_store import AccessTokenStore

__all__ = [
    "AccessTokenStore",
    "AssociationFlow",
    "MfaGrantFlow",
    "OOB_POLL_INTERVAL",
    "Prompter",
    "TerminalPrompter",
    "TokenEndpoint",
    "poll_while_pending",
]
