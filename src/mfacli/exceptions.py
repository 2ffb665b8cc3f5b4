"""Exception hierarchy for mfacli.

All exceptions inherit from :class:`MfaCliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`mfacli.exit_codes`.
The top-level error handler in :func:`mfacli.app.main` catches
``MfaCliError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Server-side OAuth errors (``mfa_required``, ``authorization_pending``,
``association_required``, ...) are *not* exceptions: they arrive as fields
of a :class:`~mfacli.models.GrantResponse` and drive the grant flow.

Subclass hierarchy::

    MfaCliError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConnectionError_    (exit 6)
    +-- ResponseFormatError (exit 1)
    +-- ConfigError         (exit 1)
"""

from mfacli.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class MfaCliError(Exception):
    """Base exception for all mfacli errors.

    Args:
        message: Printed to stderr by :func:`mfacli.app.main`.
        exit_code: Replaces the class default for this instance.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(MfaCliError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class ConnectionError_(MfaCliError):
    """The tenant could not be reached (DNS, refused connection, timeout).

    The trailing underscore keeps the builtin ``ConnectionError`` usable.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ResponseFormatError(MfaCliError):
    """Raised when a response body lacks the fields its endpoint promises."""

    exit_code = EXIT_GENERIC_FAILURE


class ConfigError(MfaCliError):
    """Raised for settings problems (invalid JSON, missing domain or client ID)."""

    exit_code = EXIT_GENERIC_FAILURE
