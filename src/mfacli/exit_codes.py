"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~mfacli.exceptions.MfaCliError` subclass.
Reported-but-handled failures (a rejected grant, a failed delete) still exit
with :data:`EXIT_SUCCESS`; only errors that escape a command use the codes
below.

Example::

    $ oauth2-mfa-cli token
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- the tenant could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed (possibly after reporting a handled failure)."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_INTERRUPTED = 130
"""The process was interrupted by SIGINT or SIGTERM."""
