"""Exception hierarchy for knoxauth.

Every exception inherits from :class:`KnoxAuthError`, which carries an
``exit_code`` taken from :mod:`knoxauth.exit_codes`.  The CLI entry point
(:func:`knoxauth.app.main`) turns a ``KnoxAuthError`` into a clean exit with
that code.

Identity resolution and transport bootstrap never raise these for missing
or malformed credentials; they degrade instead.  The errors below come from
configuration files that exist but are invalid, unusable host addresses,
and responses from the Knox server.

Subclass hierarchy::

    KnoxAuthError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- ConfigError         (exit 1)
"""

from knoxauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class KnoxAuthError(Exception):
    """Base exception for all knoxauth errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(KnoxAuthError):
    """Raised for invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(KnoxAuthError):
    """Raised when the Knox server answers HTTP 401 or 403."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(KnoxAuthError):
    """Raised when the Knox server answers HTTP 404."""

    exit_code = EXIT_NOT_FOUND


class ServerError(KnoxAuthError):
    """Raised for any other HTTP error status from the Knox server."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(KnoxAuthError):
    """Raised on network-level failures (timeout, DNS, refused, TLS handshake).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(KnoxAuthError):
    """Raised for invalid configuration files and unusable host addresses."""

    exit_code = EXIT_GENERIC_FAILURE
