"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a failure category and is carried by the matching
:class:`~knoxauth.exceptions.KnoxAuthError` subclass, so wrapper scripts
can tell a rejected credential from an unreachable host without parsing
stderr.

Example::

    $ knoxauth request GET /v0/keys/
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the server rejected the presented identity
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (including invalid configuration)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The Knox server rejected the request as unauthenticated or unauthorised."""

EXIT_NOT_FOUND = 4
"""The requested key or path does not exist (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The Knox server returned an error response."""

EXIT_CONNECTION_ERROR = 6
"""A network or TLS handshake error occurred."""
