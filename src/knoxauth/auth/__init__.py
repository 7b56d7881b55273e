"""Identity resolution for Knox clients.

Decides which identity the client presents and builds the auth header
value ``<version><type><payload>`` for it.

The main entry points are:

- :class:`TokenSource` -- abstract base class for one identity mechanism.
- :class:`AuthTokenResolver` -- tries sources in priority order.
- :func:`create_default_resolver` -- resolver with the built-in user,
  machine, service and cached-login sources.
- :class:`CachedUserTokenStore` -- reads the token cached by ``knox login``.

Typical usage::

    from knoxauth.auth import create_default_resolver

    resolver = create_default_resolver(config, identity)
    header = resolver.header_value()
"""

from knoxauth.auth.base import TokenSource
from knoxauth.auth.resolver import AuthTokenResolver, SourceOutcome, create_default_resolver
from knoxauth.auth.sources import (
    CachedUserTokenSource,
    EnvTokenSource,
    MachineEnvSource,
    ServiceEnvSource,
    UserEnvSource,
)
from knoxauth.auth.user_token import CachedUserTokenStore

__all__ = [
    "AuthTokenResolver",
    "CachedUserTokenSource",
    "CachedUserTokenStore",
    "EnvTokenSource",
    "MachineEnvSource",
    "ServiceEnvSource",
    "SourceOutcome",
    "TokenSource",
    "UserEnvSource",
    "create_default_resolver",
]
