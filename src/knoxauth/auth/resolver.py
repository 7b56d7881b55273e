"""Auth token resolver -- ordered dispatch over token sources.

The :class:`AuthTokenResolver` holds an ordered list of
:class:`~knoxauth.auth.base.TokenSource` instances and returns the token of
the first one that produces a credential.  Order is the trust decision: a
user token in the environment always wins over machine identity, machine
identity over a service token, and any of them over the cached login token.

When nothing resolves, the resolver returns ``None`` and
:meth:`AuthTokenResolver.header_value` returns ``""``.  No request is
rejected locally; the Knox server decides what an unauthenticated caller
may do.

For most use cases, call :func:`create_default_resolver`.

See Also:
    :mod:`knoxauth.auth.sources` -- the built-in sources.
    :class:`~knoxauth.client.handle.ClientHandle` -- sends the header.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import NamedTuple, Optional

from knoxauth.auth.base import TokenSource
from knoxauth.auth.sources import (
    CachedUserTokenSource,
    MachineEnvSource,
    ServiceEnvSource,
    UserEnvSource,
)
from knoxauth.auth.user_token import CachedUserTokenStore
from knoxauth.models import AuthToken, ClientConfig
from knoxauth.tls.material import IdentityMaterial

logger = logging.getLogger(__name__)


class SourceOutcome(NamedTuple):
    """What one source produced during :meth:`AuthTokenResolver.explain`."""

    name: str
    token: Optional[AuthToken]
    selected: bool


class AuthTokenResolver:
    """Resolve the identity to present to Knox.

    Args:
        sources: Token sources in priority order, highest first.

    Example::

        resolver = create_default_resolver(config, identity)
        header = resolver.header_value()   # e.g. "0uabc123", or "" if none
    """

    def __init__(self, sources: Sequence[TokenSource]) -> None:
        self._sources: list[TokenSource] = list(sources)

    @property
    def sources(self) -> list[TokenSource]:
        return list(self._sources)

    def resolve(self) -> Optional[AuthToken]:
        """Return the first token any source produces, or ``None``."""
        for source in self._sources:
            token = source.try_resolve()
            if token is not None:
                logger.debug("Identity resolved from %s (type %s)", source.name, token.type.value)
                return token
        logger.debug("No identity source produced a token, sending no auth header")
        return None

    def header_value(self) -> str:
        """Return the auth header value, or ``""`` when unauthenticated.

        Suitable as the ``auth_handler`` callback of a
        :class:`~knoxauth.client.handle.ClientHandle`.
        """
        token = self.resolve()
        return token.header_value() if token is not None else ""

    def explain(self) -> list[SourceOutcome]:
        """Evaluate every source, marking the one :meth:`resolve` would pick.

        Unlike :meth:`resolve` this does not stop at the first hit, so it
        also reports lower-priority sources that are shadowed.
        """
        outcomes: list[SourceOutcome] = []
        selected = False
        for source in self._sources:
            token = source.try_resolve()
            pick = token is not None and not selected
            selected = selected or pick
            outcomes.append(SourceOutcome(source.name, token, pick))
        return outcomes


def create_default_resolver(
    config: Optional[ClientConfig] = None,
    identity: Optional[IdentityMaterial] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AuthTokenResolver:
    """Create an :class:`AuthTokenResolver` with the four built-in sources.

    Order:

    1. ``user_env`` -- ``config.user_auth_env``
    2. ``machine_env`` -- ``config.machine_auth_env`` plus *identity*
    3. ``service_env`` -- ``config.service_auth_env``
    4. ``cached_user`` -- ``config.user_token_file``

    Args:
        config: Client config naming the variables and token file.
            Defaults to :class:`~knoxauth.models.ClientConfig` defaults.
        identity: Client certificate material for machine identity.
        environ: Environment mapping (defaults to :data:`os.environ`).
    """
    config = config or ClientConfig()
    return AuthTokenResolver(
        [
            UserEnvSource(config.user_auth_env, environ=environ),
            MachineEnvSource(identity, config.machine_auth_env, environ=environ),
            ServiceEnvSource(config.service_auth_env, environ=environ),
            CachedUserTokenSource(CachedUserTokenStore(config.user_token_file)),
        ]
    )
