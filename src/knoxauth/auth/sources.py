"""Built-in token sources.

Four mechanisms, listed in the order the default resolver tries them:

- :class:`UserEnvSource` -- a user token in ``$KNOX_USER_AUTH`` (type ``u``).
- :class:`MachineEnvSource` -- machine identity enabled by
  ``$KNOX_MACHINE_AUTH`` (type ``t``).  The identity is taken from the
  client certificate when one is configured and carries a name, otherwise
  the variable's value is used as is.
- :class:`ServiceEnvSource` -- a service token in ``$KNOX_SERVICE_AUTH``
  (type ``s``).
- :class:`CachedUserTokenSource` -- the access token cached by
  ``knox login`` (type ``u``).

Environment variables that are set but empty count as unset.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Optional

from knoxauth.auth.base import TokenSource
from knoxauth.auth.user_token import CachedUserTokenStore
from knoxauth.models import AuthToken, TokenType
from knoxauth.tls.extractor import CertificateIdentityExtractor, Extraction, IdentitySource
from knoxauth.tls.material import IdentityMaterial


class EnvTokenSource(TokenSource):
    """Use the raw value of an environment variable as the payload.

    Args:
        env_var: Variable to read.
        token_type: Type byte for the produced token.
        environ: Mapping to read from.  Defaults to :data:`os.environ`,
            looked up on every call.
    """

    source_name = "env"

    def __init__(
        self,
        env_var: str,
        token_type: TokenType,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.env_var = env_var
        self.token_type = token_type
        self._environ = environ

    @property
    def name(self) -> str:
        return self.source_name

    def read(self) -> str:
        environ = os.environ if self._environ is None else self._environ
        return environ.get(self.env_var, "")

    def try_resolve(self) -> Optional[AuthToken]:
        return self._token(self.token_type, self.read())


class UserEnvSource(EnvTokenSource):
    source_name = "user_env"

    def __init__(
        self,
        env_var: str = "KNOX_USER_AUTH",
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(env_var, TokenType.USER, environ)


class ServiceEnvSource(EnvTokenSource):
    source_name = "service_env"

    def __init__(
        self,
        env_var: str = "KNOX_SERVICE_AUTH",
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(env_var, TokenType.SERVICE, environ)


class MachineEnvSource(EnvTokenSource):
    """Machine identity, enriched from the client certificate.

    The environment variable both switches the mechanism on and supplies
    the fallback payload.  The produced token is always type ``t``, whether
    the payload came from the certificate or from the variable.

    Args:
        identity: Client certificate material, or ``None`` if not configured.
        env_var: Variable that enables machine auth.
        extractor: Certificate identity extractor.
        environ: Mapping to read from (defaults to :data:`os.environ`).
    """

    source_name = "machine_env"

    def __init__(
        self,
        identity: Optional[IdentityMaterial],
        env_var: str = "KNOX_MACHINE_AUTH",
        extractor: Optional[CertificateIdentityExtractor] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(env_var, TokenType.MACHINE, environ)
        self.identity = identity
        self.extractor = extractor or CertificateIdentityExtractor()

    def extract_identity(self, fallback: str) -> Extraction:
        """Return the certificate identity, or *fallback* if there is none."""
        if self.identity is None:
            return Extraction(fallback, IdentitySource.FALLBACK)
        return self.extractor.extract(self.identity.leaf, fallback)

    def try_resolve(self) -> Optional[AuthToken]:
        raw = self.read()
        if not raw:
            return None
        return self._token(TokenType.MACHINE, self.extract_identity(raw).value)


class CachedUserTokenSource(TokenSource):
    """The access token from the cached login response."""

    def __init__(self, store: Optional[CachedUserTokenStore] = None) -> None:
        self.store = store or CachedUserTokenStore()

    @property
    def name(self) -> str:
        return "cached_user"

    def try_resolve(self) -> Optional[AuthToken]:
        cached = self.store.load()
        if cached is None:
            return None
        return self._token(TokenType.USER, cached.access_token)
