"""Abstract base class for identity token sources.

A :class:`TokenSource` is one way of obtaining the identity presented to
Knox: an environment variable, the machine certificate, a cached login
token.  The :class:`~knoxauth.auth.resolver.AuthTokenResolver` walks an
ordered list of sources and uses the first one that produces a token.

To add a mechanism, subclass :class:`TokenSource`, give it a unique
:attr:`~TokenSource.name`, and implement :meth:`~TokenSource.try_resolve`.
Sources must not raise for missing or malformed input; they return ``None``
so that the next source gets its turn.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from knoxauth.models import AuthToken, TokenType


class TokenSource(ABC):
    """One candidate identity mechanism in the resolution chain."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the identifier used in diagnostics (e.g. ``"user_env"``)."""
        ...

    @abstractmethod
    def try_resolve(self) -> Optional[AuthToken]:
        """Return a token, or ``None`` if this mechanism is unavailable.

        Implementations read their inputs on every call and keep no state
        between calls.
        """
        ...

    def _token(self, token_type: TokenType, payload: str) -> Optional[AuthToken]:
        """Wrap *payload* in an :class:`AuthToken`, or ``None`` if it is empty."""
        if not payload:
            return None
        return AuthToken(type=token_type, payload=payload, source=self.name)
