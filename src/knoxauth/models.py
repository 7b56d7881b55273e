"""Canonical Pydantic models shared across knoxauth modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config
directory or the project file: :class:`RequestConfig` and
:class:`ClientConfig`.  ``ClientConfig`` replaces compiled-in host,
certificate and key constants with values loaded at startup.

**Credential models** -- produced while resolving the identity presented
to Knox: :class:`TokenType`, :class:`AuthToken` and
:class:`CachedUserToken`.

TLS material lives in :mod:`knoxauth.tls` as frozen dataclasses because it
carries raw bytes and is never serialised.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

TOKEN_VERSION = "0"
"""Protocol version marker prefixed to every auth header value."""


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP request settings applied to every call made through a client handle."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    max_retries: int = Field(default=3, description="Max retry attempts")


class ClientConfig(BaseModel):
    """Startup configuration for a Knox client.

    Loaded by :func:`~knoxauth.config.resolve_config`, which layers CLI
    flags, ``KNOXAUTH_*`` environment variables, the project file and the
    user config file over these defaults.

    The three ``*_auth_env`` fields name the environment variables read by
    the identity resolver.  Their *values* are bearer credentials and are
    never stored here.

    Example::

        ClientConfig(
            host="knox.internal:9000",
            cert_file="/etc/knox/client.crt",
            key_file="/etc/knox/client.key",
        )
    """

    model_config = ConfigDict(extra="ignore")

    host: str = Field(default="localhost:9000", description="Knox server host:port")
    key_folder: str = Field(
        default="/var/lib/knox/v0/keys/",
        description="Directory where the key cache lives",
    )
    server_name: str = Field(
        default="knox", description="TLS server name sent as SNI"
    )
    verify_server: bool = Field(
        default=True,
        description="Verify the server certificate; disable only for development",
    )
    ca_bundle: Optional[str] = Field(
        default=None, description="PEM bundle of trusted roots (system roots when unset)"
    )
    cert_file: Optional[str] = Field(
        default=None, description="PEM client certificate chain for mutual TLS"
    )
    key_file: Optional[str] = Field(
        default=None, description="PEM private key matching cert_file"
    )
    user_auth_env: str = "KNOX_USER_AUTH"
    machine_auth_env: str = "KNOX_MACHINE_AUTH"
    service_auth_env: str = "KNOX_SERVICE_AUTH"
    user_token_file: str = Field(
        default="~/.knox_user_auth",
        description="Cached user token written by the login flow",
    )
    # Consumed only by the external login command.
    token_endpoint: str = "https://oauth.token.endpoint.used.for/knox/login"
    client_id: str = ""
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Credentials ---


class TokenType(str, enum.Enum):
    """Identity mechanism byte placed after the version marker."""

    USER = "u"
    MACHINE = "t"
    SERVICE = "s"


class AuthToken(BaseModel):
    """A resolved credential ready to be sent as the auth header.

    The wire form is ``<version><type><payload>``.  The payload is sent
    verbatim: no escaping or encoding is applied.

    Attributes:
        type: Which identity mechanism produced the payload.
        payload: Mechanism-specific identity text.  Never empty.
        source: Name of the :class:`~knoxauth.auth.base.TokenSource`
            that produced this token (diagnostics only, not sent).
        version: Protocol version marker.
    """

    model_config = ConfigDict(frozen=True)

    type: TokenType
    payload: str = Field(min_length=1)
    source: str = ""
    version: str = TOKEN_VERSION

    def header_value(self) -> str:
        """Return the exact string sent to the server."""
        return f"{self.version}{self.type.value}{self.payload}"


class CachedUserToken(BaseModel):
    """The OAuth response cached on disk by the login flow.

    Unknown keys are ignored so that richer responses from the token
    endpoint still load.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str = ""
    error: str = ""
