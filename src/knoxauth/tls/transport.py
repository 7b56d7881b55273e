"""Transport bootstrap: mutual TLS configuration for the Knox client.

:class:`TransportBootstrapper` combines optional
:class:`~knoxauth.tls.material.IdentityMaterial` with a server verification
policy into an immutable :class:`TransportConfig`.  The config is built once
at startup and then shared by every request, so it is a frozen dataclass and
:meth:`TransportConfig.ssl_context` builds a fresh context on each call.

Server verification is on by default.  Turning it off (``verify_server=False``)
keeps encryption and the client certificate but accepts any server
certificate, which is only acceptable against a local development server.
The bootstrapper logs a warning every time such a config is built.

See Also:
    :class:`~knoxauth.client.handle.ClientHandle` -- consumes the config.
"""

from __future__ import annotations

import logging
import os
import ssl
import tempfile
from dataclasses import dataclass
from typing import Optional, Union

from knoxauth.exceptions import ConfigError
from knoxauth.models import ClientConfig
from knoxauth.tls.material import (
    IdentityMaterial,
    load_identity_material,
    load_identity_material_from_files,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportConfig:
    """Immutable TLS settings for connections to the Knox server.

    Attributes:
        server_name: Name sent as TLS SNI.  When verification is on, the
            server certificate must also be valid for this name.
        identity: Client certificate and key for mutual TLS, or ``None``
            to connect without a client certificate.
        verify_server: Whether the server certificate chain and name are
            verified.
        ca_bundle: Optional PEM file of trusted roots.  System roots are
            used when unset.
    """

    server_name: str
    identity: Optional[IdentityMaterial] = None
    verify_server: bool = True
    ca_bundle: Optional[str] = None

    @property
    def has_client_certificate(self) -> bool:
        return self.identity is not None

    def ssl_context(self) -> ssl.SSLContext:
        """Build an :class:`ssl.SSLContext` implementing this config.

        A client certificate the ssl layer refuses is dropped with a warning
        rather than failing the connection setup.

        Raises:
            ConfigError: If ``ca_bundle`` cannot be read or parsed.
        """
        if self.verify_server:
            try:
                ctx = ssl.create_default_context(cafile=self.ca_bundle)
            except (OSError, ssl.SSLError) as exc:
                raise ConfigError(f"Cannot load CA bundle {self.ca_bundle}: {exc}") from exc
        else:
            ctx = ssl.create_default_context()
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE

        if self.identity is not None:
            try:
                _load_client_certificate(ctx, self.identity)
            except (ssl.SSLError, OSError) as exc:
                logger.warning("Client certificate rejected by ssl, continuing without it: %s", exc)
        return ctx


def _load_client_certificate(ctx: ssl.SSLContext, identity: IdentityMaterial) -> None:
    """Load *identity* into *ctx*.

    :meth:`ssl.SSLContext.load_cert_chain` only reads from files, so the
    key and chain go through a ``0o600`` temp file that is removed as soon
    as it has been read.
    """
    tmp_path: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb", prefix=".knoxauth-", suffix=".pem", delete=False
        ) as fd:
            tmp_path = fd.name
            os.chmod(tmp_path, 0o600)
            fd.write(identity.certificate_pem())
            fd.write(identity.private_key.rstrip(b"\n") + b"\n")
        ctx.load_cert_chain(certfile=tmp_path)
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass


class TransportBootstrapper:
    """Build :class:`TransportConfig` instances.

    Example::

        material = load_identity_material(cert_pem, key_pem)
        transport = TransportBootstrapper().build(material, "knox")
    """

    def build(
        self,
        identity: Optional[IdentityMaterial],
        server_name: str,
        verify_server: bool = True,
        ca_bundle: Optional[str] = None,
    ) -> TransportConfig:
        """Combine identity material and verification policy.

        Args:
            identity: Parsed client certificate and key, or ``None`` when
                none is configured or the configured pair did not load.
            server_name: TLS SNI name.
            verify_server: Verify the server certificate.
            ca_bundle: Optional PEM file of trusted roots.

        Returns:
            The frozen :class:`TransportConfig`.
        """
        if not verify_server:
            logger.warning(
                "Server certificate verification is disabled for %r; "
                "do not use this configuration outside development",
                server_name,
            )
        if identity is None:
            logger.debug("No client certificate configured, mutual TLS is off")
        return TransportConfig(
            server_name=server_name,
            identity=identity,
            verify_server=verify_server,
            ca_bundle=ca_bundle,
        )

    def build_from_config(self, config: ClientConfig) -> TransportConfig:
        """Load identity material from ``config.cert_file``/``key_file`` and build.

        A missing, unreadable, malformed or mismatched pair leaves the
        transport without a client certificate.
        """
        identity = load_identity_material_from_files(config.cert_file, config.key_file)
        if identity is None and (config.cert_file or config.key_file):
            logger.warning(
                "Client certificate %s / key %s could not be loaded; "
                "connecting without mutual TLS",
                config.cert_file,
                config.key_file,
            )
        return self.build(
            identity,
            config.server_name,
            verify_server=config.verify_server,
            ca_bundle=config.ca_bundle,
        )

    def build_from_pem(
        self,
        cert_pem: Union[str, bytes],
        key_pem: Union[str, bytes],
        server_name: str,
        verify_server: bool = True,
        ca_bundle: Optional[str] = None,
    ) -> TransportConfig:
        """Parse in-memory PEM material and build.

        A pair that does not parse or does not match is dropped and the
        transport is built without a client certificate.
        """
        identity = load_identity_material(cert_pem, key_pem)
        if identity is None:
            logger.warning("Client certificate and key did not load; connecting without mutual TLS")
        return self.build(identity, server_name, verify_server=verify_server, ca_bundle=ca_bundle)
