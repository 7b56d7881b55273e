"""Client assembly -- wire identity, transport and host into a handle.

:class:`ClientAssembler` is the last step of startup.  It performs no
credential work of its own: it checks that the host address is usable,
then binds the resolver's header callback, the key cache directory and the
transport config into a :class:`~knoxauth.client.handle.ClientHandle`.

:meth:`ClientAssembler.from_config` runs the whole bootstrap from a
:class:`~knoxauth.models.ClientConfig`: identity material, transport,
resolver, handle.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Optional, Union

import httpx

from knoxauth.auth.resolver import AuthTokenResolver, create_default_resolver
from knoxauth.client.handle import ClientHandle
from knoxauth.exceptions import ConfigError
from knoxauth.models import ClientConfig, RequestConfig
from knoxauth.tls.transport import TransportBootstrapper, TransportConfig

DEFAULT_KEY_FOLDER = "/var/lib/knox/v0/keys/"


def validate_host(host: str) -> str:
    """Check that *host* is a bare ``host[:port]`` and return it stripped.

    Raises:
        ConfigError: If the address has no host part, carries a scheme,
            path, query or credentials, or has an invalid port.
    """
    host = host.strip()
    if not host or "://" in host or "/" in host or "@" in host or "?" in host:
        raise ConfigError(f"Invalid Knox host address: {host!r} (expected host[:port])")
    try:
        url = httpx.URL(f"https://{host}")
    except httpx.InvalidURL as exc:
        raise ConfigError(f"Invalid Knox host address: {host!r}: {exc}") from exc
    if not url.host:
        raise ConfigError(f"Invalid Knox host address: {host!r} (no host name)")
    if url.port is not None and not 0 < url.port < 65536:
        raise ConfigError(f"Invalid Knox host address: {host!r} (port out of range)")
    return host


class ClientAssembler:
    """Build :class:`~knoxauth.client.handle.ClientHandle` instances.

    Example::

        handle = ClientAssembler().from_config(resolve_config())
        with handle as client:
            client.get("/v0/keys/")
    """

    def assemble(
        self,
        host: str,
        resolver: AuthTokenResolver,
        transport: TransportConfig,
        key_folder: Union[str, Path] = DEFAULT_KEY_FOLDER,
        request_config: Optional[RequestConfig] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> ClientHandle:
        """Bind the pieces together.

        Raises:
            ConfigError: If *host* is not a usable address.
        """
        return ClientHandle(
            host=validate_host(host),
            auth_handler=resolver.header_value,
            key_folder=Path(key_folder),
            transport=transport,
            request_config=request_config,
            http_transport=http_transport,
        )

    def from_config(
        self,
        config: ClientConfig,
        environ: Optional[Mapping[str, str]] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> ClientHandle:
        """Run the full bootstrap described by *config*.

        Certificate problems degrade to a transport without mutual TLS and a
        machine identity taken from the environment; only an unusable host
        address raises.
        """
        transport = TransportBootstrapper().build_from_config(config)
        resolver = create_default_resolver(config, transport.identity, environ=environ)
        return self.assemble(
            config.host,
            resolver,
            transport,
            key_folder=config.key_folder,
            request_config=config.request,
            http_transport=http_transport,
        )
