"""Client assembly for knoxauth.

:class:`ClientAssembler` binds the identity resolver, the TLS transport
config and the server address into a :class:`ClientHandle`, which the
command layer either inspects or uses to send requests over :mod:`httpx`.

Example::

    from knoxauth.client import ClientAssembler
    from knoxauth.config import resolve_config

    with ClientAssembler().from_config(resolve_config()) as client:
        resp = client.get("/v0/keys/")
"""

from knoxauth.client.assembler import ClientAssembler, validate_host
from knoxauth.client.handle import ClientHandle

__all__ = ["ClientAssembler", "ClientHandle", "validate_host"]
