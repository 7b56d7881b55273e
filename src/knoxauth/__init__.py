"""knoxauth -- identity resolution and mutual TLS bootstrap for Knox clients.

Given the process environment and local files, this package decides which
identity a Knox client presents (user token, machine certificate, service
token, or the cached login token), builds the ``<version><type><payload>``
auth header for it, and sets up the TLS transport that carries it.

Typical use::

    from knoxauth.client import ClientAssembler
    from knoxauth.config import resolve_config

    with ClientAssembler().from_config(resolve_config()) as client:
        client.get("/v0/keys/")

Modules:
    auth: token sources and the priority-ordered resolver.
    tls: client certificate material, certificate identity extraction,
        transport configuration.
    client: the assembler and the client handle.
    config: XDG-aware configuration and precedence resolution.
    models: Pydantic models shared across the package.
    exceptions: exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich.
    app: Typer CLI.
"""

__version__ = "0.1.0"
