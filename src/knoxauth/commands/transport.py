"""``knoxauth transport`` -- show the TLS settings used for Knox connections.

Prints the SNI server name, whether the server certificate is verified,
and the client certificate identity when mutual TLS is configured.
Disabled verification is reported as a warning on stderr every time.
"""

from __future__ import annotations

from typing import Any

import typer

from knoxauth.commands import load_config
from knoxauth.output import format_response, suggest, warning
from knoxauth.tls import CertificateIdentityExtractor, TransportBootstrapper


def transport_command(ctx: typer.Context) -> None:
    """Show the mutual TLS configuration in effect."""
    config = load_config(ctx)
    transport = TransportBootstrapper().build_from_config(config)

    record: dict[str, Any] = {
        "host": config.host,
        "server_name": transport.server_name,
        "verify_server": transport.verify_server,
        "ca_bundle": transport.ca_bundle or "system",
        "client_certificate": transport.has_client_certificate,
    }
    if transport.identity is not None:
        extraction = CertificateIdentityExtractor().extract(transport.identity.leaf, "")
        record["client_identity"] = extraction.value or None
        record["client_identity_source"] = extraction.source.value
        record["chain_length"] = len(transport.identity.certificate_chain)
    elif config.cert_file or config.key_file:
        suggest("Check that --cert and --key point to a matching PEM certificate and key")

    if not transport.verify_server:
        warning(
            "Server certificate verification is disabled. "
            "Any server can impersonate Knox on this connection."
        )
    format_response(record)
