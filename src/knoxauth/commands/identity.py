"""``knoxauth whoami`` -- show which identity would be presented to Knox.

Runs the same bootstrap as a real request (config, client certificate,
resolver) and prints the selected mechanism.  Credentials are masked; a
machine identity taken from the client certificate is shown in full
because it is not a secret.

Example::

    knoxauth whoami
    knoxauth whoami --explain --json
"""

from __future__ import annotations

from typing import Any

import typer

from knoxauth.auth import MachineEnvSource, create_default_resolver
from knoxauth.commands import load_config
from knoxauth.models import AuthToken
from knoxauth.output import format_response, mask_secret, print_table, suggest, warning
from knoxauth.tls import TransportBootstrapper


def _display_payload(token: AuthToken, machine: MachineEnvSource | None) -> tuple[str, str]:
    """Return ``(payload_for_display, identity_source)`` for *token*."""
    if machine is not None and token.source == machine.name:
        extraction = machine.extract_identity(machine.read())
        if extraction.enriched:
            return token.payload, extraction.source.value
        return mask_secret(token.payload), extraction.source.value
    return mask_secret(token.payload), "raw"


def whoami_command(
    ctx: typer.Context,
    explain: bool = typer.Option(
        False, "--explain", help="List every identity source and what it produced."
    ),
) -> None:
    """Show the identity mechanism selected for requests to Knox."""
    config = load_config(ctx)
    transport = TransportBootstrapper().build_from_config(config)
    resolver = create_default_resolver(config, transport.identity)
    machine = next(
        (s for s in resolver.sources if isinstance(s, MachineEnvSource)), None
    )

    if explain:
        rows: list[list[str]] = []
        for outcome in resolver.explain():
            if outcome.token is None:
                rows.append([outcome.name, "-", "-", "no"])
                continue
            shown, _ = _display_payload(outcome.token, machine)
            rows.append(
                [
                    outcome.name,
                    outcome.token.type.value,
                    shown,
                    "yes" if outcome.selected else "shadowed",
                ]
            )
        print_table(["source", "type", "payload", "selected"], rows, title="Identity sources")
        return

    token = resolver.resolve()
    if token is None:
        warning("No identity available; requests will be sent without an auth header.")
        suggest(
            f"Set {config.user_auth_env}, {config.machine_auth_env} or "
            f"{config.service_auth_env}, or run the login flow to create "
            f"{config.user_token_file}"
        )
        format_response({"authenticated": False})
        return

    shown, identity_source = _display_payload(token, machine)
    record: dict[str, Any] = {
        "authenticated": True,
        "source": token.source,
        "type": token.type.value,
        "identity_source": identity_source,
        "payload": shown,
        "mutual_tls": transport.has_client_certificate,
    }
    format_response(record)
