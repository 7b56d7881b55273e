"""``knoxauth request`` -- send one request through the assembled client.

Useful to check end to end that the server accepts the resolved identity
over the configured transport::

    knoxauth request GET /v0/keys/
    knoxauth request POST /v0/keys/ --form id=my_key --form data=c2VjcmV0
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import typer

from knoxauth.client import ClientAssembler
from knoxauth.commands import load_config
from knoxauth.exceptions import InvalidUsageError, KnoxAuthError
from knoxauth.output import error, format_response

_METHODS = ("GET", "POST", "PUT", "DELETE")


def _parse_pairs(pairs: list[str], option: str) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidUsageError(f"{option} expects KEY=VALUE, got: {pair}")
        parsed[key] = value
    return parsed


def _response_body(response: httpx.Response) -> Any:  # noqa: ANN401
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text


def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method: GET, POST, PUT or DELETE."),
    path: str = typer.Argument(help="Path on the Knox server, e.g. /v0/keys/."),
    param: Optional[list[str]] = typer.Option(
        None, "--param", "-P", help="Query parameter KEY=VALUE (repeatable)."
    ),
    form: Optional[list[str]] = typer.Option(
        None, "--form", "-F", help="Form field KEY=VALUE (repeatable)."
    ),
) -> None:
    """Send a request to Knox with the resolved identity."""
    method = method.upper()
    try:
        if method not in _METHODS:
            raise InvalidUsageError(
                f"Unsupported method {method}; use one of {', '.join(_METHODS)}"
            )
        params = _parse_pairs(param or [], "--param")
        data = _parse_pairs(form or [], "--form") or None
        config = load_config(ctx)
        handle = ClientAssembler().from_config(config)
        with handle as client:
            response = client.request(method, path, params=params or None, data=data)
    except KnoxAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_response(_response_body(response))
