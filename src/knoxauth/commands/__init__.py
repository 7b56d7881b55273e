"""Built-in CLI sub-commands for knoxauth.

* :mod:`~knoxauth.commands.identity` -- ``whoami``: which identity is presented.
* :mod:`~knoxauth.commands.transport` -- ``transport``: TLS settings in effect.
* :mod:`~knoxauth.commands.request` -- ``request``: one call through the
  assembled client.
* :mod:`~knoxauth.commands.config` -- view and modify the user config.

Commands read the bootstrap options stored on ``ctx.obj`` by
:func:`~knoxauth.app.main_callback` through :func:`load_config`.
"""

from __future__ import annotations

import typer

from knoxauth.exceptions import KnoxAuthError
from knoxauth.models import ClientConfig
from knoxauth.output import error


def load_config(ctx: typer.Context) -> ClientConfig:
    """Resolve the effective :class:`~knoxauth.models.ClientConfig` for a command.

    Raises:
        typer.Exit: With the error's exit code if the config is invalid.
    """
    from knoxauth.config import resolve_config

    obj = ctx.obj or {}
    try:
        return resolve_config(
            cli_host=obj.get("host"),
            cli_cert_file=obj.get("cert_file"),
            cli_key_file=obj.get("key_file"),
            cli_insecure=obj.get("insecure", False),
        )
    except KnoxAuthError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
