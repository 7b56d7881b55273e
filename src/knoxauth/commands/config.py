"""Config commands -- view and modify the user configuration.

Provides the ``knoxauth config`` sub-command group for reading, updating
and resetting the user's :class:`~knoxauth.models.ClientConfig` file.
``show --effective`` prints the merged result of every configuration
layer instead of the file alone.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from knoxauth.exceptions import ConfigError
from knoxauth.output import error, format_response, info, success, warning

config_app = typer.Typer(no_args_is_help=True)

# Fields that may be cleared back to "unset" with `config set KEY ""`.
_NULLABLE = ("ca_bundle", "cert_file", "key_file")


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    effective: bool = typer.Option(
        False, "--effective", help="Show the merged config from all sources."
    ),
) -> None:
    """Show the stored (or effective) configuration.

    Example::

        knoxauth config show
        knoxauth --insecure config show --effective --json
    """
    from knoxauth.commands import load_config
    from knoxauth.config import load_user_config, user_config_path

    if effective:
        config = load_config(ctx)
    else:
        info(f"Config file: {user_config_path()}")
        try:
            config = load_user_config()
        except ConfigError as exc:
            error(str(exc))
            raise typer.Exit(code=1) from None
    format_response(config.model_dump(mode="json"))


def _coerce(current: Any, key: str, value: str) -> Any:  # noqa: ANN401
    """Coerce *value* to the type of the field's current value."""
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    if key.split(".")[-1] in _NULLABLE and value == "":
        return None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'request.timeout')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value in the user config file.

    The value is coerced to the existing field's type and the whole config
    is validated before it is saved.

    Example::

        knoxauth config set host knox.internal:9000
        knoxauth config set cert_file /etc/knox/client.crt
        knoxauth config set request.max_retries 5
    """
    from knoxauth.config import load_user_config, save_user_config
    from knoxauth.models import ClientConfig

    try:
        data = load_user_config().model_dump(mode="json")
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=1) from None

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    coerced = _coerce(target[final_key], key, value)
    target[final_key] = coerced

    try:
        new_config = ClientConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_user_config(new_config)
    success(f"Set {key} = {coerced}")
    if key == "verify_server" and coerced is False:
        warning("Server certificate verification is now disabled for every command.")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the user configuration to defaults."""
    from knoxauth.config import save_user_config
    from knoxauth.models import ClientConfig

    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_user_config(ClientConfig())
    success("Configuration reset to defaults.")
