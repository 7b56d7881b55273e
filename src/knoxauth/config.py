"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for knoxauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.knoxauth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **User config** -- a single :class:`~knoxauth.models.ClientConfig` JSON
  file. Managed via :func:`load_user_config` and :func:`save_user_config`.
* **Project config** -- an optional ``./knoxauth.json`` that a repository
  can use for non-security settings (``key_folder``, ``request``).  Keys
  that decide where credentials go or how the server is trusted are
  ignored there.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  ``KNOXAUTH_*`` environment variables, project config, and user config
  into the effective :class:`~knoxauth.models.ClientConfig`.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from knoxauth.exceptions import ConfigError
from knoxauth.models import ClientConfig

logger = logging.getLogger(__name__)

_APP_NAME = "knoxauth"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "knoxauth.json"

ENV_PREFIX = "KNOXAUTH_"

# Environment variable suffix -> ClientConfig field.
_ENV_FIELDS: dict[str, str] = {
    "HOST": "host",
    "SERVER_NAME": "server_name",
    "KEY_FOLDER": "key_folder",
    "CA_BUNDLE": "ca_bundle",
    "CERT_FILE": "cert_file",
    "KEY_FILE": "key_file",
    "USER_TOKEN_FILE": "user_token_file",
}

_TRUE_VALUES = ("1", "true", "yes", "on")

# Keys a project file may set.  A checked-out repository must not be able to
# redirect the host, the trust settings or the credential sources.
_PROJECT_KEYS = ("key_folder", "request")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/knoxauth/`` (default ``~/.config/knoxauth/``).
    On macOS/Windows: ``~/.knoxauth/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/knoxauth/`` (default ``~/.local/share/knoxauth/``).
    On macOS/Windows: ``~/.knoxauth/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def _read_json_object(path: Path, label: str) -> Optional[dict[str, Any]]:
    """Return the JSON object stored at *path*, or ``None`` when absent."""
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError, OSError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


# --- User config ---


def user_config_path() -> Path:
    """Path to the user config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_user_config() -> ClientConfig:
    """Load the user configuration from the config directory.

    Returns:
        The stored :class:`~knoxauth.models.ClientConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but is not valid JSON or fails
            validation.
    """
    path = user_config_path()
    data = _read_json_object(path, "user config")
    if data is None:
        return ClientConfig()
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid user config at {path}: {exc}") from exc


def save_user_config(config: ClientConfig) -> None:
    """Persist the user configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(user_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local overrides from ``./knoxauth.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a valid JSON object.
    """
    return _read_json_object(Path.cwd() / _PROJECT_CONFIG_FILENAME, "project config")


# --- Environment ---


def _env_overrides() -> dict[str, Any]:
    """Collect ``KNOXAUTH_*`` overrides from the environment."""
    overrides: dict[str, Any] = {}
    for suffix, field in _ENV_FIELDS.items():
        value = os.environ.get(ENV_PREFIX + suffix)
        if value:
            overrides[field] = value
    insecure = os.environ.get(ENV_PREFIX + "INSECURE_SKIP_VERIFY")
    if insecure:
        overrides["verify_server"] = insecure.strip().lower() not in _TRUE_VALUES
    return overrides


# --- Precedence resolution ---


def resolve_config(
    cli_host: Optional[str] = None,
    cli_cert_file: Optional[str] = None,
    cli_key_file: Optional[str] = None,
    cli_insecure: bool = False,
) -> ClientConfig:
    """Resolve the effective client config with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_host``, ``cli_cert_file``, ``cli_key_file``,
           ``cli_insecure``)
        2. Environment variables (``KNOXAUTH_HOST``, ``KNOXAUTH_CERT_FILE``, ...)
        3. Project config (``./knoxauth.json``)
        4. User config (``~/.config/knoxauth/config.json``)
        5. Defaults

    Returns:
        The merged :class:`~knoxauth.models.ClientConfig`.

    Raises:
        ConfigError: If a config file is invalid or the merged values fail
            validation.
    """
    # 5 + 4. Defaults are filled in by the model.
    data = load_user_config().model_dump(mode="json")

    # 3. Project-local config
    project = load_project_config()
    if project is not None:
        for key, value in project.items():
            if key not in _PROJECT_KEYS:
                logger.warning(
                    "Ignoring %r in project config; set it in the user config or environment",
                    key,
                )
            elif key == "request" and isinstance(value, dict):
                data["request"].update(value)
            else:
                data[key] = value

    # 2. Environment variables
    data.update(_env_overrides())

    # 1. CLI flags
    if cli_host is not None:
        data["host"] = cli_host
    if cli_cert_file is not None:
        data["cert_file"] = cli_cert_file
    if cli_key_file is not None:
        data["key_file"] = cli_key_file
    if cli_insecure:
        data["verify_server"] = False

    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
