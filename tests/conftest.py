"""Shared test fixtures for knoxauth.

Provides an environment with no Knox credentials and no real home
directory, isolated XDG config directories, and a factory for self-signed
client certificates built with :mod:`cryptography`.
"""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from knoxauth.output import OutputFormat, OutputManager, reset_output, set_output

_AUTH_ENV_VARS = ("KNOX_USER_AUTH", "KNOX_MACHINE_AUTH", "KNOX_SERVICE_AUTH")
_CONFIG_ENV_VARS = (
    "KNOXAUTH_HOST",
    "KNOXAUTH_SERVER_NAME",
    "KNOXAUTH_KEY_FOLDER",
    "KNOXAUTH_CA_BUNDLE",
    "KNOXAUTH_CERT_FILE",
    "KNOXAUTH_KEY_FILE",
    "KNOXAUTH_USER_TOKEN_FILE",
    "KNOXAUTH_INSECURE_SKIP_VERIFY",
)


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Drop the global OutputManager so stale stream references never leak."""
    yield
    reset_output()
    logger = logging.getLogger("knoxauth")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at an empty directory and clear every Knox variable.

    Returns:
        The fake home directory (where ``.knox_user_auth`` would live).
    """
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    for var in _AUTH_ENV_VARS + _CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    return home_dir


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to temporary XDG directories.

    Also changes the working directory to tmp_path so that no project
    ``knoxauth.json`` is picked up.
    """
    monkeypatch.setattr("knoxauth.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, plain output manager."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Certificates
# ---------------------------------------------------------------------------


CertFactory = Callable[..., tuple[bytes, bytes]]


def make_certificate(
    common_name: str = "",
    dns_names: Sequence[str] = (),
    key: Optional[ec.EllipticCurvePrivateKey] = None,
    extra_names: Sequence[x509.GeneralName] = (),
) -> tuple[bytes, bytes]:
    """Build a self-signed EC certificate and return ``(cert_pem, key_pem)``.

    An empty *common_name* produces a subject without a CN attribute.
    """
    key = key or ec.generate_private_key(ec.SECP256R1())
    attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Knox Test")]
    if common_name:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    name = x509.Name(attributes)
    now = datetime.datetime.now(datetime.timezone.utc)

    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
    )
    general_names: list[x509.GeneralName] = [x509.DNSName(n) for n in dns_names]
    general_names.extend(extra_names)
    if general_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName(general_names), critical=False
        )
    cert = builder.sign(key, hashes.SHA256())

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )
    return cert_pem, key_pem


@pytest.fixture
def cert_factory() -> CertFactory:
    """Return :func:`make_certificate`."""
    return make_certificate


@pytest.fixture
def cert_files(tmp_path: Path) -> Callable[..., tuple[Path, Path]]:
    """Write a generated certificate and key to disk and return their paths."""

    def _write(cert_pem: bytes, key_pem: bytes) -> tuple[Path, Path]:
        cert_path = tmp_path / "client.crt"
        key_path = tmp_path / "client.key"
        cert_path.write_bytes(cert_pem)
        key_path.write_bytes(key_pem)
        return cert_path, key_path

    return _write
