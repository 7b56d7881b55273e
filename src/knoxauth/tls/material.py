"""Client certificate and private key used for mutual TLS.

:class:`IdentityMaterial` holds a parsed certificate chain (DER, leaf
first) and the matching private key.  The loaders here never raise for bad
input: a chain that does not parse, a key that does not parse, or a key that
does not belong to the leaf certificate all yield ``None``, and the caller
continues without a client certificate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityMaterial:
    """A matched certificate chain and private key.

    Attributes:
        certificate_chain: DER-encoded certificates, leaf first.
        private_key: The private key as given (unencrypted PEM).
    """

    certificate_chain: tuple[bytes, ...]
    private_key: bytes = field(repr=False)

    @property
    def leaf(self) -> bytes:
        """DER bytes of the certificate identifying this client."""
        return self.certificate_chain[0]

    def certificate_pem(self) -> bytes:
        """Return the whole chain re-encoded as concatenated PEM blocks."""
        return b"".join(
            x509.load_der_x509_certificate(der).public_bytes(serialization.Encoding.PEM)
            for der in self.certificate_chain
        )


def _public_key_der(key: object) -> bytes:
    return key.public_bytes(  # type: ignore[attr-defined]
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def load_identity_material(
    cert_pem: Union[str, bytes], key_pem: Union[str, bytes]
) -> Optional[IdentityMaterial]:
    """Parse a PEM certificate chain and private key into identity material.

    Args:
        cert_pem: One or more PEM ``CERTIFICATE`` blocks, leaf first.
        key_pem: The unencrypted PEM private key for the leaf certificate.

    Returns:
        The :class:`IdentityMaterial`, or ``None`` if either part fails to
        parse or the key does not match the leaf certificate.
    """
    if isinstance(cert_pem, str):
        cert_pem = cert_pem.encode("utf-8")
    if isinstance(key_pem, str):
        key_pem = key_pem.encode("utf-8")

    try:
        certs = x509.load_pem_x509_certificates(cert_pem)
    except ValueError as exc:
        logger.debug("Client certificate did not parse: %s", exc)
        return None

    try:
        key = serialization.load_pem_private_key(key_pem, password=None)
    except (ValueError, TypeError) as exc:
        logger.debug("Client private key did not parse: %s", exc)
        return None

    if _public_key_der(key.public_key()) != _public_key_der(certs[0].public_key()):
        logger.debug("Client private key does not match the leaf certificate")
        return None

    chain = tuple(c.public_bytes(serialization.Encoding.DER) for c in certs)
    return IdentityMaterial(certificate_chain=chain, private_key=key_pem)


def load_identity_material_from_files(
    cert_file: Optional[str], key_file: Optional[str]
) -> Optional[IdentityMaterial]:
    """Read PEM files and parse them with :func:`load_identity_material`.

    Returns ``None`` when either path is unset or unreadable.
    """
    if not cert_file or not key_file:
        return None
    try:
        cert_pem = Path(cert_file).expanduser().read_bytes()
        key_pem = Path(key_file).expanduser().read_bytes()
    except OSError as exc:
        logger.debug("Cannot read client certificate or key: %s", exc)
        return None
    return load_identity_material(cert_pem, key_pem)
