"""Best-effort extraction of a subject identity from an X.509 certificate.

Used by machine authentication to turn the client certificate into the
identity payload.  Parsing is enrichment only: any failure returns the
caller's fallback value, and the returned :class:`Extraction` says which
path was taken.
"""

from __future__ import annotations

import enum
import logging
from typing import NamedTuple

from cryptography import x509
from cryptography.x509.oid import NameOID

logger = logging.getLogger(__name__)


class IdentitySource(str, enum.Enum):
    """Where an extracted identity came from, strongest first."""

    COMMON_NAME = "common_name"
    DNS_NAME = "dns_name"
    FALLBACK = "fallback"


class Extraction(NamedTuple):
    """Outcome of :meth:`CertificateIdentityExtractor.extract`."""

    value: str
    source: IdentitySource

    @property
    def enriched(self) -> bool:
        """True when the value came from the certificate itself."""
        return self.source is not IdentitySource.FALLBACK


class CertificateIdentityExtractor:
    """Pick the best identity a certificate offers.

    Preference order: the subject common name if non-empty, then the first
    DNS subject alternative name, then the supplied fallback.  When the
    subject carries several common names the last one wins.

    Example::

        extraction = CertificateIdentityExtractor().extract(der, "raw-env-value")
        if extraction.enriched:
            ...
    """

    def extract(self, certificate_der: bytes, fallback: str) -> Extraction:
        try:
            cert = x509.load_der_x509_certificate(certificate_der)
        except ValueError as exc:
            logger.debug("Certificate did not parse, using fallback identity: %s", exc)
            return Extraction(fallback, IdentitySource.FALLBACK)

        common_name = self._common_name(cert)
        if common_name:
            return Extraction(common_name, IdentitySource.COMMON_NAME)

        dns_names = self._dns_names(cert)
        if dns_names:
            return Extraction(dns_names[0], IdentitySource.DNS_NAME)

        return Extraction(fallback, IdentitySource.FALLBACK)

    @staticmethod
    def _common_name(cert: x509.Certificate) -> str:
        try:
            attributes = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        except ValueError as exc:
            logger.debug("Certificate subject did not parse: %s", exc)
            return ""
        if not attributes:
            return ""
        value = attributes[-1].value
        return value if isinstance(value, str) else value.decode("utf-8", "replace")

    @staticmethod
    def _dns_names(cert: x509.Certificate) -> list[str]:
        try:
            san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        except x509.ExtensionNotFound:
            return []
        except (ValueError, x509.DuplicateExtension) as exc:
            logger.debug("Certificate extensions did not parse: %s", exc)
            return []
        return san.value.get_values_for_type(x509.DNSName)
