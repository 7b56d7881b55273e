"""Tests for certificate identity extraction."""

from __future__ import annotations

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from knoxauth.tls.extractor import CertificateIdentityExtractor, Extraction, IdentitySource


def _der(cert_pem: bytes) -> bytes:
    return x509.load_pem_x509_certificate(cert_pem).public_bytes(serialization.Encoding.DER)


class TestExtraction:
    def test_enriched_for_certificate_sources(self) -> None:
        assert Extraction("a", IdentitySource.COMMON_NAME).enriched is True
        assert Extraction("a", IdentitySource.DNS_NAME).enriched is True

    def test_fallback_is_not_enriched(self) -> None:
        assert Extraction("a", IdentitySource.FALLBACK).enriched is False


class TestCertificateIdentityExtractor:
    def test_common_name_preferred(self, cert_factory) -> None:
        cert_pem, _ = cert_factory(common_name="svcA", dns_names=["a.example.com"])
        result = CertificateIdentityExtractor().extract(_der(cert_pem), "fallback")
        assert result == Extraction("svcA", IdentitySource.COMMON_NAME)

    def test_first_dns_name_without_common_name(self, cert_factory) -> None:
        cert_pem, _ = cert_factory(dns_names=["a.example.com", "b.example.com"])
        result = CertificateIdentityExtractor().extract(_der(cert_pem), "fallback")
        assert result.value == "a.example.com"
        assert result.source is IdentitySource.DNS_NAME

    def test_fallback_without_common_name_or_san(self, cert_factory) -> None:
        cert_pem, _ = cert_factory()
        result = CertificateIdentityExtractor().extract(_der(cert_pem), "raw-env")
        assert result.value == "raw-env"
        assert result.source is IdentitySource.FALLBACK
        assert not result.enriched

    def test_non_dns_san_entries_are_ignored(self, cert_factory) -> None:
        cert_pem, _ = cert_factory(
            extra_names=[x509.UniformResourceIdentifier("spiffe://example.com/service")]
        )
        result = CertificateIdentityExtractor().extract(_der(cert_pem), "raw-env")
        assert result == Extraction("raw-env", IdentitySource.FALLBACK)

    def test_dns_name_after_uri_entry(self, cert_factory) -> None:
        cert_pem, _ = cert_factory(
            dns_names=["example.com", "www.example.com"],
            extra_names=[x509.UniformResourceIdentifier("spiffe://example.com/service")],
        )
        result = CertificateIdentityExtractor().extract(_der(cert_pem), "raw-env")
        assert result.value == "example.com"

    def test_garbage_returns_fallback(self) -> None:
        result = CertificateIdentityExtractor().extract(b"not a certificate", "raw-env")
        assert result == Extraction("raw-env", IdentitySource.FALLBACK)

    def test_empty_bytes_return_fallback(self) -> None:
        result = CertificateIdentityExtractor().extract(b"", "")
        assert result.value == ""
        assert result.source is IdentitySource.FALLBACK

    def test_pem_instead_of_der_returns_fallback(self, cert_factory) -> None:
        cert_pem, _ = cert_factory(common_name="svcA")
        result = CertificateIdentityExtractor().extract(cert_pem, "raw-env")
        assert result.value == "raw-env"
