"""TLS identity material, certificate identity extraction, and transport bootstrap.

- :class:`IdentityMaterial` / :func:`load_identity_material` -- the client
  certificate and key used for mutual TLS.
- :class:`CertificateIdentityExtractor` -- picks a subject identity out of
  a certificate for machine authentication.
- :class:`TransportBootstrapper` / :class:`TransportConfig` -- the immutable
  TLS settings shared by every request.
"""

from knoxauth.tls.extractor import CertificateIdentityExtractor, Extraction, IdentitySource
from knoxauth.tls.material import (
    IdentityMaterial,
    load_identity_material,
    load_identity_material_from_files,
)
from knoxauth.tls.transport import TransportBootstrapper, TransportConfig

__all__ = [
    "CertificateIdentityExtractor",
    "Extraction",
    "IdentityMaterial",
    "IdentitySource",
    "TransportBootstrapper",
    "TransportConfig",
    "load_identity_material",
    "load_identity_material_from_files",
]
