"""Helpers for reading PEM-encoded X.509 certificates."""

from cryptography import x509
from cryptography.x509.oid import NameOID

from certsmith.errors import MalformedCertificate


def load_certificate(certificate_pem):
    """Decode a PEM certificate.

    Raises:
        MalformedCertificate: If the bytes are missing or not a PEM X.509 certificate.
    """
    if not certificate_pem:
        raise MalformedCertificate("certificate data is empty")
    if isinstance(certificate_pem, str):
        certificate_pem = certificate_pem.encode()

    try:
        return x509.load_pem_x509_certificate(certificate_pem)
    except (ValueError, TypeError) as e:
        raise MalformedCertificate(f"failed to parse certificate: {e}") from e


def common_name(name):
    """First common name of an x509.Name, or an empty string."""
    attributes = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attributes:
        return ""
    value = attributes[0].value
    return value.decode() if isinstance(value, bytes) else value
