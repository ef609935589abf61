"""Self-signed certificate generation."""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID
from pydantic import BaseModel

from certsmith.config import OperatorSettings
from certsmith.errors import (
    InvalidDuration,
    KeyGenerationFailed,
    SigningFailed,
    TemplateBuildFailed,
)
from certsmith.models.credential import Credential
from certsmith.services.duration import parse_duration

logger = logging.getLogger(__name__)

PUBLIC_EXPONENT = 65537
SERIAL_NUMBER_BITS = 128


class IssuedCertificate(BaseModel):
    """PEM-encoded certificate and the private key it was signed with."""

    certificate_pem: bytes
    private_key_pem: bytes

    def to_credential(self):
        return Credential(
            certificate_pem=self.certificate_pem,
            private_key_pem=self.private_key_pem,
        )


class CertificateFactory:
    """Builds self-signed server certificates for a Certificate spec."""

    def __init__(self, settings=None, clock=None):
        self.settings = settings or OperatorSettings()
        self._clock = clock or (lambda: datetime.now(timezone.utc).replace(microsecond=0))

    def issue(self, spec):
        """Generate a key pair and a self-signed certificate for ``spec``.

        Args:
            spec: CertificateSpec with ``dnsName`` and ``validity``

        Returns:
            IssuedCertificate with PEM certificate and PKCS#1 PEM private key

        Raises:
            KeyGenerationFailed, TemplateBuildFailed, SigningFailed
        """
        private_key = self._generate_key()
        builder = self._build_template(spec, private_key.public_key())

        try:
            certificate = builder.sign(private_key, hashes.SHA256())
        except (ValueError, TypeError) as e:
            raise SigningFailed(f"failed to sign certificate for {spec.dnsName}: {e}") from e

        logger.info(
            f"Issued self-signed certificate for {spec.dnsName} "
            f"(serial {certificate.serial_number}, expires {certificate.not_valid_after_utc})"
        )

        return IssuedCertificate(
            certificate_pem=certificate.public_bytes(serialization.Encoding.PEM),
            private_key_pem=private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.TraditionalOpenSSL,
                encryption_algorithm=serialization.NoEncryption(),
            ),
        )

    def _generate_key(self):
        try:
            return rsa.generate_private_key(
                public_exponent=PUBLIC_EXPONENT, key_size=self.settings.key_size
            )
        except (ValueError, TypeError) as e:
            raise KeyGenerationFailed(f"failed to generate private key: {e}") from e

    def _build_template(self, spec, public_key):
        try:
            validity = parse_duration(spec.validity)
        except InvalidDuration as e:
            raise TemplateBuildFailed(f"failed to parse validity duration: {e}") from e

        if validity <= timedelta(0):
            raise TemplateBuildFailed(f"validity must be positive, got {spec.validity!r}")
        if not spec.dnsName:
            raise TemplateBuildFailed("dnsName must not be empty")

        not_before = self._clock()

        try:
            name = x509.Name(
                [
                    x509.NameAttribute(NameOID.ORGANIZATION_NAME, self.settings.organization),
                    x509.NameAttribute(NameOID.COMMON_NAME, spec.dnsName),
                ]
            )
            return (
                x509.CertificateBuilder()
                .subject_name(name)
                .issuer_name(name)
                .public_key(public_key)
                .serial_number(random_serial_number())
                .not_valid_before(not_before)
                .not_valid_after(not_before + validity)
                .add_extension(
                    x509.SubjectAlternativeName([x509.DNSName(spec.dnsName)]),
                    critical=False,
                )
                .add_extension(
                    x509.KeyUsage(
                        digital_signature=True,
                        content_commitment=False,
                        key_encipherment=True,
                        data_encipherment=False,
                        key_agreement=False,
                        key_cert_sign=False,
                        crl_sign=False,
                        encipher_only=False,
                        decipher_only=False,
                    ),
                    critical=True,
                )
                .add_extension(
                    x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]),
                    critical=False,
                )
                .add_extension(
                    x509.BasicConstraints(ca=False, path_length=None), critical=True
                )
            )
        except (ValueError, TypeError, OverflowError) as e:
            raise TemplateBuildFailed(f"failed to build certificate template: {e}") from e


def random_serial_number():
    """Positive random serial number below 2**128."""
    # x509 serials must be positive.
    return secrets.randbelow((1 << SERIAL_NUMBER_BITS) - 1) + 1
