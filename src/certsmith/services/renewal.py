"""Decide whether an existing certificate has to be reissued."""

import logging
from datetime import datetime, timedelta, timezone

from certsmith.services.pem import common_name, load_certificate

logger = logging.getLogger(__name__)

DEFAULT_RENEWAL_THRESHOLD = timedelta(days=30)


class RenewalPolicy:
    """Renewal decision for stored certificates.

    The threshold is operator-wide; a Certificate cannot override it.
    """

    def __init__(self, threshold=DEFAULT_RENEWAL_THRESHOLD, clock=None):
        self.threshold = threshold
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def needs_renewal(self, certificate_pem, spec, now=None):
        """Check a stored certificate against the desired spec.

        Args:
            certificate_pem: PEM bytes currently stored in the credential
            spec: CertificateSpec describing the desired certificate
            now: Override for the current time

        Returns:
            bool: True when the common name drifted from ``spec.dnsName`` or
            the remaining validity is below the threshold. Remaining validity
            equal to the threshold does not need renewal.

        Raises:
            MalformedCertificate: If the certificate cannot be decoded.
        """
        certificate = load_certificate(certificate_pem)

        current_name = common_name(certificate.subject)
        if current_name != spec.dnsName:
            logger.info(
                f"Certificate common name {current_name!r} differs from {spec.dnsName!r}"
            )
            return True

        now = now or self._clock()
        remaining = certificate.not_valid_after_utc - now
        if remaining < self.threshold:
            logger.info(
                f"Certificate for {spec.dnsName} expires in {remaining}, "
                f"below renewal threshold {self.threshold}"
            )
            return True

        return False
