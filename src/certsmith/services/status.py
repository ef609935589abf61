"""Status reporting for Certificates."""

import logging

from certsmith.errors import CredentialUnreadable, MalformedCertificate
from certsmith.models.certificate import (
    CERTIFICATE_ISSUED_MESSAGE,
    RECONCILE_COMPLETED_MESSAGE,
    ConditionReason,
    ConditionType,
)
from certsmith.services.pem import common_name, load_certificate

logger = logging.getLogger(__name__)


class StatusReporter:
    """Writes the issued certificate's details into the Certificate status."""

    def __init__(self, store):
        self.store = store

    def report(self, certificate, credential):
        """Fill status from ``credential`` and persist it.

        The write is skipped when the status did not change.

        Returns:
            bool: True if the status was written.

        Raises:
            CredentialUnreadable: If the stored certificate cannot be decoded.
        """
        try:
            x509_cert = load_certificate(credential.certificate_pem)
        except MalformedCertificate as e:
            raise CredentialUnreadable(
                f"cannot read certificate for {certificate.identity}: {e}"
            ) from e

        before = certificate.status.to_dict()

        status = certificate.status
        status.serialNumber = str(x509_cert.serial_number)
        status.issuer = common_name(x509_cert.issuer)
        status.notBefore = x509_cert.not_valid_before_utc
        status.notAfter = x509_cert.not_valid_after_utc

        certificate.set_condition(
            ConditionType.ISSUED, True, ConditionReason.SUCCESS, CERTIFICATE_ISSUED_MESSAGE
        )
        certificate.set_condition(
            ConditionType.RECONCILE_SUCCESS,
            True,
            ConditionReason.RECONCILE_COMPLETED,
            RECONCILE_COMPLETED_MESSAGE,
        )
        if status.get_condition(ConditionType.RECONCILE_ERROR.value) is not None:
            certificate.set_condition(
                ConditionType.RECONCILE_ERROR,
                False,
                ConditionReason.RECONCILE_COMPLETED,
                RECONCILE_COMPLETED_MESSAGE,
            )

        if status.to_dict() == before:
            logger.debug(f"Status of certificate {certificate.identity} is up to date")
            return False

        self.store.update_status(certificate)
        logger.info(
            f"Updated status of certificate {certificate.identity} "
            f"(serial {status.serialNumber}, expires {status.notAfter})"
        )
        return True
