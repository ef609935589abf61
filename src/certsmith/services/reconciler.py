"""Reconciliation of Certificate objects against their TLS secrets."""

import logging
import threading
from contextlib import contextmanager
from enum import Enum

from certsmith.config import OperatorSettings
from certsmith.errors import (
    AlreadyExists,
    CertsmithError,
    MalformedCertificate,
    NotFound,
    ReconcileFailed,
)
from certsmith.models.certificate import ConditionReason, ConditionType
from certsmith.services.certificate_factory import CertificateFactory
from certsmith.services.finalizer import FinalizerGate, make_credential_cleanup
from certsmith.services.renewal import RenewalPolicy
from certsmith.services.status import StatusReporter

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    DELETED = "deleted"
    FINALIZED = "finalized"
    ISSUED = "issued"
    RENEWED = "renewed"
    UNCHANGED = "unchanged"


class KeyedLocks:
    """One lock per resource identity.

    An entry lives only while some caller holds or waits on its key, so
    the map does not grow with every identity ever seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


class Reconciler:
    """Converges a Certificate and its credential.

    One pass fetches the Certificate, runs the finalizer gate, issues or
    renews the credential as needed and reports status. Passes for the same
    identity never overlap.
    """

    def __init__(
        self,
        certificates,
        secrets,
        settings=None,
        factory=None,
        policy=None,
        reporter=None,
        gate=None,
    ):
        self.settings = settings or OperatorSettings()
        self.certificates = certificates
        self.secrets = secrets
        self.factory = factory or CertificateFactory(self.settings)
        self.policy = policy or RenewalPolicy(self.settings.renewal_threshold)
        self.reporter = reporter or StatusReporter(certificates)
        self.gate = gate or FinalizerGate(
            certificates, self.settings.finalizer, cleanup=make_credential_cleanup(secrets)
        )
        self._locks = KeyedLocks()

    def reconcile(self, namespace, name):
        """Run one reconcile pass for ``namespace/name``.

        Returns:
            ReconcileOutcome

        Raises:
            ReconcileFailed: If issuing or storing the credential failed.
            CertsmithError: If the Certificate could not be read or its
                finalizer could not be updated.
        """
        with self._locks.hold(f"{namespace}/{name}"):
            return self._reconcile(namespace, name)

    def _reconcile(self, namespace, name):
        logger.info(f"Reconciling certificate {namespace}/{name}")

        try:
            certificate = self.certificates.get(namespace, name)
        except NotFound:
            logger.info(f"Certificate {namespace}/{name} not found, assuming deleted")
            return ReconcileOutcome.DELETED

        if self.gate.handle(certificate):
            logger.info(f"Finalizer handling complete for {certificate.identity}")
            return ReconcileOutcome.FINALIZED

        try:
            outcome, credential = self._ensure_credential(certificate)
        except CertsmithError as e:
            logger.error(f"Failed to reconcile certificate {certificate.identity}: {e}")
            self._fail(certificate, e)
        except Exception as e:
            logger.exception(
                f"Unexpected error reconciling certificate {certificate.identity}: {e}"
            )
            self._fail(certificate, e)

        try:
            self.reporter.report(certificate, credential)
        except CertsmithError as e:
            logger.error(f"Failed to update status of certificate {certificate.identity}: {e}")

        logger.info(f"Certificate {certificate.identity} reconciled: {outcome.value}")
        return outcome

    def _ensure_credential(self, certificate):
        ref = certificate.credential_ref

        try:
            existing = self.secrets.get(ref)
        except NotFound:
            logger.info(f"Secret {ref} not found, issuing new certificate")
            credential = self.factory.issue(certificate.spec).to_credential()
            try:
                self.secrets.create(ref, credential, owner=certificate.owner_reference())
            except AlreadyExists:
                logger.warning(f"Secret {ref} appeared concurrently, updating it instead")
                self.secrets.update(ref, credential)
            return ReconcileOutcome.ISSUED, credential

        try:
            renew = self.policy.needs_renewal(existing.certificate_pem, certificate.spec)
        except MalformedCertificate as e:
            logger.warning(f"Secret {ref} holds an unreadable certificate, reissuing: {e}")
            renew = True

        if not renew:
            return ReconcileOutcome.UNCHANGED, existing

        logger.info(f"Renewing certificate stored in secret {ref}")
        credential = self.factory.issue(certificate.spec).to_credential()
        self.secrets.update(ref, credential)
        return ReconcileOutcome.RENEWED, credential

    def _fail(self, certificate, error):
        self._record_failure(certificate, error)
        raise ReconcileFailed(f"reconciling certificate {certificate.identity}", error) from error

    def _record_failure(self, certificate, error):
        certificate.set_condition(
            ConditionType.RECONCILE_ERROR, True, ConditionReason.RECONCILE_FAILED, str(error)
        )
        if certificate.status.get_condition(ConditionType.RECONCILE_SUCCESS.value) is not None:
            certificate.set_condition(
                ConditionType.RECONCILE_SUCCESS,
                False,
                ConditionReason.RECONCILE_FAILED,
                str(error),
            )
        try:
            self.certificates.update_status(certificate)
        except CertsmithError as e:
            logger.error(f"Failed to update status of certificate {certificate.identity}: {e}")
