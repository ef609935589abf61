"""Finalizer handling for Certificates."""

import logging

logger = logging.getLogger(__name__)


class FinalizerGate:
    """Decides whether a pass continues or stops because the object is going away.

    The finalizer is added on first sight of an active Certificate and removed
    once cleanup ran on a terminating one.
    """

    def __init__(self, store, finalizer, cleanup=None):
        self.store = store
        self.finalizer = finalizer
        self.cleanup = cleanup

    def handle(self, certificate):
        """Run the finalizer transition for ``certificate``.

        Returns:
            bool: True when the Certificate is terminating and the pass must
            stop, False when the normal issue/renew path should continue.
        """
        finalizers = certificate.metadata.finalizers

        if not certificate.metadata.terminating:
            if self.finalizer not in finalizers:
                logger.info(f"Adding finalizer to certificate {certificate.identity}")
                finalizers.append(self.finalizer)
                try:
                    self.store.update(certificate)
                except Exception:
                    finalizers.remove(self.finalizer)
                    raise
            return False

        logger.info(f"Certificate {certificate.identity} is being deleted")
        if self.finalizer in finalizers:
            if self.cleanup is not None:
                self.cleanup(certificate)
            logger.info(f"Removing finalizer from certificate {certificate.identity}")
            finalizers.remove(self.finalizer)
            self.store.update(certificate)
        return True


def make_credential_cleanup(secrets):
    """Cleanup that deletes credentials the store cannot cascade-delete.

    A credential in the Certificate's namespace is owned by the Certificate and
    removed by garbage collection; one in another namespace is deleted here.
    """

    def cleanup(certificate):
        ref = certificate.credential_ref
        if ref.namespace == certificate.namespace:
            logger.debug(f"Secret {ref} is removed with its owner {certificate.identity}")
            return
        secrets.delete(ref)

    return cleanup
