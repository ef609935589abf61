"""Kopf handlers that drive Certificate reconciliation."""

import logging

import kopf

from certsmith.config import API_GROUP, API_VERSION, CERTIFICATE_PLURAL, get_settings
from certsmith.errors import ReconcileFailed
from certsmith.services.certificate_store import CertificateStore
from certsmith.services.reconciler import Reconciler, ReconcileOutcome
from certsmith.services.secret_store import SecretStore

logger = logging.getLogger(__name__)

_reconciler = None


def get_reconciler():
    """Reconciler bound to the live cluster, created on first use."""
    global _reconciler
    if _reconciler is None:
        settings = get_settings()
        _reconciler = Reconciler(
            CertificateStore(request_timeout=settings.request_timeout),
            SecretStore(request_timeout=settings.request_timeout),
            settings=settings,
        )
    return _reconciler


def set_reconciler(reconciler):
    """Replace the process-wide reconciler (None resets it)."""
    global _reconciler
    _reconciler = reconciler


def run_reconcile(body, name, namespace):
    """Reconcile one Certificate and post an event describing the result."""
    try:
        outcome = get_reconciler().reconcile(namespace, name)
    except ReconcileFailed as e:
        kopf.exception(body, reason="ReconcileFailed", message=str(e))
        raise

    if outcome == ReconcileOutcome.ISSUED:
        kopf.info(body, reason="CertificateIssued", message=f"Certificate {name} issued.")
    elif outcome == ReconcileOutcome.RENEWED:
        kopf.info(body, reason="CertificateRenewed", message=f"Certificate {name} renewed.")
    return outcome


@kopf.on.create(API_GROUP, API_VERSION, CERTIFICATE_PLURAL)
@kopf.on.update(API_GROUP, API_VERSION, CERTIFICATE_PLURAL)
@kopf.on.resume(API_GROUP, API_VERSION, CERTIFICATE_PLURAL)
def certificate_create_update(body, name, namespace, **kwargs):
    """Handle Certificate create, update, and resume (on operator restart)."""
    run_reconcile(body, name, namespace)


@kopf.on.delete(API_GROUP, API_VERSION, CERTIFICATE_PLURAL, optional=True)
def certificate_delete(body, name, namespace, **kwargs):
    """Release the certsmith finalizer of a Certificate being deleted."""
    run_reconcile(body, name, namespace)


@kopf.timer(
    API_GROUP,
    API_VERSION,
    CERTIFICATE_PLURAL,
    interval=get_settings().resync_interval,
    initial_delay=get_settings().resync_interval,
)
def certificate_resync(body, name, namespace, **kwargs):
    """Periodically re-check expiry so certificates renew without spec changes."""
    run_reconcile(body, name, namespace)
