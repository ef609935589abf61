import logging
import os

import kopf

from certsmith.config import get_settings, should_generate_crd_files, should_manage_crds
from certsmith.crd.generator import CRDManager
from certsmith.services.k8s import load_kube_config

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Importing registers the kopf handlers
from certsmith import handlers  # noqa: E402,F401


def install_crds():
    """Apply the Certificate CRD, writing the YAML files too when asked to."""
    manager = CRDManager()
    if should_generate_crd_files():
        manager.write_files(force=True)

    count = manager.apply()
    logger.info(f"Applied {count} CRDs to the cluster")


def configure(settings, operator_settings):
    """Copy operator settings onto kopf's settings."""
    # Progress lives in annotations so kopf never writes into .status
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    settings.batching.worker_limit = operator_settings.worker_limit
    settings.posting.enabled = operator_settings.posting_enabled
    settings.watching.server_timeout = operator_settings.server_timeout
    settings.networking.request_timeout = operator_settings.request_timeout


@kopf.on.startup()
def startup_fn(settings: kopf.OperatorSettings, **kwargs):
    logger.info("certsmith operator is starting up...")
    operator_settings = get_settings()

    try:
        load_kube_config()
    except Exception as e:
        logger.warning(f"Could not load Kubernetes config: {e}")

    if should_manage_crds():
        try:
            install_crds()
        except Exception as e:
            logger.error(f"Failed to apply CRDs to cluster: {e}")

    configure(settings, operator_settings)

    logger.info(
        f"Renewal threshold {operator_settings.renewal_threshold}, "
        f"key size {operator_settings.key_size}, "
        f"resync every {operator_settings.resync_interval}s, "
        f"{settings.batching.worker_limit} workers"
    )
    logger.info("certsmith operator startup complete")


@kopf.on.cleanup()
def cleanup_fn(**kwargs):
    logger.info("certsmith operator is shutting down...")


def main():
    try:
        kopf.run(clusterwide=True)
    except KeyboardInterrupt:
        logger.info("Operator stopped by user")
    except Exception as e:
        logger.error(f"Operator failed: {e}")
        raise


if __name__ == "__main__":
    main()
