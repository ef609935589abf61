"""Kubernetes client helpers shared by the store adapters."""

import logging

import kubernetes
from kubernetes.client.exceptions import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import HTTPError

from certsmith.errors import AlreadyExists, NotFound, StoreError

logger = logging.getLogger(__name__)


def load_kube_config():
    """Load in-cluster config, falling back to the local kubeconfig."""
    try:
        kubernetes.config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except ConfigException:
        kubernetes.config.load_kube_config()
        logger.info("Loaded local Kubernetes config")


def call_api(description, func, *args, request_timeout=None, **kwargs):
    """Invoke a Kubernetes API method and translate its failures.

    404 becomes NotFound, 409 becomes AlreadyExists and every other API or
    transport failure, including timeouts, becomes StoreError.
    """
    if request_timeout is not None:
        kwargs["_request_timeout"] = request_timeout

    try:
        return func(*args, **kwargs)
    except ApiException as e:
        if e.status == 404:
            raise NotFound(f"{description}: not found") from e
        if e.status == 409:
            raise AlreadyExists(f"{description}: {e.reason}") from e
        raise StoreError(f"{description} failed: {e.status} {e.reason}") from e
    except HTTPError as e:
        raise StoreError(f"{description} failed: {e}") from e
