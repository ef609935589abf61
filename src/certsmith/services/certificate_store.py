"""Access to Certificate custom objects through the Kubernetes API."""

import logging

import kubernetes
from pydantic import ValidationError

from certsmith.config import API_GROUP, API_VERSION, CERTIFICATE_PLURAL
from certsmith.errors import InvalidResource
from certsmith.models.certificate import Certificate
from certsmith.services.k8s import call_api

logger = logging.getLogger(__name__)


class CertificateStore:
    """Reads Certificates and persists finalizers and status."""

    def __init__(self, api=None, request_timeout=None):
        self.api = api or kubernetes.client.CustomObjectsApi()
        self.request_timeout = request_timeout

    def get(self, namespace, name):
        """Fetch a Certificate.

        Raises:
            NotFound: If the object does not exist.
            InvalidResource: If the object does not match the CRD model.
        """
        body = call_api(
            f"reading certificate {namespace}/{name}",
            self.api.get_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=CERTIFICATE_PLURAL,
            name=name,
            request_timeout=self.request_timeout,
        )
        try:
            return Certificate.from_body(body)
        except ValidationError as e:
            raise InvalidResource(f"certificate {namespace}/{name} is invalid: {e}") from e

    def update(self, certificate):
        """Persist the metadata finalizers of ``certificate``.

        The patch carries the observed resourceVersion so a concurrent write
        fails instead of being overwritten.
        """
        metadata = {"finalizers": list(certificate.metadata.finalizers)}
        if certificate.metadata.resourceVersion:
            metadata["resourceVersion"] = certificate.metadata.resourceVersion

        body = call_api(
            f"updating certificate {certificate.identity}",
            self.api.patch_namespaced_custom_object,
            group=API_GROUP,
            version=API_VERSION,
            namespace=certificate.namespace,
            plural=CERTIFICATE_PLURAL,
            name=certificate.name,
            body={"metadata": metadata},
            request_timeout=self.request_timeout,
        )
        self._refresh_version(certificate, body)

    def update_status(self, certificate):
        """Persist ``certificate.status`` through the status subresource."""
        body = call_api(
            f"updating status of certificate {certificate.identity}",
            self.api.patch_namespaced_custom_object_status,
            group=API_GROUP,
            version=API_VERSION,
            namespace=certificate.namespace,
            plural=CERTIFICATE_PLURAL,
            name=certificate.name,
            body={"status": certificate.status.to_dict()},
            request_timeout=self.request_timeout,
        )
        self._refresh_version(certificate, body)

    @staticmethod
    def _refresh_version(certificate, body):
        if isinstance(body, dict):
            version = (body.get("metadata") or {}).get("resourceVersion")
            if version:
                certificate.metadata.resourceVersion = version
