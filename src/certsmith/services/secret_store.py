"""Credential store backed by Kubernetes TLS secrets."""

import base64
import logging

import kubernetes

from certsmith.errors import NotFound
from certsmith.models.credential import TLS_CERT_KEY, TLS_PRIVATE_KEY_KEY, Credential
from certsmith.services.k8s import call_api

logger = logging.getLogger(__name__)

STANDARD_LABELS = {
    "app.kubernetes.io/managed-by": "certsmith",
}


def _encode(value):
    return base64.b64encode(value).decode("ascii")


def _decode(value):
    if not value:
        return b""
    return base64.b64decode(value)


class SecretStore:
    """Reads and writes credentials as secrets, addressed by CredentialRef.

    Every call goes straight to the API server; nothing is cached.
    """

    def __init__(self, api=None, request_timeout=None):
        self.api = api or kubernetes.client.CoreV1Api()
        self.request_timeout = request_timeout

    def get(self, ref):
        """Fetch the credential stored at ``ref``.

        Raises:
            NotFound: If the secret does not exist.
            StoreError: On any other API failure.
        """
        secret = call_api(
            f"reading secret {ref}",
            self.api.read_namespaced_secret,
            name=ref.name,
            namespace=ref.namespace,
            request_timeout=self.request_timeout,
        )
        data = secret.data or {}
        return Credential(
            certificate_pem=_decode(data.get(TLS_CERT_KEY)),
            private_key_pem=_decode(data.get(TLS_PRIVATE_KEY_KEY)),
            kind=secret.type or "",
        )

    def create(self, ref, credential, owner=None):
        """Create a new TLS secret.

        Args:
            ref: CredentialRef of the secret
            credential: Credential to store
            owner: Optional OwnerReference for cascading deletion

        Raises:
            AlreadyExists: If a secret with that name already exists.
        """
        owner_references = None
        if owner is not None:
            owner_references = [
                kubernetes.client.V1OwnerReference(
                    api_version=owner.api_version,
                    kind=owner.kind,
                    name=owner.name,
                    uid=owner.uid,
                    controller=owner.controller,
                    block_owner_deletion=owner.block_owner_deletion,
                )
            ]

        body = kubernetes.client.V1Secret(
            metadata=kubernetes.client.V1ObjectMeta(
                name=ref.name,
                namespace=ref.namespace,
                labels=dict(STANDARD_LABELS),
                owner_references=owner_references,
            ),
            type=credential.kind,
            data=self._data(credential),
        )
        call_api(
            f"creating secret {ref}",
            self.api.create_namespaced_secret,
            namespace=ref.namespace,
            body=body,
            request_timeout=self.request_timeout,
        )
        logger.info(f"Created secret {ref}")

    def update(self, ref, credential):
        """Replace the certificate and key of an existing secret in place.

        Other entries and metadata of the secret are left untouched.

        Raises:
            NotFound: If the secret does not exist.
        """
        call_api(
            f"updating secret {ref}",
            self.api.patch_namespaced_secret,
            name=ref.name,
            namespace=ref.namespace,
            body={"data": self._data(credential)},
            request_timeout=self.request_timeout,
        )
        logger.info(f"Updated secret {ref}")

    def delete(self, ref):
        """Delete the secret; a missing secret is not an error."""
        try:
            call_api(
                f"deleting secret {ref}",
                self.api.delete_namespaced_secret,
                name=ref.name,
                namespace=ref.namespace,
                request_timeout=self.request_timeout,
            )
            logger.info(f"Deleted secret {ref}")
        except NotFound:
            logger.info(f"Secret {ref} not found")

    @staticmethod
    def _data(credential):
        return {
            TLS_CERT_KEY: _encode(credential.certificate_pem),
            TLS_PRIVATE_KEY_KEY: _encode(credential.private_key_pem),
        }
