"""Shared pytest fixtures for certsmith tests."""

import copy
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from certsmith.config import OperatorSettings
from certsmith.errors import AlreadyExists, NotFound
from certsmith.models.certificate import Certificate, CertificateSpec
from certsmith.services.certificate_factory import CertificateFactory

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FakeCertificateStore:
    """In-memory stand-in for CertificateStore."""

    def __init__(self):
        self.objects = {}
        self.updates = []
        self.status_updates = []
        self.fail_status = None

    def add(self, body):
        meta = body["metadata"]
        self.objects[(meta["namespace"], meta["name"])] = copy.deepcopy(body)

    def body(self, namespace, name):
        return self.objects[(namespace, name)]

    def get(self, namespace, name):
        if (namespace, name) not in self.objects:
            raise NotFound(f"certificate {namespace}/{name}: not found")
        return Certificate.from_body(copy.deepcopy(self.objects[(namespace, name)]))

    def update(self, certificate):
        finalizers = list(certificate.metadata.finalizers)
        self.updates.append(finalizers)
        self.objects[(certificate.namespace, certificate.name)]["metadata"][
            "finalizers"
        ] = finalizers

    def update_status(self, certificate):
        if self.fail_status is not None:
            raise self.fail_status
        status = certificate.status.to_dict()
        self.status_updates.append(status)
        self.objects[(certificate.namespace, certificate.name)]["status"] = copy.deepcopy(status)


class FakeSecretStore:
    """In-memory stand-in for SecretStore."""

    def __init__(self):
        self.credentials = {}
        self.owners = {}
        self.calls = []
        self.fail_on = {}

    def _maybe_fail(self, operation):
        if operation in self.fail_on:
            raise self.fail_on[operation]

    def get(self, ref):
        self.calls.append(("get", ref))
        self._maybe_fail("get")
        if ref not in self.credentials:
            raise NotFound(f"reading secret {ref}: not found")
        return self.credentials[ref]

    def create(self, ref, credential, owner=None):
        self.calls.append(("create", ref))
        self._maybe_fail("create")
        if ref in self.credentials:
            raise AlreadyExists(f"creating secret {ref}: AlreadyExists")
        self.credentials[ref] = credential
        self.owners[ref] = owner

    def update(self, ref, credential):
        self.calls.append(("update", ref))
        self._maybe_fail("update")
        if ref not in self.credentials:
            raise NotFound(f"updating secret {ref}: not found")
        self.credentials[ref] = credential

    def delete(self, ref):
        self.calls.append(("delete", ref))
        self.credentials.pop(ref, None)

    def operations(self):
        return [operation for operation, _ in self.calls]


@pytest.fixture
def settings():
    return OperatorSettings()


@pytest.fixture
def certificate_store():
    return FakeCertificateStore()


@pytest.fixture
def secret_store():
    return FakeSecretStore()


@pytest.fixture
def certificate_body():
    """Factory for Certificate objects as the API server returns them."""

    def make(
        name="web",
        namespace="default",
        dns_name="web.example.com",
        validity="90d",
        secret_name="web-tls",
        secret_namespace=None,
        finalizers=None,
        deleting=False,
        generation=1,
        status=None,
    ):
        secret_ref = {"name": secret_name}
        if secret_namespace:
            secret_ref["namespace"] = secret_namespace
        metadata = {
            "name": name,
            "namespace": namespace,
            "uid": f"uid-{name}",
            "generation": generation,
            "resourceVersion": "1",
            "finalizers": list(finalizers or []),
        }
        if deleting:
            metadata["deletionTimestamp"] = "2026-10-19T12:00:00Z"
        return {
            "apiVersion": "certs.certsmith.io/v1",
            "kind": "Certificate",
            "metadata": metadata,
            "spec": {"dnsName": dns_name, "validity": validity, "secretRef": secret_ref},
            "status": status or {},
        }

    return make


@pytest.fixture
def issue_pem():
    """Issue a real certificate; returns the IssuedCertificate."""

    def issue(dns_name="web.example.com", validity="90d", now=FIXED_NOW, settings=None):
        factory = CertificateFactory(settings or OperatorSettings(), clock=lambda: now)
        spec = CertificateSpec(
            dnsName=dns_name, validity=validity, secretRef={"name": "unused"}
        )
        return factory.issue(spec)

    return issue
