"""Tests for services/secret_store.py - TLS secrets through CoreV1Api."""

import base64
from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import ReadTimeoutError

from certsmith.errors import AlreadyExists, NotFound, StoreError
from certsmith.models.credential import Credential, CredentialRef, OwnerReference
from certsmith.services.secret_store import STANDARD_LABELS, SecretStore

REF = CredentialRef(name="web-tls", namespace="default")
CREDENTIAL = Credential(certificate_pem=b"CERT", private_key_pem=b"KEY")


def _b64(value):
    return base64.b64encode(value).decode()


@pytest.fixture
def api():
    return MagicMock()


@pytest.fixture
def store(api):
    return SecretStore(api=api, request_timeout=5)


class TestGet:
    def test_decodes_secret(self, store, api):
        api.read_namespaced_secret.return_value = client.V1Secret(
            type="kubernetes.io/tls",
            data={"tls.crt": _b64(b"CERT"), "tls.key": _b64(b"KEY")},
        )

        credential = store.get(REF)

        assert credential == Credential(
            certificate_pem=b"CERT", private_key_pem=b"KEY", kind="kubernetes.io/tls"
        )
        api.read_namespaced_secret.assert_called_once_with(
            name="web-tls", namespace="default", _request_timeout=5
        )

    def test_missing_entries_are_empty(self, store, api):
        api.read_namespaced_secret.return_value = client.V1Secret(type="Opaque", data=None)

        credential = store.get(REF)
        assert credential.certificate_pem == b""
        assert credential.private_key_pem == b""
        assert credential.kind == "Opaque"

    def test_not_found(self, store, api):
        api.read_namespaced_secret.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(NotFound):
            store.get(REF)

    def test_server_error(self, store, api):
        api.read_namespaced_secret.side_effect = ApiException(status=500, reason="Internal")

        with pytest.raises(StoreError) as exc_info:
            store.get(REF)
        assert not isinstance(exc_info.value, NotFound)
        assert "500" in str(exc_info.value)

    def test_timeout(self, store, api):
        api.read_namespaced_secret.side_effect = ReadTimeoutError(None, "/", "timed out")

        with pytest.raises(StoreError):
            store.get(REF)


class TestCreate:
    def test_builds_tls_secret(self, store, api):
        store.create(REF, CREDENTIAL)

        kwargs = api.create_namespaced_secret.call_args.kwargs
        assert kwargs["namespace"] == "default"
        assert kwargs["_request_timeout"] == 5
        body = kwargs["body"]
        assert body.type == "kubernetes.io/tls"
        assert body.metadata.name == "web-tls"
        assert body.metadata.namespace == "default"
        assert body.metadata.labels == STANDARD_LABELS
        assert body.metadata.owner_references is None
        assert body.data == {"tls.crt": _b64(b"CERT"), "tls.key": _b64(b"KEY")}

    def test_owner_reference(self, store, api):
        owner = OwnerReference(
            api_version="certs.certsmith.io/v1", kind="Certificate", name="web", uid="abc"
        )
        store.create(REF, CREDENTIAL, owner=owner)

        (reference,) = api.create_namespaced_secret.call_args.kwargs["body"].metadata.owner_references
        assert reference.api_version == "certs.certsmith.io/v1"
        assert reference.kind == "Certificate"
        assert reference.name == "web"
        assert reference.uid == "abc"
        assert reference.controller is True
        assert reference.block_owner_deletion is True

    def test_conflict(self, store, api):
        api.create_namespaced_secret.side_effect = ApiException(status=409, reason="Conflict")

        with pytest.raises(AlreadyExists):
            store.create(REF, CREDENTIAL)


class TestUpdate:
    def test_patches_tls_entries(self, store, api):
        store.update(REF, CREDENTIAL)

        api.patch_namespaced_secret.assert_called_once_with(
            name="web-tls",
            namespace="default",
            body={"data": {"tls.crt": _b64(b"CERT"), "tls.key": _b64(b"KEY")}},
            _request_timeout=5,
        )

    def test_not_found(self, store, api):
        api.patch_namespaced_secret.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(NotFound):
            store.update(REF, CREDENTIAL)


class TestDelete:
    def test_deletes(self, store, api):
        store.delete(REF)
        api.delete_namespaced_secret.assert_called_once_with(
            name="web-tls", namespace="default", _request_timeout=5
        )

    def test_missing_is_ignored(self, store, api):
        api.delete_namespaced_secret.side_effect = ApiException(status=404, reason="Not Found")
        store.delete(REF)

    def test_other_errors_propagate(self, store, api):
        api.delete_namespaced_secret.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(StoreError):
            store.delete(REF)


def test_no_timeout_when_unset(api):
    SecretStore(api=api).delete(REF)
    api.delete_namespaced_secret.assert_called_once_with(name="web-tls", namespace="default")
