"""Credential records stored as Kubernetes TLS secrets."""

from typing import Optional

from pydantic import BaseModel, Field

TLS_SECRET_TYPE = "kubernetes.io/tls"
TLS_CERT_KEY = "tls.crt"
TLS_PRIVATE_KEY_KEY = "tls.key"


class CredentialRef(BaseModel):
    """Address of a credential in the secret store."""

    name: str = Field(..., min_length=1)
    namespace: str = Field(..., min_length=1)

    class Config:
        frozen = True

    def __str__(self):
        return f"{self.namespace}/{self.name}"


class Credential(BaseModel):
    """Certificate and private key, always written together."""

    certificate_pem: bytes
    private_key_pem: bytes
    kind: str = TLS_SECRET_TYPE


class OwnerReference(BaseModel):
    """Controller owner of a credential, used for cascading deletion."""

    api_version: str
    kind: str
    name: str
    uid: str
    controller: Optional[bool] = True
    block_owner_deletion: Optional[bool] = True
