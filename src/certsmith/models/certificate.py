"""Certificate CRD models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from certsmith.config import API_GROUP, API_VERSION, CERTIFICATE_KIND, CERTIFICATE_PLURAL
from certsmith.crd.base import CRDCondition, CRDMetadata, CRDSpec, CRDStatus, format_time
from certsmith.crd.registry import CRDRegistry
from certsmith.models.credential import CredentialRef, OwnerReference


class ConditionType(str, Enum):
    ISSUED = "Issued"
    RECONCILE_ERROR = "ReconcileError"
    RECONCILE_SUCCESS = "ReconcileSuccess"


class ConditionReason(str, Enum):
    SUCCESS = "Success"
    RECONCILE_COMPLETED = "ReconcileCompleted"
    RECONCILE_FAILED = "ReconcileFailed"


CERTIFICATE_ISSUED_MESSAGE = "Successfully Issued Certificate"
RECONCILE_COMPLETED_MESSAGE = "Reconcile Completed Successfully"


class SecretRef(CRDSpec):
    """Reference to the secret that holds the issued certificate."""

    name: str = Field(..., min_length=1, description="Name of the TLS secret")
    namespace: Optional[str] = Field(
        default=None,
        description="Namespace of the TLS secret (defaults to the Certificate's namespace)",
    )


class CertificateStatus(CRDStatus):
    """Observed state of a Certificate."""

    serialNumber: Optional[str] = Field(
        default=None, description="Serial number of the issued certificate"
    )
    notBefore: Optional[datetime] = Field(
        default=None, description="Start of the certificate validity window"
    )
    notAfter: Optional[datetime] = Field(
        default=None, description="End of the certificate validity window"
    )
    issuer: Optional[str] = Field(
        default=None, description="Common name of the certificate issuer"
    )

    @field_serializer("notBefore", "notAfter")
    def _dump_time(self, value):
        return format_time(value)

    def to_dict(self):
        return self.model_dump(mode="json", exclude_none=True)


@CRDRegistry.register(
    API_GROUP,
    API_VERSION,
    CERTIFICATE_KIND,
    CERTIFICATE_PLURAL,
    status_model=CertificateStatus,
    printer_columns=[
        {"name": "DNS Name", "type": "string", "jsonPath": ".spec.dnsName"},
        {"name": "Secret", "type": "string", "jsonPath": ".spec.secretRef.name"},
        {"name": "Expires", "type": "date", "jsonPath": ".status.notAfter"},
        {"name": "Age", "type": "date", "jsonPath": ".metadata.creationTimestamp"},
    ],
)
class CertificateSpec(CRDSpec):
    """Certificate CRD specification."""

    dnsName: str = Field(..., min_length=1, description="DNS name for the certificate")
    validity: str = Field(
        ..., min_length=1, description="Validity period, e.g. '90d' or '2160h'"
    )
    secretRef: SecretRef = Field(
        ..., description="Secret where the certificate will be stored"
    )


class Certificate(BaseModel):
    """A Certificate object as read from the API server."""

    metadata: CRDMetadata
    spec: CertificateSpec
    status: CertificateStatus = Field(default_factory=CertificateStatus)

    @classmethod
    def from_body(cls, body):
        return cls.model_validate(
            {
                "metadata": dict(body.get("metadata") or {}),
                "spec": dict(body.get("spec") or {}),
                "status": dict(body.get("status") or {}),
            }
        )

    @property
    def name(self):
        return self.metadata.name

    @property
    def namespace(self):
        return self.metadata.namespace

    @property
    def identity(self):
        return f"{self.namespace}/{self.name}"

    @property
    def credential_ref(self):
        return CredentialRef(
            name=self.spec.secretRef.name,
            namespace=self.spec.secretRef.namespace or self.namespace,
        )

    def owner_reference(self):
        """Owner reference for the credential, or None if it cannot own it.

        Owner references do not cross namespaces.
        """
        if not self.metadata.uid or self.credential_ref.namespace != self.namespace:
            return None
        return OwnerReference(
            api_version=f"{API_GROUP}/{API_VERSION}",
            kind=CERTIFICATE_KIND,
            name=self.name,
            uid=self.metadata.uid,
        )

    def set_condition(self, condition_type, status, reason, message):
        self.status.set_condition(
            CRDCondition(
                type=ConditionType(condition_type).value,
                status=status,
                reason=ConditionReason(reason).value,
                message=message,
                observedGeneration=self.metadata.generation,
            )
        )
