"""Base classes for CRD specifications."""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator


class CRDMetadata(BaseModel):
    """The subset of Kubernetes object metadata the operator reads and writes."""

    name: str
    namespace: Optional[str] = None
    uid: Optional[str] = None
    generation: int = 0
    resourceVersion: Optional[str] = None
    deletionTimestamp: Optional[datetime] = None
    finalizers: List[str] = Field(default_factory=list)
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)

    class Config:
        extra = "ignore"

    @property
    def terminating(self):
        return self.deletionTimestamp is not None


class CRDCondition(BaseModel):
    """Kubernetes-style condition.

    ``status`` is a bool in Python and ``"True"``/``"False"`` on the wire.
    """

    type: str
    status: bool = Field(..., json_schema_extra={"type": "string", "enum": ["True", "False"]})
    reason: str
    message: str
    lastTransitionTime: Optional[datetime] = None
    observedGeneration: Optional[int] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        if isinstance(value, str):
            if value not in ("True", "False"):
                raise ValueError(f"unsupported condition status {value!r}")
            return value == "True"
        return value

    @field_serializer("status")
    def _dump_status(self, value):
        return "True" if value else "False"

    @field_serializer("lastTransitionTime")
    def _dump_time(self, value):
        return format_time(value)


class CRDStatus(BaseModel):
    """Base class for all CRD status objects."""

    conditions: List[CRDCondition] = Field(default_factory=list)

    class Config:
        extra = "allow"

    def get_condition(self, condition_type):
        return next((c for c in self.conditions if c.type == condition_type), None)

    def set_condition(self, condition):
        """Insert or replace the condition of the same type.

        ``lastTransitionTime`` is carried over when the status did not change.
        """
        existing = self.get_condition(condition.type)
        if existing is None:
            if condition.lastTransitionTime is None:
                condition.lastTransitionTime = utcnow()
            self.conditions.append(condition)
            return

        if existing.status != condition.status or existing.lastTransitionTime is None:
            existing.status = condition.status
            existing.lastTransitionTime = condition.lastTransitionTime or utcnow()
        existing.reason = condition.reason
        existing.message = condition.message
        existing.observedGeneration = condition.observedGeneration


class CRDSpec(BaseModel):
    """Base class for all CRD spec objects."""

    class Config:
        extra = "forbid"
        validate_assignment = True


def utcnow():
    # Kubernetes timestamps carry second precision.
    return datetime.now(timezone.utc).replace(microsecond=0)


def format_time(value):
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
