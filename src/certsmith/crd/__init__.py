"""Pydantic-backed CustomResourceDefinitions for the certsmith operator."""

from .base import CRDCondition, CRDMetadata, CRDSpec, CRDStatus
from .registry import CRDInfo, CRDRegistry

__all__ = ["CRDCondition", "CRDInfo", "CRDMetadata", "CRDRegistry", "CRDSpec", "CRDStatus"]
