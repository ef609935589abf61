"""Pydantic models for all CRDs."""

# Import all models to ensure they're registered
from . import certificate
from . import credential

__all__ = ["certificate", "credential"]
