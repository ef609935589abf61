"""Operator configuration read from the environment."""

import os
from datetime import timedelta
from functools import lru_cache

from pydantic import BaseModel, Field

from certsmith.services.duration import parse_duration

API_GROUP = "certs.certsmith.io"
API_VERSION = "v1"
CERTIFICATE_KIND = "Certificate"
CERTIFICATE_PLURAL = "certificates"

DEFAULT_FINALIZER = f"{API_GROUP}/finalizer"
DEFAULT_ORGANIZATION = "certsmith self-signed certificate"
MIN_KEY_SIZE = 2048


class OperatorSettings(BaseModel):
    """Policy and runtime knobs for the certificate operator."""

    renewal_threshold: timedelta = Field(
        default=timedelta(days=30),
        description="Remaining validity below which a certificate is reissued",
    )
    key_size: int = Field(
        default=MIN_KEY_SIZE, ge=MIN_KEY_SIZE, description="RSA key size in bits"
    )
    organization: str = Field(
        default=DEFAULT_ORGANIZATION, description="Subject organization of issued certificates"
    )
    finalizer: str = Field(default=DEFAULT_FINALIZER)
    request_timeout: float = Field(
        default=30.0, gt=0, description="Timeout in seconds for each Kubernetes API call"
    )
    resync_interval: float = Field(
        default=3600.0, gt=0, description="Seconds between periodic renewal checks"
    )
    worker_limit: int = Field(default=5, ge=1)
    posting_enabled: bool = False
    server_timeout: int = Field(default=60, ge=1)

    class Config:
        extra = "forbid"
        validate_assignment = True

    @classmethod
    def from_env(cls, environ=None):
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        values = {}

        if env.get("RENEWAL_THRESHOLD"):
            values["renewal_threshold"] = parse_duration(env["RENEWAL_THRESHOLD"])
        if env.get("KEY_SIZE"):
            values["key_size"] = int(env["KEY_SIZE"])
        if env.get("CERT_ORGANIZATION"):
            values["organization"] = env["CERT_ORGANIZATION"]
        if env.get("FINALIZER_NAME"):
            values["finalizer"] = env["FINALIZER_NAME"]
        if env.get("REQUEST_TIMEOUT"):
            values["request_timeout"] = float(env["REQUEST_TIMEOUT"])
        if env.get("RESYNC_INTERVAL"):
            values["resync_interval"] = float(env["RESYNC_INTERVAL"])
        if env.get("WORKER_LIMIT"):
            values["worker_limit"] = int(env["WORKER_LIMIT"])
        if env.get("SERVER_TIMEOUT"):
            values["server_timeout"] = int(env["SERVER_TIMEOUT"])
        values["posting_enabled"] = env.get("POSTING_ENABLED", "false").lower() == "true"

        return cls(**values)


@lru_cache(maxsize=1)
def get_settings():
    """Process-wide settings, read once."""
    return OperatorSettings.from_env()


def should_manage_crds(environ=None) -> bool:
    """Determine if operator should manage CRDs directly."""
    env = os.environ if environ is None else environ
    return env.get("MANAGE_CRDS", "true").lower() == "true"


def should_generate_crd_files(environ=None) -> bool:
    """Determine if operator should generate CRD YAML files."""
    env = os.environ if environ is None else environ
    return env.get("GENERATE_CRD_FILES", "false").lower() == "true"
