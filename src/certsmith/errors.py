"""Exception taxonomy for the certsmith operator."""


class CertsmithError(Exception):
    """Base class for all certsmith errors."""


class InvalidDuration(CertsmithError):
    """A validity string is neither a day count nor a duration literal."""

    def __init__(self, text):
        self.text = text
        super().__init__(f"invalid duration {text!r}")


class KeyGenerationFailed(CertsmithError):
    pass


class TemplateBuildFailed(CertsmithError):
    pass


class SigningFailed(CertsmithError):
    pass


class MalformedCertificate(CertsmithError):
    """Stored certificate bytes are not a decodable PEM X.509 certificate."""


class CredentialUnreadable(CertsmithError):
    """The issued credential could not be decoded for status reporting."""


class StoreError(CertsmithError):
    """A store call failed for a reason other than not-found or conflict."""


class NotFound(StoreError):
    pass


class AlreadyExists(StoreError):
    pass


class ReconcileFailed(CertsmithError):
    """A reconcile pass failed; wraps the underlying cause with context."""

    def __init__(self, operation, cause):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {cause}")


class InvalidResource(CertsmithError):
    """A stored Certificate object does not match the CRD model."""
