"""
Error taxonomy for the variant resolution pipeline.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer maps it to, so callers can tell "your input was invalid" apart from
"an upstream source was unavailable".
"""
from typing import Optional


class VariantLensError(Exception):
    """Base class for all pipeline errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class ParseError(VariantLensError):
    code = "PARSE_ERROR"
    status_code = 400


class UnknownGeneError(VariantLensError):
    code = "UNKNOWN_GENE"
    status_code = 404


class AmbiguousGeneError(UnknownGeneError):
    """Alias claimed by more than one gene; refusing to pick one."""

    code = "AMBIGUOUS_GENE"
    status_code = 400


class InvalidPositionError(VariantLensError):
    code = "INVALID_POSITION"
    status_code = 400


class NoStructureError(VariantLensError):
    code = "NO_STRUCTURE"
    status_code = 404


class UpstreamUnavailableError(VariantLensError):
    """Network failure, timeout or 5xx from a named upstream source."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 503

    def __init__(self, source: str, reason: str, details: Optional[str] = None):
        message = f"Upstream source {source} unavailable: {reason}"
        if details:
            message = f"{message} ({details})"
        super().__init__(message)
        self.source = source
        self.reason = reason


class ValidationError(VariantLensError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(VariantLensError):
    code = "NOT_FOUND"
    status_code = 404


class ConfigError(VariantLensError):
    code = "MISCONFIGURED"
    status_code = 503


class AuthError(VariantLensError):
    code = "UNAUTHORIZED"
    status_code = 401


class RateLimitedError(VariantLensError):
    code = "RATE_LIMITED"
    status_code = 429

    def __init__(self, message: str, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after


class EvidencePurityError(VariantLensError):
    """An evidence bundle carried a field not traceable to a source record."""

    code = "EVIDENCE_CONTRACT_VIOLATION"
    status_code = 500
