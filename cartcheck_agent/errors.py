from __future__ import annotations


class AuditError(Exception):
    """Base class for failures raised while auditing a product URL."""


class AuditValidationError(AuditError, ValueError):
    """The audit request itself is unusable (missing or empty URL)."""


class ProviderUnavailable(AuditError):
    """The signal provider could not produce signals (network, timeout, API error)."""


class SchemaMismatch(ProviderUnavailable):
    """The provider answered, but the payload did not parse into ProductSignals."""


class QuotaExceeded(AuditError):
    """The provider rejected the call for rate/quota reasons.

    Unlike ProviderUnavailable this is surfaced to the caller instead of being
    downgraded to the fallback tier.
    """

    def __init__(self, message: str = "Signal provider quota exceeded", retry_after_s: int | None = None):
        super().__init__(message)
        self.retry_after_s = retry_after_s
