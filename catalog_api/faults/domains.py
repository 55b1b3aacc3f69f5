"""
Catalog faults - Domain-specific fault types.

Provides concrete fault classes for each domain:
- CONFIG faults
- CATALOG faults (not found, corrupt latest pointer, bad request)
- INGEST faults (gate disabled, not implemented)
- IO faults (backing store failures)
"""

from typing import Any, Optional

from .core import Fault, FaultDomain, Severity


# ============================================================================
# CONFIG Faults
# ============================================================================

class ConfigFault(Fault):
    """Configuration value is missing or invalid."""

    def __init__(self, key: str, reason: str, **metadata: Any):
        super().__init__(
            code="config_invalid",
            message=f"Configuration key '{key}' is invalid: {reason}",
            domain=FaultDomain.CONFIG,
            public=False,
            metadata={"key": key, "reason": reason, **metadata},
        )


# ============================================================================
# CATALOG Faults
# ============================================================================

class CatalogNotFound(Fault):
    """Missing key in either backing store, or an unmatched route (404)."""

    code = "not_found"
    message = "Not found"
    domain = FaultDomain.CATALOG
    status = 404

    def __init__(self, key: Optional[str] = None):
        super().__init__(severity=Severity.INFO)
        # Kept off the wire; only used for logs.
        self.key = key


class InvalidLatestPointer(Fault):
    """
    Latest pointer exists but is unparsable or has no version (500).

    Distinct from :class:`CatalogNotFound`: the alias is present, so this
    is a data-integrity problem upstream rather than an absent resource.
    """

    code = "invalid_latest"
    message = "Latest pointer is not a JSON object with a version"
    domain = FaultDomain.CATALOG
    status = 500

    def __init__(self, key: str, reason: str = ""):
        super().__init__(severity=Severity.ERROR, metadata={"key": key})
        self.reason = reason


class BadRequestFault(Fault):
    """Malformed request input (400). Reserved; no current route raises it."""

    code = "bad_request"
    message = "Bad request"
    domain = FaultDomain.ROUTING
    status = 400
    expose_message = True

    def __init__(self, message: Optional[str] = None):
        super().__init__(message=message, severity=Severity.INFO)


# ============================================================================
# INGEST Faults
# ============================================================================

INGEST_DISABLED_MESSAGE = (
    "Ingest is not enabled yet. Enable by setting INGEST_ENABLED=1 and "
    "implementing webhook verification + publish pipeline."
)


class IngestDisabled(Fault):
    """Ingest feature flag is off (501)."""

    code = "disabled"
    message = INGEST_DISABLED_MESSAGE
    domain = FaultDomain.INGEST
    status = 501
    expose_message = True


class IngestNotImplemented(Fault):
    """Ingest feature flag is on but no pipeline exists (501)."""

    code = "not_implemented"
    message = "Ingest pipeline is not implemented"
    domain = FaultDomain.INGEST
    status = 501


# ============================================================================
# IO Faults
# ============================================================================

class StoreFault(Fault):
    """A backing-store call failed or timed out (502). Never retried."""

    code = "store_unavailable"
    message = "Backing store request failed"
    domain = FaultDomain.IO
    status = 502

    def __init__(self, store: str, key: str, cause: BaseException):
        super().__init__(
            message=f"{store} read of '{key}' failed: {cause}",
            public=False,
        )
        self.store = store
        self.key = key
        self.cause = cause
