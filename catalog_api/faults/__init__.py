"""
Catalog faults - Typed error signals for the catalog read layer.

Every failure the service reports is a :class:`Fault` carrying a stable
wire code, an HTTP status and optional public metadata. Faults are raised
by resolvers and stores and rendered once, by the exception middleware,
into a flat JSON error body.

Core exports:
- Fault: Base fault class
- FaultDomain: Domain taxonomy
- Severity: Severity levels
- Domain faults: CatalogNotFound, InvalidLatestPointer, BadRequestFault,
  IngestDisabled, IngestNotImplemented, StoreFault, ConfigFault
"""

from .core import (
    Fault,
    FaultDomain,
    Severity,
)

from .domains import (
    ConfigFault,
    CatalogNotFound,
    InvalidLatestPointer,
    BadRequestFault,
    IngestDisabled,
    IngestNotImplemented,
    StoreFault,
    INGEST_DISABLED_MESSAGE,
)

__all__ = [
    "Fault",
    "FaultDomain",
    "Severity",
    "ConfigFault",
    "CatalogNotFound",
    "InvalidLatestPointer",
    "BadRequestFault",
    "IngestDisabled",
    "IngestNotImplemented",
    "StoreFault",
    "INGEST_DISABLED_MESSAGE",
]
