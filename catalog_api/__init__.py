"""
Catalog API - read-only HTTP edge for a versioned artifact catalog.

Serves three kinds of reads over two backing stores:
- Registry listings per kind (key-value store, short cache)
- ``latest`` aliases, redirected to the canonical versioned URL
- Immutable versioned artifacts (blob store, cached forever)

plus a health check, a root redirect, CORS on every response and a
feature-flagged ingest stub.
"""

__version__ = "0.1.0"

# ============================================================================
# Core
# ============================================================================

from .config import CatalogConfig, ConfigLoader, CORSPolicy, ContentTypeTable
from .request import Request
from .response import Response
from .asgi import CatalogApp
from .app import create_app, configure_logging

# ============================================================================
# Routing & Keys
# ============================================================================

from .routing import (
    NormalizedPath,
    normalize_path,
    classify,
    resolve_route,
    Root,
    Health,
    Ingest,
    Registry,
    LatestAlias,
    Artifact,
    Unmatched,
)
from .keys import join_key, registry_key, latest_key, artifact_key

# ============================================================================
# Faults
# ============================================================================

from .faults import (
    Fault,
    FaultDomain,
    CatalogNotFound,
    InvalidLatestPointer,
    IngestDisabled,
    IngestNotImplemented,
    StoreFault,
    ConfigFault,
)

__all__ = [
    "__version__",
    "CatalogConfig",
    "ConfigLoader",
    "CORSPolicy",
    "ContentTypeTable",
    "Request",
    "Response",
    "CatalogApp",
    "create_app",
    "configure_logging",
    "NormalizedPath",
    "normalize_path",
    "classify",
    "resolve_route",
    "Root",
    "Health",
    "Ingest",
    "Registry",
    "LatestAlias",
    "Artifact",
    "Unmatched",
    "join_key",
    "registry_key",
    "latest_key",
    "artifact_key",
    "Fault",
    "FaultDomain",
    "CatalogNotFound",
    "InvalidLatestPointer",
    "IngestDisabled",
    "IngestNotImplemented",
    "StoreFault",
    "ConfigFault",
]
