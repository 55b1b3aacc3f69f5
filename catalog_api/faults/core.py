"""
Catalog faults - Core types and fault taxonomy.

Defines:
- Fault base class (structured fault objects)
- FaultDomain (explicit fault domains)
- Severity levels

A fault's ``code`` is the error kind written on the wire, e.g.
``{"error": "not_found"}``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


# ============================================================================
# Severity & Domain
# ============================================================================

class Severity(str, Enum):
    """
    Fault severity levels.

    Determines the logging level used when the fault is rendered.
    """
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


class FaultDomain:
    """
    Fault domains (taxonomy).

    Identifies the functional area where a fault occurred.
    """

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.value = name
        self.description = description

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"FaultDomain(name='{self.name}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FaultDomain):
            return self.name == other.name
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash(self.name)


# Standard Domains
FaultDomain.CONFIG = FaultDomain("config", "Configuration errors")
FaultDomain.ROUTING = FaultDomain("routing", "Route matching errors")
FaultDomain.CATALOG = FaultDomain("catalog", "Catalog resolution errors")
FaultDomain.INGEST = FaultDomain("ingest", "Publish pipeline gate")
FaultDomain.IO = FaultDomain("io", "Backing store operations")
FaultDomain.SYSTEM = FaultDomain("system", "System level faults")


# Domain defaults
DOMAIN_DEFAULTS = {
    FaultDomain.CONFIG: {"severity": Severity.FATAL, "status": 500},
    FaultDomain.ROUTING: {"severity": Severity.INFO, "status": 404},
    FaultDomain.CATALOG: {"severity": Severity.WARN, "status": 404},
    FaultDomain.INGEST: {"severity": Severity.INFO, "status": 501},
    FaultDomain.IO: {"severity": Severity.ERROR, "status": 502},
    FaultDomain.SYSTEM: {"severity": Severity.FATAL, "status": 500},
}


# ============================================================================
# Fault - Base Class
# ============================================================================

class Fault(Exception):
    """
    Base fault class - structured, typed fault object.

    A fault is NOT a bare exception. It is a first-class value with:
    - Stable machine-readable code (the wire error kind)
    - Human-readable message
    - Severity level
    - Domain classification
    - HTTP status it renders to
    - Public exposure control

    Attributes:
        code: Stable machine-readable identifier (e.g., "not_found")
        message: Human-readable summary
        severity: Fault severity (INFO, WARN, ERROR, FATAL)
        domain: Fault domain (CATALOG, INGEST, IO, ...)
        status: HTTP status code used when rendered as a response
        public: Whether the message is safe to expose to clients
        metadata: Additional context data, rendered next to the code

    Example:
        ```python
        raise Fault(
            code="invalid_latest",
            message="Latest pointer is corrupt",
            domain=FaultDomain.CATALOG,
            status=500,
            metadata={"key": "catalog/tools/x/latest.json"},
        )
        ```
    """

    code: Optional[str] = None
    message: Optional[str] = None
    domain: Optional[FaultDomain] = None
    status: Optional[int] = None
    expose_message: bool = False

    def __init__(
        self,
        code: str | None = None,
        message: str | None = None,
        *,
        domain: FaultDomain | None = None,
        severity: Optional[Severity] = None,
        status: Optional[int] = None,
        public: bool = True,
        metadata: Optional[dict[str, Any]] = None,
    ):
        # Fallback to class attributes if not provided
        self.code = code if code is not None else type(self).code
        self.message = message if message is not None else type(self).message
        self.domain = domain if domain is not None else type(self).domain

        if self.code is None or self.message is None or self.domain is None:
            raise TypeError(f"{self.__class__.__name__} missing required code, message, or domain")

        super().__init__(self.message)

        defaults = DOMAIN_DEFAULTS.get(self.domain, {"severity": Severity.ERROR, "status": 500})
        self.severity = severity or defaults["severity"]
        if status is not None:
            self.status = status
        elif type(self).status is not None:
            self.status = type(self).status
        else:
            self.status = defaults["status"]

        self.public = public
        self.metadata = metadata or {}

    def to_payload(self) -> dict[str, Any]:
        """
        Render the flat JSON error body: ``{"error": code, **metadata}``.

        The message is added under ``"message"`` only for faults that
        expose it and are public.
        """
        payload: dict[str, Any] = {"error": self.code}
        if self.expose_message and self.public:
            payload["message"] = self.message
        payload.update(self.metadata)
        return payload

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"Fault(code={self.code!r}, domain={self.domain.value}, "
            f"status={self.status}, severity={self.severity.value})"
        )
