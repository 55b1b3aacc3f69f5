"""
Request - Lean ASGI request wrapper.

Provides:
- Method, raw (percent-encoded) path and decoded path
- Case-insensitive headers
- Full request URL, whose origin prefixes canonical redirects
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
from urllib.parse import quote

from ._datastructures import Headers, URL


class Request:
    """
    Request object for the catalog service.

    Features:
    - Raw path access for route matching
    - Typed header parsing
    - Origin derivation from scheme and ``Host`` header
    """

    def __init__(
        self,
        scope: Mapping[str, Any],
        receive: Callable[..., Awaitable[dict]],
    ):
        self.scope = scope
        self._receive = receive

        self.state: Dict[str, Any] = {}

        self._headers: Optional[Headers] = None
        self._url: Optional[URL] = None

    # ========================================================================
    # Basic Properties
    # ========================================================================

    @property
    def method(self) -> str:
        """HTTP method (GET, POST, etc.)."""
        return self.scope.get("method", "GET")

    @property
    def path(self) -> str:
        """Request path (decoded)."""
        return self.scope.get("path", "/")

    @property
    def raw_path(self) -> str:
        """
        Request path exactly as sent, still percent-encoded.

        Falls back to re-encoding ``path`` when the server omits
        ``raw_path``. The query string is never included.
        """
        raw = self.scope.get("raw_path")
        if raw is None:
            return quote(self.path, safe="/")
        if isinstance(raw, bytes):
            raw = raw.decode("latin-1")
        return raw.split("?", 1)[0]

    @property
    def query_string(self) -> str:
        return self.scope.get("query_string", b"").decode("utf-8")

    # ========================================================================
    # Headers
    # ========================================================================

    @property
    def headers(self) -> Headers:
        if self._headers is None:
            self._headers = Headers(raw=list(self.scope.get("headers", [])))
        return self._headers

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get single header (case-insensitive)."""
        return self.headers.get(name, default)

    # ========================================================================
    # URL Building
    # ========================================================================

    def url(self) -> URL:
        """Get full request URL."""
        if self._url is None:
            scheme = self.scope.get("scheme", "http")
            host = self.header("host")
            if host is None:
                server = self.scope.get("server") or ("localhost", None)
                host = server[0] if server[1] is None else f"{server[0]}:{server[1]}"

            port = None
            host_part = host
            if ":" in host and not host.endswith("]"):
                candidate, port_part = host.rsplit(":", 1)
                try:
                    port = int(port_part)
                    host_part = candidate
                except ValueError:
                    port = None

            self._url = URL(
                scheme=scheme,
                host=host_part,
                port=port,
                path=self.path,
                query=self.query_string,
            )
        return self._url

