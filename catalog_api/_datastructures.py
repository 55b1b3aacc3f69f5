"""
Core data structures for request handling.

Provides:
- Headers: case-insensitive header access over raw ASGI pairs
- URL: parsed URL with origin helpers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlparse


# ============================================================================
# Headers
# ============================================================================

@dataclass
class Headers:
    """
    Case-insensitive header access with raw preservation.

    Normalizes header names while preserving original casing.
    """

    raw: List[Tuple[bytes, bytes]] = field(default_factory=list)
    _index: Dict[str, List[Tuple[bytes, bytes]]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self):
        """Build case-insensitive index."""
        self._index = {}
        for name, value in self.raw:
            key = name.decode("latin-1").lower()
            if key not in self._index:
                self._index[key] = []
            self._index[key].append((name, value))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get first value for header (case-insensitive)."""
        pairs = self._index.get(name.lower())
        if pairs:
            return pairs[0][1].decode("latin-1")
        return default

    def has(self, name: str) -> bool:
        return name.lower() in self._index

    def items(self) -> Iterator[Tuple[str, str]]:
        for name, value in self.raw:
            yield name.decode("latin-1"), value.decode("latin-1")

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(f"Header '{name}' not found")
        return value

    def __repr__(self) -> str:
        return f"Headers({list(self.items())})"


# ============================================================================
# URL
# ============================================================================

@dataclass
class URL:
    """
    Parsed URL representation.

    Only the parts the catalog needs: scheme, host, port, path, query.
    """

    scheme: str
    host: str
    port: Optional[int] = None
    path: str = "/"
    query: str = ""

    @classmethod
    def parse(cls, url: str) -> "URL":
        """Parse URL string into components."""
        parsed = urlparse(url)
        host = parsed.hostname or ""
        if ":" in host:
            # IPv6 literal; keep the brackets Host headers carry.
            host = f"[{host}]"
        return cls(
            scheme=parsed.scheme or "http",
            host=host,
            port=parsed.port,
            path=parsed.path or "/",
            query=parsed.query,
        )

    @property
    def netloc(self) -> str:
        """Host plus port, omitting the scheme's default port."""
        netloc = self.host
        if self.port:
            if not ((self.scheme == "http" and self.port == 80) or
                    (self.scheme == "https" and self.port == 443)):
                netloc += f":{self.port}"
        return netloc

    @property
    def origin(self) -> str:
        """``scheme://host[:port]`` with no path."""
        return f"{self.scheme}://{self.netloc}"

    def join(self, path: str) -> str:
        """Resolve an absolute *path* against this URL's origin."""
        if not path.startswith("/"):
            path = "/" + path
        return self.origin + path

    def __str__(self) -> str:
        url = f"{self.origin}{self.path}"
        if self.query:
            url += f"?{self.query}"
        return url
