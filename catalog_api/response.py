"""
Response - HTTP response builder with streaming support.

Provides:
- ASGI 3 compliant response sending
- Support for bytes, str, dict/list (JSON) and async iterables
- Factory methods for JSON, text, redirect and empty responses
- Caching helpers (ETag, Cache-Control)
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Mapping, Optional, Union

Content = Union[bytes, str, Mapping, list, AsyncIterator[bytes]]

# Statuses that never carry a body.
_BODYLESS = frozenset({204, 304})


def dump_json(obj: Any) -> bytes:
    """Pretty JSON with a trailing newline, the body format of every JSON response."""
    return (json.dumps(obj, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


# ============================================================================
# Main Response Class
# ============================================================================

class Response:
    """
    HTTP response with ASGI 3 streaming support.

    Header names are stored lowercase; later writes replace earlier ones.
    """

    def __init__(
        self,
        content: Content = b"",
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        media_type: Optional[str] = None,
        *,
        encoding: str = "utf-8",
    ):
        """
        Initialize Response.

        Args:
            content: Response body (bytes, str, dict/list, async iterable)
            status: HTTP status code
            headers: Response headers
            media_type: Content-Type override
            encoding: Text encoding (default utf-8)
        """
        self.status = status
        self._content = content
        self.encoding = encoding

        self._headers: Dict[str, str] = {}
        if headers:
            for key, value in headers.items():
                self._headers[key.lower()] = value

        if media_type:
            self._headers["content-type"] = media_type
        elif "content-type" not in self._headers and content != b"":
            self._headers["content-type"] = self._detect_media_type(content)

    @property
    def headers(self) -> Dict[str, str]:
        return self._headers

    @property
    def body(self) -> Content:
        return self._content

    def _detect_media_type(self, content: Any) -> str:
        """Auto-detect media type from content."""
        if isinstance(content, (dict, list)):
            return "application/json; charset=utf-8"
        elif isinstance(content, str):
            return "text/plain; charset=utf-8"
        return "application/octet-stream"

    # ========================================================================
    # Factory Methods
    # ========================================================================

    @classmethod
    def json(
        cls,
        obj: Any,
        status: int = 200,
        *,
        headers: Optional[Mapping[str, str]] = None,
    ) -> "Response":
        """Create a JSON response (2-space indent, trailing newline)."""
        return cls(
            content=dump_json(obj),
            status=status,
            headers=headers,
            media_type="application/json; charset=utf-8",
        )

    @classmethod
    def text(cls, content: str, status: int = 200, **kwargs) -> "Response":
        """Create plain text response."""
        return cls(
            content=content,
            status=status,
            media_type="text/plain; charset=utf-8",
            **kwargs
        )

    @classmethod
    def redirect(
        cls,
        url: str,
        status: int = 302,
        *,
        headers: Optional[Dict[str, str]] = None
    ) -> "Response":
        """
        Create redirect response.

        Args:
            url: Redirect URL
            status: HTTP status (default 302 Found)
            headers: Additional headers

        Returns:
            Bodyless redirect response
        """
        redirect_headers = {"location": url}
        if headers:
            redirect_headers.update(headers)
        return cls(content=b"", status=status, headers=redirect_headers)

    @classmethod
    def empty(cls, status: int = 204, *, headers: Optional[Mapping[str, str]] = None) -> "Response":
        """Bodyless response carrying only *headers*."""
        return cls(content=b"", status=status, headers=headers)

    # ========================================================================
    # Header Helpers
    # ========================================================================

    def set_header(self, name: str, value: str) -> None:
        self._headers[name.lower()] = value

    def get_header(self, name: str) -> Optional[str]:
        return self._headers.get(name.lower())

    def update_headers(self, headers: Mapping[str, str]) -> None:
        for name, value in headers.items():
            self.set_header(name, value)

    def set_etag(self, etag: str, weak: bool = False) -> None:
        """
        Set ETag header.

        Args:
            etag: ETag value, quoted or bare
            weak: Use weak validator (W/ prefix)
        """
        if not etag.startswith(('"', 'W/"')):
            etag = f'"{etag}"'
        if weak and not etag.startswith("W/"):
            etag = f"W/{etag}"
        self.set_header("etag", etag)

    def cache_control(self, **directives) -> None:
        """
        Set Cache-Control header.

        Args:
            **directives: Cache directives (e.g., max_age=3600, public=True)

        Example:
            response.cache_control(public=True, max_age=60)
            response.cache_control(public=True, max_age=31536000, immutable=True)
        """
        parts = []
        for key, value in directives.items():
            directive = key.replace("_", "-")
            if value is True:
                parts.append(directive)
            elif value is False or value is None:
                continue
            else:
                parts.append(f"{directive}={value}")
        if parts:
            self.set_header("cache-control", ", ".join(parts))

    # ========================================================================
    # ASGI Send
    # ========================================================================

    async def send_asgi(self, send: Callable[[dict], Awaitable[None]]) -> None:
        """Send response via ASGI."""
        content = self._content
        if isinstance(content, str):
            content = content.encode(self.encoding)
            self._content = content
        elif isinstance(content, (dict, list)):
            content = dump_json(content)
            self._content = content

        if isinstance(content, bytes) and self.status not in _BODYLESS:
            self._headers.setdefault("content-length", str(len(content)))

        await send({
            "type": "http.response.start",
            "status": self.status,
            "headers": self._prepare_headers(),
        })
        await self._send_body(send)

    def _prepare_headers(self) -> List[tuple]:
        """Prepare headers for ASGI (list of byte tuples)."""
        return [
            (name.encode("latin-1"), value.encode("latin-1"))
            for name, value in self._headers.items()
        ]

    async def _send_body(self, send: Callable[[dict], Awaitable[None]]) -> None:
        content = self._content

        # ── Fast path: bytes ──
        if isinstance(content, bytes):
            body = b"" if self.status in _BODYLESS else content
            await send({"type": "http.response.body", "body": body, "more_body": False})
            return

        # ── Async iterator (streaming) ──
        try:
            async for chunk in content:
                if not chunk:
                    continue
                await send({"type": "http.response.body", "body": chunk, "more_body": True})
        finally:
            aclose = getattr(content, "aclose", None)
            if aclose is not None:
                await aclose()
        await send({"type": "http.response.body", "body": b"", "more_body": False})

