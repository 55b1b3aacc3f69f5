"""
Catalog Testing - Request Utility Factories.

Provides helper functions for building ASGI scopes, receive callables
and Request objects for use in tests.
"""

from __future__ import annotations

from typing import List, Optional
from urllib.parse import unquote

from catalog_api.request import Request


def make_test_scope(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: Optional[List[tuple]] = None,
    scheme: str = "http",
    client: Optional[tuple] = None,
    server: Optional[tuple] = None,
    root_path: str = "",
    http_version: str = "1.1",
    scope_type: str = "http",
) -> dict:
    """
    Build a minimal ASGI HTTP scope for testing.

    Args:
        method: HTTP method.
        path: Request path as sent on the wire (percent-encoded). A
            ``?query`` suffix is split off into the query string.
        query_string: Raw query string (without ``?``).
        headers: List of ``(name, value)`` tuples (strings or bytes).
        scheme: URL scheme (``http`` or ``https``).
        client: ``(host, port)`` tuple.
        server: ``(host, port)`` tuple.
        root_path: ASGI root path.
        http_version: HTTP protocol version.
        scope_type: ASGI scope type.

    Returns:
        ASGI scope dictionary.
    """
    if "?" in path:
        path, query_string = path.split("?", 1)

    raw_headers: list[tuple[bytes, bytes]] = []
    if headers:
        for name, value in headers:
            raw_headers.append((
                name.encode("latin-1") if isinstance(name, str) else name,
                value.encode("latin-1") if isinstance(value, str) else value,
            ))

    return {
        "type": scope_type,
        "asgi": {"version": "3.0"},
        "http_version": http_version,
        "method": method,
        "path": unquote(path),
        "raw_path": path.encode("utf-8"),
        "query_string": (
            query_string.encode("utf-8")
            if isinstance(query_string, str)
            else query_string
        ),
        "headers": raw_headers,
        "scheme": scheme,
        "server": server or ("127.0.0.1", 8000),
        "client": client or ("127.0.0.1", 12345),
        "root_path": root_path,
    }


def make_test_receive(body: bytes = b""):
    """
    Create an ASGI receive callable delivering *body* once, then disconnect.
    """
    messages = [{"type": "http.request", "body": body, "more_body": False}]
    idx = 0

    async def receive():
        nonlocal idx
        if idx < len(messages):
            msg = messages[idx]
            idx += 1
            return msg
        return {"type": "http.disconnect"}

    return receive


def make_test_request(
    method: str = "GET",
    path: str = "/",
    headers: Optional[List[tuple]] = None,
    body: bytes = b"",
    scheme: str = "http",
) -> Request:
    """Build a :class:`Request` without going through the ASGI app."""
    scope = make_test_scope(method=method, path=path, headers=headers, scheme=scheme)
    return Request(scope, make_test_receive(body))
