"""
Catalog Testing - in-process ASGI test tooling.

Usage:
    from catalog_api.testing import TestClient

    async def test_registry():
        client = TestClient(create_app(kv_store=kv, blob_store=blobs))
        response = await client.get("/skills/registry.json")
        assert response.status_code == 200

Components:
    - TestClient:        HTTP client driving the ASGI app directly
    - TestResponse:      Captured response with assertion helpers
    - make_test_scope:   Minimal ASGI http scope builder
    - make_test_receive: ASGI receive callable over a fixed body
    - make_test_request: Request object without the app
"""

from .client import TestClient, TestResponse
from .utils import make_test_receive, make_test_request, make_test_scope

__all__ = [
    "TestClient",
    "TestResponse",
    "make_test_scope",
    "make_test_receive",
    "make_test_request",
]
