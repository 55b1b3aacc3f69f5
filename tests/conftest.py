"""
Shared test fixtures and helpers for the catalog test suite.
"""

import json
from typing import Any, Dict, Optional

import pytest

from catalog_api.app import create_app
from catalog_api.config import CatalogConfig
from catalog_api.stores import MemoryBlobStore, MemoryKVStore
from catalog_api.testing import TestClient


CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET,POST,OPTIONS",
    "access-control-allow-headers": "Content-Type, Authorization, X-Hub-Signature-256",
}

REGISTRY_BODY = b'{"items":[{"id":"my-skill","latest":"1.0.0"}]}'


# ============================================================================
# Seeding Helpers
# ============================================================================


def seed_registry(kv: MemoryKVStore, kind: str = "skills", body: bytes = REGISTRY_BODY) -> None:
    kv.put(f"catalog/{kind}/registry.json", body)


def seed_latest(kv: MemoryKVStore, kind: str, entry_id: str, pointer: Any) -> None:
    """Store a latest pointer; dicts are JSON-encoded, str/bytes stored as-is."""
    value = json.dumps(pointer) if isinstance(pointer, dict) else pointer
    kv.put(f"catalog/{kind}/{entry_id}/latest.json", value)


def seed_artifact(
    blobs: MemoryBlobStore,
    kind: str,
    entry_id: str,
    version: str,
    file: str,
    data: bytes = b"# hello\n",
    **http_metadata: str,
) -> str:
    return blobs.put(f"catalog/{kind}/{entry_id}/{version}/{file}", data, **http_metadata)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def kv_store() -> MemoryKVStore:
    return MemoryKVStore()


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def config() -> CatalogConfig:
    return CatalogConfig()


@pytest.fixture
def app(config, blob_store, kv_store):
    return create_app(config, blob_store=blob_store, kv_store=kv_store)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def make_client(
    overrides: Optional[Dict[str, Any]] = None,
    *,
    blob_store: Optional[MemoryBlobStore] = None,
    kv_store: Optional[MemoryKVStore] = None,
    **client_kwargs,
) -> TestClient:
    """Client over a fresh app with config overrides applied."""
    config = CatalogConfig(**(overrides or {}))
    app = create_app(
        config,
        blob_store=blob_store if blob_store is not None else MemoryBlobStore(),
        kv_store=kv_store if kv_store is not None else MemoryKVStore(),
    )
    return TestClient(app, **client_kwargs)


def assert_cors(response) -> None:
    for name, value in CORS_HEADERS.items():
        assert response.headers.get(name) == value, name
