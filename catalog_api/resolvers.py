"""
Resolvers - the three read strategies of the catalog.

- RegistryResolver: mutable per-kind listing from the kv store, short cache
- LatestResolver: ``latest`` alias -> 302 to the canonical versioned URL
- ArtifactResolver: immutable versioned object from the blob store,
  cached forever

Each resolver derives its key(s) with :mod:`catalog_api.keys`, makes at
most one backing-store call and either returns a :class:`Response` or
raises a fault for the exception middleware to render.
"""

from __future__ import annotations

import json
import logging
from typing import Optional
from urllib.parse import quote

from ._datastructures import URL
from .config import ContentTypeTable
from .faults import CatalogNotFound, InvalidLatestPointer
from .keys import KEY_ROOT, artifact_key, latest_key, registry_key
from .response import Response
from .stores import BlobStore, KVStore

logger = logging.getLogger("catalog_api.resolvers")

JSON_MEDIA_TYPE = "application/json; charset=utf-8"

# Left unescaped in path components, alongside alphanumerics and "-_.~".
_COMPONENT_SAFE = "!*'()"


def encode_component(value: str) -> str:
    """Percent-encode one URL path component (``/`` included)."""
    return quote(value, safe=_COMPONENT_SAFE)


def canonical_artifact_path(kind: str, entry_id: str, version: str, raw_file: str) -> str:
    """
    Root-based path of a versioned artifact.

    ``kind``, ``entry_id`` and ``version`` are encoded individually;
    ``raw_file`` is appended as received so nested paths keep their slashes.
    """
    return "/" + "/".join((
        encode_component(kind),
        encode_component(entry_id),
        encode_component(version),
        raw_file.lstrip("/"),
    ))


def parse_latest_pointer(raw: bytes, key: str) -> str:
    """
    Extract the version from a latest pointer.

    Raises:
        InvalidLatestPointer: payload is not JSON, not an object, or has no
            non-empty string ``version``.
    """
    try:
        pointer = json.loads(raw)
    except ValueError as e:
        raise InvalidLatestPointer(key, reason=f"unparsable: {e}") from e

    if not isinstance(pointer, dict):
        raise InvalidLatestPointer(key, reason="not a JSON object")

    version = pointer.get("version")
    if not isinstance(version, str) or not version:
        raise InvalidLatestPointer(key, reason="missing version")
    return version


class RegistryResolver:
    """Serves ``catalog/<kind>/registry.json`` verbatim from the kv store."""

    def __init__(self, kv_store: KVStore, *, key_root: str = KEY_ROOT, max_age: int = 60):
        self.kv_store = kv_store
        self.key_root = key_root
        self.max_age = max_age

    async def resolve(self, kind: str) -> Response:
        key = registry_key(kind, self.key_root)
        listing = await self.kv_store.get(key)
        if not listing:
            raise CatalogNotFound(key)

        response = Response(listing, status=200, media_type=JSON_MEDIA_TYPE)
        response.cache_control(public=True, max_age=self.max_age)
        return response


class LatestResolver:
    """
    Resolves ``/<kind>/<id>/latest/<file>`` to a concrete version.

    The answer is a redirect, not the artifact itself: downstream caches
    keep the long-lived versioned response while only the short-lived
    alias redirect tracks what is current. A pointer naming a version the
    blob store lacks is not checked here; following the redirect 404s.
    """

    def __init__(self, kv_store: KVStore, *, key_root: str = KEY_ROOT, max_age: int = 30):
        self.kv_store = kv_store
        self.key_root = key_root
        self.max_age = max_age

    async def resolve_version(self, kind: str, entry_id: str) -> str:
        key = latest_key(kind, entry_id, self.key_root)
        raw = await self.kv_store.get(key)
        if not raw:
            raise CatalogNotFound(key)
        return parse_latest_pointer(raw, key)

    async def resolve(self, base: URL, kind: str, entry_id: str, raw_file: str) -> Response:
        """
        Args:
            base: URL of the incoming request; only its origin is kept
            kind: Decoded kind
            entry_id: Decoded id
            raw_file: File path as requested (still percent-encoded)
        """
        version = await self.resolve_version(kind, entry_id)
        location = base.join(canonical_artifact_path(kind, entry_id, version, raw_file))
        logger.debug("latest %s/%s -> %s", kind, entry_id, version)

        response = Response.redirect(location, status=302)
        response.cache_control(public=True, max_age=self.max_age)
        return response


class ArtifactResolver:
    """Serves ``catalog/<kind>/<id>/<version>/<file>`` from the blob store."""

    def __init__(
        self,
        blob_store: BlobStore,
        *,
        key_root: str = KEY_ROOT,
        max_age: int = 31536000,
        content_types: Optional[ContentTypeTable] = None,
    ):
        self.blob_store = blob_store
        self.key_root = key_root
        self.max_age = max_age
        self.content_types = content_types or ContentTypeTable()

    async def resolve(self, kind: str, entry_id: str, version: str, file: str) -> Response:
        key = artifact_key(kind, entry_id, version, file, self.key_root)
        obj = await self.blob_store.get(key)
        if obj is None:
            raise CatalogNotFound(key)

        headers: dict = {}
        obj.write_http_metadata(headers)
        if not headers.get("content-type"):
            headers["content-type"] = self.content_types.guess(file)
        headers["content-length"] = str(obj.size)

        response = Response(obj.body, status=200, headers=headers)
        if obj.etag:
            response.set_etag(obj.etag)
        # Versioned keys are append-only; stored cache-control is overridden.
        response.cache_control(public=True, max_age=self.max_age, immutable=True)
        return response
