"""
Catalog stores - Core types and backend contracts.

Two backing stores sit behind the read layer:

- **BlobStore** - immutable versioned artifacts plus http metadata
- **KVStore** - mutable registry listings and latest pointers

Both expose simple async point reads. A missing key reads as ``None``;
any backend failure is raised as :class:`StoreFault` and never retried.
"""

from __future__ import annotations

import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, MutableMapping, Optional

from ..faults import Fault, StoreFault

logger = logging.getLogger("catalog_api.stores")

# http metadata fields a blob may carry, in header order.
HTTP_METADATA_FIELDS = (
    "content_type",
    "content_language",
    "content_disposition",
    "content_encoding",
    "cache_control",
    "expires",
)

DEFAULT_CHUNK_SIZE = 64 * 1024


def generate_etag(content: bytes) -> str:
    """Quoted strong validator derived from content."""
    return f'"{hashlib.sha256(content).hexdigest()[:32]}"'


async def iter_bytes(data: bytes, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield an in-memory payload in chunks."""
    for start in range(0, len(data), chunk_size):
        yield data[start:start + chunk_size]


# ============================================================================
# Blob Object
# ============================================================================

@dataclass
class BlobObject:
    """
    One object read from the blob store.

    Attributes:
        key: Canonical storage key
        size: Body size in bytes
        etag: Quoted strong validator
        body: Async iterator over the object's bytes (single use)
        http_metadata: Stored http metadata, keyed by HTTP_METADATA_FIELDS
    """

    key: str
    size: int
    etag: str
    body: AsyncIterator[bytes]
    http_metadata: Dict[str, str] = field(default_factory=dict)

    def write_http_metadata(self, headers: MutableMapping[str, str]) -> None:
        """
        Copy stored http metadata into *headers* as lowercase header names.

        Values that cannot be sent as latin-1 header bytes are dropped with
        a warning; they come from the write side and are not validated there.
        """
        for name in HTTP_METADATA_FIELDS:
            value = self.http_metadata.get(name)
            if not value:
                continue
            try:
                value.encode("latin-1")
            except UnicodeEncodeError:
                logger.warning("Dropping %s of '%s': not latin-1 encodable", name, self.key)
                continue
            headers[name.replace("_", "-")] = value

    async def read(self) -> bytes:
        """Drain the body into memory."""
        return b"".join([chunk async for chunk in self.body])


# ============================================================================
# Backend Contracts
# ============================================================================

class _Store(ABC):
    """Shared lifecycle and error wrapping for both store kinds."""

    kind = "store"

    @property
    def name(self) -> str:
        return type(self).__name__

    async def initialize(self) -> None:
        """Open connections / verify roots. Default: nothing to do."""

    async def shutdown(self) -> None:
        """Release connections. Default: nothing to do."""

    async def health_check(self) -> bool:
        return True

    def _wrap(self, key: str, error: Exception) -> StoreFault:
        logger.warning("%s %s read of '%s' failed: %s", self.name, self.kind, key, error)
        return StoreFault(self.name, key, error)


class BlobStore(_Store):
    """Read-only view of the artifact blob store."""

    kind = "blob"

    async def get(self, key: str) -> Optional[BlobObject]:
        """Fetch one object, or ``None`` if *key* does not exist."""
        try:
            return await self._get(key)
        except Fault:
            raise
        except Exception as e:
            raise self._wrap(key, e) from e

    @abstractmethod
    async def _get(self, key: str) -> Optional[BlobObject]:
        ...


class KVStore(_Store):
    """Read-only view of the registry / latest-pointer key-value store."""

    kind = "kv"

    async def get(self, key: str) -> Optional[bytes]:
        """Fetch one value, or ``None`` if *key* does not exist."""
        try:
            return await self._get(key)
        except Fault:
            raise
        except Exception as e:
            raise self._wrap(key, e) from e

    @abstractmethod
    async def _get(self, key: str) -> Optional[bytes]:
        ...
