"""
Catalog stores - pluggable backends for the two backing stores.

Blob stores (immutable artifacts):

- **MemoryBlobStore** - ephemeral, test-friendly
- **FilesystemBlobStore** - local directory mirroring storage keys
- **S3BlobStore** - any S3-compatible bucket via boto3

Key-value stores (registry listings, latest pointers):

- **MemoryKVStore** - ephemeral, test-friendly
- **FilesystemKVStore** - one file per key
- **RedisKVStore** - redis.asyncio connection pool
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .core import (
    BlobObject,
    BlobStore,
    KVStore,
    HTTP_METADATA_FIELDS,
    generate_etag,
)
from .memory import MemoryBlobStore, MemoryKVStore
from .filesystem import FilesystemBlobStore, FilesystemKVStore
from .redis import RedisKVStore
from .s3 import S3BlobStore

if TYPE_CHECKING:
    from ..config import CatalogConfig


def build_blob_store(config: "CatalogConfig") -> BlobStore:
    """Construct the blob backend named by ``config.blob_backend``."""
    if config.blob_backend == "filesystem":
        return FilesystemBlobStore(config.blob_root)
    if config.blob_backend == "s3":
        return S3BlobStore(
            config.s3_bucket,
            endpoint_url=config.s3_endpoint_url,
            region=config.s3_region,
        )
    return MemoryBlobStore()


def build_kv_store(config: "CatalogConfig") -> KVStore:
    """Construct the key-value backend named by ``config.kv_backend``."""
    if config.kv_backend == "filesystem":
        return FilesystemKVStore(config.kv_root)
    if config.kv_backend == "redis":
        return RedisKVStore(config.redis_url, key_prefix=config.redis_key_prefix)
    return MemoryKVStore()


__all__ = [
    "BlobObject",
    "BlobStore",
    "KVStore",
    "HTTP_METADATA_FIELDS",
    "generate_etag",
    "MemoryBlobStore",
    "MemoryKVStore",
    "FilesystemBlobStore",
    "FilesystemKVStore",
    "RedisKVStore",
    "S3BlobStore",
    "build_blob_store",
    "build_kv_store",
]
