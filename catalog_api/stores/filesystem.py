"""
Filesystem stores - persistent, directory-backed.

Layout under each root mirrors the canonical storage keys::

    <root>/
      catalog/tools/registry.json
      catalog/tools/x/latest.json
      catalog/tools/x/2.1.0/pkg.tar.gz
      .meta/catalog/tools/x/2.1.0/pkg.tar.gz.json   ← blob http metadata

A key that resolves outside the root reads as missing.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import AsyncIterator, Dict, Optional, Union

import aiofiles
import aiofiles.os

from .core import DEFAULT_CHUNK_SIZE, HTTP_METADATA_FIELDS, BlobObject, BlobStore, KVStore

logger = logging.getLogger("catalog_api.stores.filesystem")

META_DIR = ".meta"


class _RootedPaths:
    """Maps canonical keys to paths confined to one root directory."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root).expanduser().resolve()

    def path_for(self, key: str) -> Optional[Path]:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root) or path == self.root:
            return None
        return path

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def write_atomic(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        try:
            tmp.write_bytes(data)
            tmp.replace(path)  # atomic on POSIX
        except Exception:
            if tmp.exists():
                tmp.unlink()
            raise


class FilesystemBlobStore(BlobStore):
    """
    Blob store over a local directory.

    The etag is derived from file size and mtime, so it changes whenever
    the file is rewritten and never needs a full read.
    """

    def __init__(self, root: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._paths = _RootedPaths(root)
        self.chunk_size = chunk_size

    @property
    def root(self) -> Path:
        return self._paths.root

    async def initialize(self) -> None:
        self._paths.ensure_root()
        logger.info("Filesystem blob store ready: %s", self.root)

    def put(self, key: str, data: Union[bytes, str], **http_metadata: str) -> Path:
        """Write an object and its metadata sidecar (seeding / local publishing)."""
        path = self._paths.path_for(key)
        if path is None:
            raise ValueError(f"Key escapes store root: {key!r}")
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._paths.write_atomic(path, data)
        meta = {k: v for k, v in http_metadata.items() if k in HTTP_METADATA_FIELDS}
        if meta:
            self._paths.write_atomic(self._meta_path(key), json.dumps(meta).encode("utf-8"))
        return path

    def _meta_path(self, key: str) -> Path:
        return self.root / META_DIR / f"{key}.json"

    async def _get(self, key: str) -> Optional[BlobObject]:
        path = self._paths.path_for(key)
        if path is None or not await aiofiles.os.path.isfile(path):
            return None

        stat = await aiofiles.os.stat(path)
        digest = hashlib.sha256(f"{stat.st_mtime_ns}:{stat.st_size}".encode()).hexdigest()[:32]

        return BlobObject(
            key=key,
            size=stat.st_size,
            etag=f'"{digest}"',
            body=self._stream(path),
            http_metadata=await self._read_meta(key),
        )

    async def _read_meta(self, key: str) -> Dict[str, str]:
        meta_path = self._meta_path(key)
        if not await aiofiles.os.path.isfile(meta_path):
            return {}
        async with aiofiles.open(meta_path, "rb") as f:
            data = json.loads(await f.read())
        return {k: str(v) for k, v in data.items() if k in HTTP_METADATA_FIELDS}

    async def _stream(self, path: Path) -> AsyncIterator[bytes]:
        async with aiofiles.open(path, "rb") as f:
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk


class FilesystemKVStore(KVStore):
    """Key-value store with one file per key."""

    def __init__(self, root: Union[str, Path]) -> None:
        self._paths = _RootedPaths(root)

    @property
    def root(self) -> Path:
        return self._paths.root

    async def initialize(self) -> None:
        self._paths.ensure_root()
        logger.info("Filesystem kv store ready: %s", self.root)

    def put(self, key: str, value: Union[bytes, str]) -> Path:
        path = self._paths.path_for(key)
        if path is None:
            raise ValueError(f"Key escapes store root: {key!r}")
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._paths.write_atomic(path, value)
        return path

    async def _get(self, key: str) -> Optional[bytes]:
        path = self._paths.path_for(key)
        if path is None or not await aiofiles.os.path.isfile(path):
            return None
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
