"""
In-memory stores - ephemeral, test-friendly.

Both stores expose ``put`` so tests and local runs can seed them the way
the (external) publish pipeline would.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Union

from .core import HTTP_METADATA_FIELDS, BlobObject, BlobStore, KVStore, generate_etag, iter_bytes


class MemoryBlobStore(BlobStore):
    """Dict-backed blob store."""

    __slots__ = ("_objects",)

    def __init__(self) -> None:
        # key -> (data, etag, http metadata)
        self._objects: Dict[str, Tuple[bytes, str, Dict[str, str]]] = {}

    def put(self, key: str, data: Union[bytes, str], **http_metadata: str) -> str:
        """Store *data* under *key*; returns the quoted etag."""
        unknown = set(http_metadata) - set(HTTP_METADATA_FIELDS)
        if unknown:
            raise ValueError(f"Unknown http metadata fields: {', '.join(sorted(unknown))}")
        if isinstance(data, str):
            data = data.encode("utf-8")
        etag = generate_etag(data)
        self._objects[key] = (data, etag, dict(http_metadata))
        return etag

    def delete(self, key: str) -> bool:
        return self._objects.pop(key, None) is not None

    def __contains__(self, key: str) -> bool:
        return key in self._objects

    def __len__(self) -> int:
        return len(self._objects)

    async def _get(self, key: str) -> Optional[BlobObject]:
        entry = self._objects.get(key)
        if entry is None:
            return None
        data, etag, metadata = entry
        return BlobObject(
            key=key,
            size=len(data),
            etag=etag,
            body=iter_bytes(data),
            http_metadata=dict(metadata),
        )


class MemoryKVStore(KVStore):
    """Dict-backed key-value store."""

    __slots__ = ("_values",)

    def __init__(self) -> None:
        self._values: Dict[str, bytes] = {}

    def put(self, key: str, value: Union[bytes, str]) -> None:
        if isinstance(value, str):
            value = value.encode("utf-8")
        self._values[key] = value

    def delete(self, key: str) -> bool:
        return self._values.pop(key, None) is not None

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    async def _get(self, key: str) -> Optional[bytes]:
        return self._values.get(key)
