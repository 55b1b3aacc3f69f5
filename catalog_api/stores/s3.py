"""
S3-compatible blob store.

Reads versioned artifacts from any S3-compatible bucket (AWS S3,
Cloudflare R2, MinIO) through boto3. boto3 is blocking, so every call
runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional

from .core import DEFAULT_CHUNK_SIZE, BlobObject, BlobStore

logger = logging.getLogger("catalog_api.stores.s3")

# get_object response field -> http metadata field
_METADATA_FIELDS = {
    "ContentType": "content_type",
    "ContentLanguage": "content_language",
    "ContentDisposition": "content_disposition",
    "ContentEncoding": "content_encoding",
    "CacheControl": "cache_control",
    "ExpiresString": "expires",
}

_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


def create_s3_client(
    *,
    endpoint_url: Optional[str] = None,
    region: Optional[str] = None,
    profile: Optional[str] = None,
) -> Any:
    """
    Create a boto3 S3 client.

    Args:
        endpoint_url: Custom endpoint for S3-compatible services
        region: Optional region name
        profile: Optional AWS profile for the session

    Returns:
        Boto3 S3 client.
    """
    import boto3

    session_kwargs: Dict[str, str] = {}
    if profile:
        session_kwargs["profile_name"] = profile
    if region:
        session_kwargs["region_name"] = region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3", endpoint_url=endpoint_url)


class S3BlobStore(BlobStore):
    """Blob store over one S3-compatible bucket."""

    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: Optional[str] = None,
        region: Optional[str] = None,
        client: Any = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region
        self.chunk_size = chunk_size
        self._client = client

    async def initialize(self) -> None:
        if self._client is None:
            self._client = create_s3_client(endpoint_url=self.endpoint_url, region=self.region)
        logger.info("S3 blob store ready: bucket=%s endpoint=%s", self.bucket, self.endpoint_url or "aws")

    async def shutdown(self) -> None:
        client, self._client = self._client, None
        close = getattr(client, "close", None)
        if close is not None:
            await asyncio.to_thread(close)

    async def _get(self, key: str) -> Optional[BlobObject]:
        if self._client is None:
            raise RuntimeError("S3 blob store used before initialize()")
        from botocore.exceptions import ClientError

        try:
            result = await asyncio.to_thread(self._client.get_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise

        metadata = {
            field: str(result[name])
            for name, field in _METADATA_FIELDS.items()
            if result.get(name)
        }
        return BlobObject(
            key=key,
            size=int(result.get("ContentLength", 0)),
            etag=result.get("ETag", ""),
            body=self._stream(result["Body"]),
            http_metadata=metadata,
        )

    async def _stream(self, body: Any) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await asyncio.to_thread(body.read, self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            body.close()
