"""
Catalog Stores (stores/)

Tests memory, filesystem, redis and s3 backends plus the shared
error wrapping and the backend factories.
"""

import io
import json
import logging

import pytest
from botocore.exceptions import ClientError

from catalog_api.config import CatalogConfig
from catalog_api.faults import StoreFault
from catalog_api.stores import (
    BlobObject,
    FilesystemBlobStore,
    FilesystemKVStore,
    MemoryBlobStore,
    MemoryKVStore,
    RedisKVStore,
    S3BlobStore,
    build_blob_store,
    build_kv_store,
    generate_etag,
)


# ============================================================================
# Fakes
# ============================================================================


class FakeRedis:
    """Minimal stand-in for redis.asyncio.Redis."""

    def __init__(self, data=None, fail=False):
        self.data = data or {}
        self.fail = fail
        self.closed = False

    async def get(self, key):
        if self.fail:
            raise ConnectionError("connection refused")
        return self.data.get(key)

    async def ping(self):
        if self.fail:
            raise ConnectionError("connection refused")
        return True

    async def aclose(self):
        self.closed = True


class FakeS3:
    """Minimal stand-in for a boto3 S3 client."""

    def __init__(self, objects=None):
        self.objects = objects or {}
        self.calls = []

    def get_object(self, Bucket, Key):
        self.calls.append((Bucket, Key))
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        data, extra = self.objects[Key]
        return {
            "Body": io.BytesIO(data),
            "ContentLength": len(data),
            "ETag": '"s3etag"',
            **extra,
        }


class ExplodingKV(MemoryKVStore):
    async def _get(self, key):
        raise TimeoutError("backend timed out")


# ============================================================================
# Core
# ============================================================================

class TestBlobObject:

    @pytest.mark.asyncio
    async def test_write_http_metadata(self):
        obj = BlobObject(
            key="k", size=0, etag='"e"', body=None,
            http_metadata={"content_type": "text/markdown", "cache_control": "no-store", "expires": ""},
        )
        headers = {}
        obj.write_http_metadata(headers)
        assert headers == {"content-type": "text/markdown", "cache-control": "no-store"}

    def test_write_http_metadata_skips_non_latin1(self, caplog):
        obj = BlobObject(
            key="catalog/a/b/1/f.bin", size=0, etag='"e"', body=None,
            http_metadata={"content_disposition": "inline; filename=\u00fcber-\u2603.txt", "content_type": "text/plain"},
        )
        headers = {}
        with caplog.at_level(logging.WARNING, logger="catalog_api.stores"):
            obj.write_http_metadata(headers)
        assert headers == {"content-type": "text/plain"}
        assert any("content_disposition" in r.getMessage() for r in caplog.records)

    def test_write_http_metadata_keeps_latin1(self):
        obj = BlobObject(
            key="k", size=0, etag='"e"', body=None,
            http_metadata={"content_disposition": "inline; filename=\u00fcber.txt"},
        )
        headers = {}
        obj.write_http_metadata(headers)
        assert headers == {"content-disposition": "inline; filename=\u00fcber.txt"}

    def test_generate_etag_quoted_and_stable(self):
        etag = generate_etag(b"abc")
        assert etag.startswith('"') and etag.endswith('"')
        assert etag == generate_etag(b"abc")
        assert etag != generate_etag(b"abd")


class TestErrorWrapping:

    @pytest.mark.asyncio
    async def test_backend_error_becomes_store_fault(self):
        store = ExplodingKV()
        with pytest.raises(StoreFault) as exc_info:
            await store.get("catalog/a/registry.json")
        assert exc_info.value.key == "catalog/a/registry.json"
        assert exc_info.value.store == "ExplodingKV"
        assert isinstance(exc_info.value.cause, TimeoutError)


# ============================================================================
# Memory
# ============================================================================

class TestMemoryStores:

    @pytest.mark.asyncio
    async def test_kv_roundtrip_and_missing(self):
        kv = MemoryKVStore()
        kv.put("a", "value")
        assert await kv.get("a") == b"value"
        assert await kv.get("b") is None
        assert "a" in kv and len(kv) == 1
        assert kv.delete("a") is True
        assert await kv.get("a") is None

    @pytest.mark.asyncio
    async def test_blob_get(self):
        blobs = MemoryBlobStore()
        etag = blobs.put("catalog/a/b/1/x.json", b"{}", content_type="application/json")
        obj = await blobs.get("catalog/a/b/1/x.json")
        assert obj.size == 2
        assert obj.etag == etag
        assert obj.http_metadata == {"content_type": "application/json"}
        assert await obj.read() == b"{}"

    @pytest.mark.asyncio
    async def test_blob_missing(self):
        assert await MemoryBlobStore().get("nope") is None

    def test_blob_rejects_unknown_metadata(self):
        with pytest.raises(ValueError):
            MemoryBlobStore().put("k", b"", content_md5="x")


# ============================================================================
# Filesystem
# ============================================================================

class TestFilesystemStores:

    @pytest.mark.asyncio
    async def test_kv_read(self, tmp_path):
        kv = FilesystemKVStore(tmp_path)
        await kv.initialize()
        kv.put("catalog/skills/registry.json", '{"items":[]}')
        assert (tmp_path / "catalog" / "skills" / "registry.json").exists()
        assert await kv.get("catalog/skills/registry.json") == b'{"items":[]}'
        assert await kv.get("catalog/other/registry.json") is None

    @pytest.mark.asyncio
    async def test_kv_escape_reads_missing(self, tmp_path):
        (tmp_path / "secret").write_text("x")
        kv = FilesystemKVStore(tmp_path / "root")
        await kv.initialize()
        assert await kv.get("../secret") is None

    def test_put_rejects_escape(self, tmp_path):
        with pytest.raises(ValueError):
            FilesystemKVStore(tmp_path).put("../x", b"")

    @pytest.mark.asyncio
    async def test_blob_read_with_metadata(self, tmp_path):
        blobs = FilesystemBlobStore(tmp_path, chunk_size=4)
        await blobs.initialize()
        blobs.put("catalog/tools/x/1.0/a.yaml", b"name: x\n", content_type="application/x-yaml")
        assert (tmp_path / ".meta" / "catalog/tools/x/1.0/a.yaml.json").exists()

        obj = await blobs.get("catalog/tools/x/1.0/a.yaml")
        assert obj.size == 8
        assert obj.etag.startswith('"')
        assert obj.http_metadata == {"content_type": "application/x-yaml"}
        assert await obj.read() == b"name: x\n"

    @pytest.mark.asyncio
    async def test_blob_without_metadata(self, tmp_path):
        blobs = FilesystemBlobStore(tmp_path)
        path = tmp_path / "catalog" / "a" / "b" / "1" / "f.bin"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"\x00\x01")
        obj = await blobs.get("catalog/a/b/1/f.bin")
        assert obj.http_metadata == {}
        assert await obj.read() == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_blob_directory_is_missing(self, tmp_path):
        blobs = FilesystemBlobStore(tmp_path)
        (tmp_path / "catalog" / "dir").mkdir(parents=True)
        assert await blobs.get("catalog/dir") is None

    @pytest.mark.asyncio
    async def test_corrupt_sidecar_is_store_fault(self, tmp_path):
        blobs = FilesystemBlobStore(tmp_path)
        blobs.put("catalog/a/b/1/f.json", b"{}")
        sidecar = tmp_path / ".meta" / "catalog/a/b/1/f.json.json"
        sidecar.parent.mkdir(parents=True, exist_ok=True)
        sidecar.write_text("{not json")
        with pytest.raises(StoreFault):
            await blobs.get("catalog/a/b/1/f.json")


# ============================================================================
# Redis
# ============================================================================

class TestRedisKVStore:

    @pytest.mark.asyncio
    async def test_get_with_prefix(self):
        fake = FakeRedis({"pfx:catalog/a/registry.json": b"[]"})
        kv = RedisKVStore(key_prefix="pfx:", client=fake)
        await kv.initialize()
        assert await kv.get("catalog/a/registry.json") == b"[]"
        assert await kv.get("catalog/b/registry.json") is None

    @pytest.mark.asyncio
    async def test_failure_wrapped(self):
        kv = RedisKVStore(client=FakeRedis(fail=True))
        with pytest.raises(StoreFault):
            await kv.get("k")

    @pytest.mark.asyncio
    async def test_used_before_initialize(self):
        with pytest.raises(StoreFault):
            await RedisKVStore().get("k")

    @pytest.mark.asyncio
    async def test_health_and_shutdown(self):
        fake = FakeRedis()
        kv = RedisKVStore(client=fake)
        assert await kv.health_check() is True
        await kv.shutdown()
        assert fake.closed is True
        assert await kv.health_check() is False

    @pytest.mark.asyncio
    async def test_unhealthy(self):
        assert await RedisKVStore(client=FakeRedis(fail=True)).health_check() is False


# ============================================================================
# S3
# ============================================================================

class TestS3BlobStore:

    @pytest.mark.asyncio
    async def test_get_object(self):
        fake = FakeS3({
            "catalog/a/b/1/x.json": (b'{"a":1}', {"ContentType": "application/json", "CacheControl": "no-cache"}),
        })
        store = S3BlobStore("bucket", client=fake, chunk_size=3)
        await store.initialize()
        obj = await store.get("catalog/a/b/1/x.json")
        assert fake.calls == [("bucket", "catalog/a/b/1/x.json")]
        assert obj.size == 7
        assert obj.etag == '"s3etag"'
        assert obj.http_metadata == {"content_type": "application/json", "cache_control": "no-cache"}
        assert await obj.read() == b'{"a":1}'

    @pytest.mark.asyncio
    async def test_missing_key(self):
        store = S3BlobStore("bucket", client=FakeS3())
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_other_client_error_wrapped(self):
        class DeniedS3(FakeS3):
            def get_object(self, Bucket, Key):
                raise ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "GetObject")

        store = S3BlobStore("bucket", client=DeniedS3())
        with pytest.raises(StoreFault):
            await store.get("k")


# ============================================================================
# Factories
# ============================================================================

class TestFactories:

    def test_memory_defaults(self):
        config = CatalogConfig()
        assert isinstance(build_blob_store(config), MemoryBlobStore)
        assert isinstance(build_kv_store(config), MemoryKVStore)

    def test_filesystem(self, tmp_path):
        config = CatalogConfig(
            blob_backend="filesystem", blob_root=str(tmp_path / "b"),
            kv_backend="filesystem", kv_root=str(tmp_path / "k"),
        )
        assert isinstance(build_blob_store(config), FilesystemBlobStore)
        assert isinstance(build_kv_store(config), FilesystemKVStore)

    def test_remote_backends(self):
        config = CatalogConfig(blob_backend="s3", s3_bucket="artifacts", kv_backend="redis")
        blobs = build_blob_store(config)
        assert isinstance(blobs, S3BlobStore)
        assert blobs.bucket == "artifacts"
        assert isinstance(build_kv_store(config), RedisKVStore)
