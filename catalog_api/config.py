"""
Config system - Layered typed configuration with validation.

Sources, later overriding earlier:
1. Dataclass defaults
2. ``.env`` file (python-dotenv)
3. Environment variables (``CATALOG_*`` prefix)
4. Manual overrides

The cross-origin header set and the content-type fallback table live here
as value objects handed to the app, not as module globals, so tests can
swap them.
"""

from __future__ import annotations

import os
from dataclasses import MISSING, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import dotenv_values

from .faults import ConfigFault


BLOB_BACKENDS = ("memory", "filesystem", "s3")
KV_BACKENDS = ("memory", "filesystem", "redis")

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off", "")

# Unprefixed names honoured for compatibility with existing deployments.
_ALIASES = {"INGEST_ENABLED": "ingest_enabled"}


@dataclass(frozen=True)
class CORSPolicy:
    """Fixed cross-origin header set attached to every response."""

    allow_origin: str = "*"
    allow_methods: str = "GET,POST,OPTIONS"
    allow_headers: str = "Content-Type, Authorization, X-Hub-Signature-256"

    def headers(self) -> Dict[str, str]:
        return {
            "access-control-allow-origin": self.allow_origin,
            "access-control-allow-methods": self.allow_methods,
            "access-control-allow-headers": self.allow_headers,
        }


@dataclass(frozen=True)
class ContentTypeTable:
    """
    Content-type fallback for artifacts stored without one.

    Rules are checked in order against the file name suffix; the first
    match wins, otherwise ``default`` applies.
    """

    rules: Tuple[Tuple[Tuple[str, ...], str], ...] = (
        ((".json",), "application/json; charset=utf-8"),
        ((".yaml", ".yml"), "text/yaml; charset=utf-8"),
    )
    default: str = "application/octet-stream"

    def guess(self, file: str) -> str:
        for suffixes, content_type in self.rules:
            if file.endswith(suffixes):
                return content_type
        return self.default


@dataclass(frozen=True)
class CatalogConfig:
    """
    Validated runtime configuration.

    Attributes:
        worker_name: Identity reported by the health endpoint.
        ingest_enabled: Feature flag for the (unbuilt) publish pipeline.
        legacy_prefix: Path prefix accepted ahead of every route; empty disables it.
        catalog_page_url: Human-facing page the root redirects to.
        key_root: First segment of every storage key.
        cors: Cross-origin header set.
        content_types: Artifact content-type fallback table.
        registry_max_age: Cache lifetime of registry listings (seconds).
        latest_max_age: Cache lifetime of latest-alias redirects (seconds).
        root_max_age: Cache lifetime of the root redirect (seconds).
        artifact_max_age: Cache lifetime of versioned artifacts (seconds).
        blob_backend: ``memory``, ``filesystem`` or ``s3``.
        kv_backend: ``memory``, ``filesystem`` or ``redis``.
    """

    worker_name: str = "catalog-api"
    ingest_enabled: bool = False
    legacy_prefix: str = "/catalog"
    catalog_page_url: str = "https://okham.io/catalogs/"
    key_root: str = "catalog"
    cors: CORSPolicy = field(default_factory=CORSPolicy)
    content_types: ContentTypeTable = field(default_factory=ContentTypeTable)

    registry_max_age: int = 60
    latest_max_age: int = 30
    root_max_age: int = 300
    artifact_max_age: int = 31536000

    blob_backend: str = "memory"
    blob_root: Optional[str] = None
    s3_bucket: Optional[str] = None
    s3_endpoint_url: Optional[str] = None
    s3_region: Optional[str] = None

    kv_backend: str = "memory"
    kv_root: Optional[str] = None
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = ""

    debug: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if self.blob_backend not in BLOB_BACKENDS:
            raise ConfigFault("blob_backend", f"expected one of {', '.join(BLOB_BACKENDS)}")
        if self.kv_backend not in KV_BACKENDS:
            raise ConfigFault("kv_backend", f"expected one of {', '.join(KV_BACKENDS)}")
        if self.blob_backend == "filesystem" and not self.blob_root:
            raise ConfigFault("blob_root", "required by the filesystem blob backend")
        if self.kv_backend == "filesystem" and not self.kv_root:
            raise ConfigFault("kv_root", "required by the filesystem kv backend")
        if self.blob_backend == "s3" and not self.s3_bucket:
            raise ConfigFault("s3_bucket", "required by the s3 blob backend")
        for name in ("registry_max_age", "latest_max_age", "root_max_age", "artifact_max_age"):
            if getattr(self, name) < 0:
                raise ConfigFault(name, "must be zero or positive")
        prefix = self.legacy_prefix.strip().strip("/")
        object.__setattr__(self, "legacy_prefix", f"/{prefix}" if prefix else "")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "CatalogConfig":
        """Build config from the process environment (and optional .env file)."""
        return ConfigLoader.load(env_file=env_file).to_config()

    def with_overrides(self, **changes: Any) -> "CatalogConfig":
        return replace(self, **changes)


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > defaults
    """

    def __init__(self, env_prefix: str = "CATALOG_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        env_prefix: str = "CATALOG_",
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from all sources.

        Args:
            env_file: Path to a .env file (skipped if missing)
            overrides: Manual overrides (highest precedence)
            env_prefix: Prefix for environment variables
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        if env_file and Path(env_file).exists():
            loader._merge_prefixed(dotenv_values(env_file))

        loader._merge_prefixed(os.environ if environ is None else environ)

        if overrides:
            loader.config_data.update(overrides)

        return loader

    def _merge_prefixed(self, values: Mapping[str, Optional[str]]):
        for key, value in values.items():
            if value is None:
                continue
            if key in _ALIASES:
                self.config_data.setdefault(_ALIASES[key], value)
            elif key.startswith(self.env_prefix):
                self.config_data[key[len(self.env_prefix):].lower()] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self.config_data.get(name, default)

    def to_config(self) -> CatalogConfig:
        """Coerce merged values onto :class:`CatalogConfig` and validate."""
        kwargs: Dict[str, Any] = {}
        for f in fields(CatalogConfig):
            if f.name not in self.config_data:
                continue
            raw = self.config_data[f.name]
            default = f.default if f.default is not MISSING else f.default_factory()
            kwargs[f.name] = _coerce(f.name, raw, default)
        return CatalogConfig(**kwargs)


def _coerce(name: str, raw: Any, default: Any) -> Any:
    """Convert a raw (usually string) value to the type of *default*."""
    if not isinstance(raw, str):
        if name == "ingest_enabled":
            return raw is True
        return raw

    if name == "ingest_enabled":
        # Only the exact value "1" opens the gate.
        return raw.strip() == "1"

    if isinstance(default, bool):
        value = raw.strip().lower()
        if value in _TRUTHY:
            return True
        if value in _FALSY:
            return False
        raise ConfigFault(name, f"expected a boolean, got '{raw}'")

    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigFault(name, f"expected an integer, got '{raw}'") from e

    if isinstance(default, (CORSPolicy, ContentTypeTable)):
        raise ConfigFault(name, "can only be set through overrides")

    if default is None and not raw:
        return None
    return raw
