"""
Application factory.

``create_app`` wires configuration, backing stores and the default
middleware chain into a :class:`CatalogApp`::

    app = create_app(CatalogConfig(kv_backend="redis"))

Under uvicorn with several workers the app is built per worker from the
environment through :func:`app_from_env`.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from .asgi import CatalogApp
from .config import CatalogConfig
from .middleware import CORSMiddleware, ExceptionMiddleware, LoggingMiddleware, MiddlewareStack
from .stores import BlobStore, KVStore, build_blob_store, build_kv_store

ENV_FILE_VARIABLE = "CATALOG_ENV_FILE"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the ``catalog_api`` logger tree."""
    logger = logging.getLogger("catalog_api")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not any(getattr(h, "_catalog_api", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._catalog_api = True
        logger.addHandler(handler)


def default_middleware(config: CatalogConfig) -> MiddlewareStack:
    stack = MiddlewareStack()
    stack.add(CORSMiddleware(config.cors), priority=10, name="cors")
    stack.add(LoggingMiddleware(), priority=20, name="logging")
    stack.add(ExceptionMiddleware(debug=config.debug), priority=30, name="exceptions")
    return stack


def create_app(
    config: Optional[CatalogConfig] = None,
    *,
    blob_store: Optional[BlobStore] = None,
    kv_store: Optional[KVStore] = None,
) -> CatalogApp:
    """
    Build the catalog ASGI app.

    Args:
        config: Service configuration (defaults: memory stores, legacy
            prefix ``/catalog``, ingest disabled)
        blob_store: Injected blob store, skips ``config.blob_backend``
        kv_store: Injected kv store, skips ``config.kv_backend``
    """
    config = config or CatalogConfig()
    return CatalogApp(
        config,
        blob_store=blob_store if blob_store is not None else build_blob_store(config),
        kv_store=kv_store if kv_store is not None else build_kv_store(config),
        middleware_stack=default_middleware(config),
    )


def app_from_env() -> CatalogApp:
    """uvicorn factory: configuration from ``CATALOG_*`` and the optional env file."""
    config = CatalogConfig.from_env(os.environ.get(ENV_FILE_VARIABLE))
    configure_logging(config.log_level)
    return create_app(config)
