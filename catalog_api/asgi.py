"""
ASGI adapter - bridges the ASGI protocol to the catalog read service.

Handles ``http`` and ``lifespan`` scopes. WebSocket connections are
refused with close code 1003.

Performance:
- Middleware chain is built once on first request and cached.
- Route classification is a handful of anchored regex matches.
- Each read makes at most one backing-store call.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Type

from .config import CatalogConfig
from .faults import CatalogNotFound
from .ingest import IngestGate
from .middleware import Handler, MiddlewareStack
from .request import Request
from .resolvers import ArtifactResolver, LatestResolver, RegistryResolver
from .response import Response
from .routing import (
    Artifact,
    Health,
    Ingest,
    LatestAlias,
    Registry,
    Root,
    Unmatched,
    resolve_route,
)
from .stores import BlobStore, KVStore


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and ``Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CatalogApp:
    """
    ASGI application for the catalog.

    Every http request is classified into one route shape and dispatched
    to its handler through the middleware chain.
    """

    __slots__ = (
        "config", "blob_store", "kv_store", "middleware_stack", "logger",
        "registry", "latest", "artifacts", "ingest",
        "_handlers", "_cached_middleware_chain", "_started",
    )

    def __init__(
        self,
        config: CatalogConfig,
        blob_store: BlobStore,
        kv_store: KVStore,
        middleware_stack: Optional[MiddlewareStack] = None,
    ):
        self.config = config
        self.blob_store = blob_store
        self.kv_store = kv_store
        self.middleware_stack = middleware_stack or MiddlewareStack()
        self.logger = logging.getLogger("catalog_api.asgi")

        self.registry = RegistryResolver(
            kv_store, key_root=config.key_root, max_age=config.registry_max_age,
        )
        self.latest = LatestResolver(
            kv_store, key_root=config.key_root, max_age=config.latest_max_age,
        )
        self.artifacts = ArtifactResolver(
            blob_store,
            key_root=config.key_root,
            max_age=config.artifact_max_age,
            content_types=config.content_types,
        )
        self.ingest = IngestGate(enabled=config.ingest_enabled)

        self._handlers: Dict[Type, Callable] = {
            Root: self._root,
            Health: self._health,
            Ingest: self._ingest,
            Registry: self._registry,
            LatestAlias: self._latest,
            Artifact: self._artifact,
            Unmatched: self._unmatched,
        }
        self._cached_middleware_chain: Optional[Handler] = None
        self._started = False

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, request: Request) -> Response:
        """Final handler: classify the request and run its route handler."""
        path, route = resolve_route(request.raw_path, request.method, self.config.legacy_prefix)
        request.state["route"] = route
        request.state["legacy"] = path.legacy
        return await self._handlers[type(route)](request, route)

    async def _root(self, request: Request, route: Root) -> Response:
        response = Response.redirect(self.config.catalog_page_url, status=302)
        response.cache_control(public=True, max_age=self.config.root_max_age)
        return response

    async def _health(self, request: Request, route: Health) -> Response:
        return Response.json({
            "ok": True,
            "worker": self.config.worker_name,
            "now": utc_timestamp(),
            "legacy": route.legacy,
        })

    async def _ingest(self, request: Request, route: Ingest) -> Response:
        return await self.ingest.handle(request)

    async def _registry(self, request: Request, route: Registry) -> Response:
        return await self.registry.resolve(route.kind)

    async def _latest(self, request: Request, route: LatestAlias) -> Response:
        return await self.latest.resolve(request.url(), route.kind, route.entry_id, route.raw_file)

    async def _artifact(self, request: Request, route: Artifact) -> Response:
        return await self.artifacts.resolve(route.kind, route.entry_id, route.version, route.file)

    async def _unmatched(self, request: Request, route: Unmatched) -> Response:
        raise CatalogNotFound(route.path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def startup(self) -> None:
        if self._started:
            return
        for store in (self.blob_store, self.kv_store):
            await store.initialize()
            if not await store.health_check():
                self.logger.warning("%s failed its health check at startup", store.name)
        self._started = True
        self.logger.info(
            "Catalog ready: worker=%s blob=%s kv=%s ingest=%s",
            self.config.worker_name, self.blob_store.name, self.kv_store.name,
            "enabled" if self.config.ingest_enabled else "disabled",
        )

    async def shutdown(self) -> None:
        if not self._started:
            return
        await self.blob_store.shutdown()
        await self.kv_store.shutdown()
        self._started = False
        self.logger.info("Catalog shut down")

    def _build_cached_chain(self) -> Handler:
        if self._cached_middleware_chain is None:
            self._cached_middleware_chain = self.middleware_stack.build_handler(self.dispatch)
        return self._cached_middleware_chain

    # ------------------------------------------------------------------
    # ASGI entry point
    # ------------------------------------------------------------------

    async def __call__(self, scope: dict, receive: Callable, send: Callable):
        scope_type = scope["type"]
        if scope_type == "http":
            await self.handle_http(scope, receive, send)
        elif scope_type == "websocket":
            self.logger.warning("WebSocket connection attempt refused")
            await send({"type": "websocket.close", "code": 1003})
        elif scope_type == "lifespan":
            await self.handle_lifespan(scope, receive, send)

    async def handle_http(self, scope: dict, receive: Callable, send: Callable):
        chain = self._build_cached_chain()
        request = Request(scope, receive)

        try:
            response = await chain(request)
        except Exception as e:
            self.logger.error("Critical error in request pipeline: %s", e, exc_info=True)
            response = Response.json({"error": "internal_error"}, status=500)
            response.update_headers(self.config.cors.headers())

        await response.send_asgi(send)

    async def handle_lifespan(self, scope: dict, receive: Callable, send: Callable):
        """Handle ASGI lifespan events."""
        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                try:
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as e:
                    self.logger.error("Startup error: %s", e, exc_info=True)
                    await send({"type": "lifespan.startup.failed", "message": str(e)})
                    raise

            elif message["type"] == "lifespan.shutdown":
                try:
                    await self.shutdown()
                    await send({"type": "lifespan.shutdown.complete"})
                except Exception as e:
                    self.logger.error("Shutdown error: %s", e, exc_info=True)
                    await send({"type": "lifespan.shutdown.failed", "message": str(e)})
                break
