"""
Middleware system - composable async middleware around the dispatcher.

Default chain, outermost first::

    CORSMiddleware -> LoggingMiddleware -> ExceptionMiddleware -> dispatch

CORS sits outside everything so error envelopes and preflights carry the
same headers as successful reads.
"""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from .config import CORSPolicy
from .faults import Fault, Severity
from .request import Request
from .response import Response

Handler = Callable[[Request], Awaitable[Response]]
Middleware = Callable[[Request, Handler], Awaitable[Response]]

_SEVERITY_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
    Severity.FATAL: logging.CRITICAL,
}


@dataclass
class MiddlewareDescriptor:
    """Descriptor for middleware registration."""
    middleware: Middleware
    priority: int
    name: str


class MiddlewareStack:
    """
    Ordered middleware stack.

    Lower priority runs first (outermost). Ties keep insertion order.
    """

    def __init__(self):
        self.middlewares: List[MiddlewareDescriptor] = []

    def add(self, middleware: Middleware, priority: int = 50, name: Optional[str] = None) -> None:
        if name is None:
            name = getattr(middleware, "__name__", type(middleware).__name__)
        self.middlewares.append(MiddlewareDescriptor(middleware, priority, name))
        self.middlewares.sort(key=lambda desc: desc.priority)

    def names(self) -> List[str]:
        return [desc.name for desc in self.middlewares]

    def build_handler(self, final_handler: Handler) -> Handler:
        """Build middleware chain wrapping the final handler."""
        handler = final_handler
        # Wrap in reverse order so first middleware is outermost
        for desc in reversed(self.middlewares):
            handler = self._wrap_middleware(desc.middleware, handler)
        return handler

    def _wrap_middleware(self, middleware: Middleware, next_handler: Handler) -> Handler:
        async def wrapped(request: Request) -> Response:
            return await middleware(request, next_handler)
        return wrapped


# Default middleware implementations

class ExceptionMiddleware:
    """
    Converts faults and unexpected exceptions into JSON error envelopes.

    Faults render as ``{"error": code, ...}`` with their own status.
    Anything else is a 500 ``internal_error``; the exception text is only
    included when ``debug`` is on.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.logger = logging.getLogger("catalog_api.exceptions")

    async def __call__(self, request: Request, next: Handler) -> Response:
        try:
            return await next(request)

        except Fault as e:
            detail = getattr(e, "key", None) or e.message
            self.logger.log(
                _SEVERITY_LEVELS.get(e.severity, logging.ERROR),
                "Fault %s on %s %s: %s", e.code, request.method, request.path, detail,
            )
            return Response.json(e.to_payload(), status=e.status)

        except Exception as e:
            self.logger.error("Unhandled exception on %s %s: %s", request.method, request.path, e, exc_info=True)

            error_data = {"error": "internal_error"}
            if self.debug:
                error_data["detail"] = str(e)
                error_data["traceback"] = traceback.format_exc()
            return Response.json(error_data, status=500)


class LoggingMiddleware:
    """Logs request/response with timing."""

    def __init__(self, slow_threshold_ms: float = 1000.0):
        self.logger = logging.getLogger("catalog_api.requests")
        self.slow_threshold_ms = slow_threshold_ms

    async def __call__(self, request: Request, next: Handler) -> Response:
        if not self.logger.isEnabledFor(logging.INFO):
            return await next(request)

        start = time.monotonic()
        response = await next(request)
        elapsed_ms = (time.monotonic() - start) * 1000.0

        self.logger.info(
            "%s %s - %d (%.1fms)",
            request.method, request.path, response.status, elapsed_ms,
        )

        if elapsed_ms > self.slow_threshold_ms:
            self.logger.warning(
                "Slow request: %s %s took %.1fms",
                request.method, request.path, elapsed_ms,
            )

        return response


class CORSMiddleware:
    """
    Applies one fixed CORS header set to every response.

    ``OPTIONS`` on any path is answered here with an empty 204; it never
    reaches routing.
    """

    def __init__(self, policy: Optional[CORSPolicy] = None):
        self.policy = policy or CORSPolicy()
        self._headers = self.policy.headers()

    async def __call__(self, request: Request, next: Handler) -> Response:
        if request.method == "OPTIONS":
            return Response.empty(204, headers=self._headers)

        response = await next(request)
        response.update_headers(self._headers)
        return response
