"""
Middleware System (middleware.py)

Tests MiddlewareStack, ExceptionMiddleware, LoggingMiddleware and
CORSMiddleware.
"""

import json
import logging

import pytest

from catalog_api.config import CORSPolicy
from catalog_api.faults import BadRequestFault, CatalogNotFound, IngestDisabled, InvalidLatestPointer, StoreFault
from catalog_api.middleware import (
    CORSMiddleware,
    ExceptionMiddleware,
    LoggingMiddleware,
    MiddlewareStack,
)
from catalog_api.response import Response
from catalog_api.testing import make_test_request


async def ok_handler(request):
    return Response.json({"ok": True})


def raising(exc):
    async def handler(request):
        raise exc
    return handler


# ============================================================================
# MiddlewareStack
# ============================================================================

class TestMiddlewareStack:

    def test_init(self):
        stack = MiddlewareStack()
        assert len(stack.middlewares) == 0

    def test_add_uses_function_name(self):
        stack = MiddlewareStack()

        async def mw(request, next_handler):
            return await next_handler(request)

        stack.add(mw)
        assert stack.names() == ["mw"]

    def test_priority_order(self):
        stack = MiddlewareStack()

        async def mw(request, next_handler):
            return await next_handler(request)

        stack.add(mw, priority=30, name="inner")
        stack.add(mw, priority=10, name="outer")
        stack.add(mw, priority=30, name="inner2")
        assert stack.names() == ["outer", "inner", "inner2"]

    @pytest.mark.asyncio
    async def test_build_handler_order(self):
        stack = MiddlewareStack()
        calls = []

        def make(name):
            async def mw(request, next_handler):
                calls.append(f"{name}_before")
                resp = await next_handler(request)
                calls.append(f"{name}_after")
                return resp
            return mw

        async def handler(request):
            calls.append("handler")
            return "ok"

        stack.add(make("b"), priority=20)
        stack.add(make("a"), priority=10)
        composed = stack.build_handler(handler)
        assert await composed(make_test_request()) == "ok"
        assert calls == ["a_before", "b_before", "handler", "b_after", "a_after"]

    @pytest.mark.asyncio
    async def test_empty_stack_is_handler(self):
        composed = MiddlewareStack().build_handler(ok_handler)
        resp = await composed(make_test_request())
        assert resp.status == 200


# ============================================================================
# ExceptionMiddleware
# ============================================================================

class TestExceptionMiddleware:

    @pytest.mark.asyncio
    async def test_passthrough(self):
        resp = await ExceptionMiddleware()(make_test_request(), ok_handler)
        assert resp.status == 200

    @pytest.mark.asyncio
    async def test_not_found(self):
        resp = await ExceptionMiddleware()(make_test_request(), raising(CatalogNotFound("catalog/x")))
        assert resp.status == 404
        assert json.loads(resp.body) == {"error": "not_found"}
        assert resp.headers["content-type"] == "application/json; charset=utf-8"

    @pytest.mark.asyncio
    async def test_invalid_latest_carries_key(self):
        fault = InvalidLatestPointer("catalog/a/b/latest.json")
        resp = await ExceptionMiddleware()(make_test_request(), raising(fault))
        assert resp.status == 500
        assert json.loads(resp.body) == {"error": "invalid_latest", "key": "catalog/a/b/latest.json"}

    @pytest.mark.asyncio
    async def test_ingest_disabled_message(self):
        resp = await ExceptionMiddleware()(make_test_request(method="POST"), raising(IngestDisabled()))
        assert resp.status == 501
        assert json.loads(resp.body)["error"] == "disabled"
        assert "message" in json.loads(resp.body)

    @pytest.mark.asyncio
    async def test_bad_request_renders_message(self):
        resp = await ExceptionMiddleware()(make_test_request(), raising(BadRequestFault("kind is required")))
        assert resp.status == 400
        assert json.loads(resp.body) == {"error": "bad_request", "message": "kind is required"}

    @pytest.mark.asyncio
    async def test_store_fault(self):
        fault = StoreFault("RedisKVStore", "k", ConnectionError("down"))
        resp = await ExceptionMiddleware()(make_test_request(), raising(fault))
        assert resp.status == 502
        assert json.loads(resp.body) == {"error": "store_unavailable"}

    @pytest.mark.asyncio
    async def test_unexpected_exception(self):
        resp = await ExceptionMiddleware()(make_test_request(), raising(RuntimeError("secret detail")))
        assert resp.status == 500
        assert json.loads(resp.body) == {"error": "internal_error"}

    @pytest.mark.asyncio
    async def test_unexpected_exception_debug(self):
        resp = await ExceptionMiddleware(debug=True)(make_test_request(), raising(RuntimeError("secret detail")))
        body = json.loads(resp.body)
        assert body["error"] == "internal_error"
        assert body["detail"] == "secret detail"
        assert "RuntimeError" in body["traceback"]

    @pytest.mark.asyncio
    async def test_log_levels(self, caplog):
        mw = ExceptionMiddleware()
        with caplog.at_level(logging.INFO, logger="catalog_api.exceptions"):
            await mw(make_test_request(), raising(CatalogNotFound("catalog/x")))
            await mw(make_test_request(), raising(InvalidLatestPointer("catalog/y")))
        levels = [r.levelno for r in caplog.records if r.name == "catalog_api.exceptions"]
        assert levels == [logging.INFO, logging.ERROR]


# ============================================================================
# LoggingMiddleware
# ============================================================================

class TestLoggingMiddleware:

    @pytest.mark.asyncio
    async def test_logs_request_line(self, caplog):
        with caplog.at_level(logging.INFO, logger="catalog_api.requests"):
            resp = await LoggingMiddleware()(make_test_request(path="/_health"), ok_handler)
        assert resp.status == 200
        messages = [r.getMessage() for r in caplog.records if r.name == "catalog_api.requests"]
        assert any(m.startswith("GET /_health - 200") for m in messages)

    @pytest.mark.asyncio
    async def test_slow_request_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger="catalog_api.requests"):
            await LoggingMiddleware(slow_threshold_ms=-1)(make_test_request(), ok_handler)
        assert any("Slow request" in r.getMessage() for r in caplog.records)


# ============================================================================
# CORSMiddleware
# ============================================================================

class TestCORSMiddleware:

    @pytest.mark.asyncio
    async def test_headers_added(self):
        resp = await CORSMiddleware()(make_test_request(), ok_handler)
        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["access-control-allow-methods"] == "GET,POST,OPTIONS"
        assert resp.headers["access-control-allow-headers"] == "Content-Type, Authorization, X-Hub-Signature-256"

    @pytest.mark.asyncio
    async def test_preflight_short_circuits(self):
        async def never(request):
            raise AssertionError("handler must not run")

        resp = await CORSMiddleware()(make_test_request(method="OPTIONS", path="/anything"), never)
        assert resp.status == 204
        assert resp.body == b""
        assert resp.headers == CORSPolicy().headers()

    @pytest.mark.asyncio
    async def test_custom_policy(self):
        policy = CORSPolicy(allow_origin="https://okham.io")
        resp = await CORSMiddleware(policy)(make_test_request(), ok_handler)
        assert resp.headers["access-control-allow-origin"] == "https://okham.io"
