from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Coroutine, cast

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import Response

from karnataka_api.api.http_setup import (
    referer_allowed,
    register_exception_handlers,
    register_http_middleware,
)
from tests.factories import app_config

LOGGER = logging.getLogger(__name__)


def _request(path: str, method: str = "GET", headers: list[tuple[bytes, bytes]] | None = None) -> Request:
    scope: dict[str, Any] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": b"",
        "root_path": "",
        "headers": headers or [],
        "client": ("127.0.0.1", 1234),
        "server": ("testserver", 80),
    }

    async def receive() -> dict[str, Any]:
        return {"type": "http.request", "body": b"", "more_body": False}

    return Request(scope, receive)


def _dispatch_by_name(app: FastAPI, name: str):
    for middleware in app.user_middleware:
        dispatch = middleware.kwargs.get("dispatch")
        if callable(dispatch) and getattr(dispatch, "__name__", "") == name:
            return dispatch
    raise AssertionError(f"Dispatch {name!r} not found")


def _resolve_response(result: Response | Awaitable[Response]) -> Response:
    if inspect.iscoroutine(result):
        return asyncio.run(cast(Coroutine[Any, Any, Response], result))
    return cast(Response, result)


def _app(**security_overrides: object) -> FastAPI:
    app = FastAPI()
    register_http_middleware(app, config=app_config(**security_overrides), logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    return app


async def _ok(_request: Request) -> Response:
    return Response(content="ok", status_code=200)


def test_http_setup_adds_security_headers_and_request_id() -> None:
    dispatch = _dispatch_by_name(_app(), "request_logging_middleware")

    request = _request("/places", headers=[(b"x-request-id", b"req-123")])

    response = asyncio.run(dispatch(request, _ok))
    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_http_setup_rejects_large_request_before_handler() -> None:
    dispatch = _dispatch_by_name(_app(request_max_bytes=8), "request_size_limit_middleware")
    request = _request("/Signup", method="POST", headers=[(b"content-length", b"20")])

    response = asyncio.run(dispatch(request, _ok))
    assert response.status_code == 413
    assert b"REQUEST_TOO_LARGE" in response.body


def test_referer_check_passes_through_when_disabled() -> None:
    dispatch = _dispatch_by_name(_app(), "referer_check_middleware")

    response = asyncio.run(dispatch(_request("/places"), _ok))

    assert response.status_code == 200


def test_referer_check_rejects_foreign_referer() -> None:
    dispatch = _dispatch_by_name(_app(referer_check_enabled=True), "referer_check_middleware")
    request = _request("/places", headers=[(b"referer", b"https://evil.example/page")])

    response = asyncio.run(dispatch(request, _ok))

    assert response.status_code == 403
    assert b"REFERER_REJECTED" in response.body


def test_referer_check_allows_frontend_and_health() -> None:
    dispatch = _dispatch_by_name(_app(referer_check_enabled=True), "referer_check_middleware")
    frontend = _request(
        "/places",
        headers=[(b"referer", b"https://visit-karnataka-frontend.vercel.app/places")],
    )

    assert asyncio.run(dispatch(frontend, _ok)).status_code == 200
    assert asyncio.run(dispatch(_request("/health"), _ok)).status_code == 200


def test_referer_allowed_requires_header() -> None:
    assert referer_allowed(None, ["http://localhost:3000"]) is False
    assert referer_allowed("http://localhost:3000/x", ["http://localhost:3000"]) is True


@pytest.mark.parametrize(
    ("referer", "allowed"),
    [
        ("https://visit-karnataka-frontend.vercel.app/places", True),
        ("HTTPS://Visit-Karnataka-Frontend.vercel.app", True),
        ("https://visit-karnataka-frontend.vercel.app.evil.com/x", False),
        ("https://visit-karnataka-frontend.vercel.app@evil.com/", False),
        ("https://visit-karnataka-frontend.vercel.app:8443/", False),
        ("http://visit-karnataka-frontend.vercel.app/", False),
        ("visit-karnataka-frontend.vercel.app", False),
    ],
)
def test_referer_allowed_compares_exact_origin(referer: str, allowed: bool) -> None:
    origins = ["https://visit-karnataka-frontend.vercel.app"]

    assert referer_allowed(referer, origins) is allowed


def test_http_setup_serializes_http_exception_payload() -> None:
    app = _app()
    request = _request("/places/missing")
    handler = app.exception_handlers[HTTPException]
    response: Response = _resolve_response(
        handler(
            request,
            HTTPException(
                status_code=404,
                detail={"error_code": "PLACE_NOT_FOUND", "message": "missing"},
            ),
        )
    )
    assert response.status_code == 404
    assert b"PLACE_NOT_FOUND" in response.body


def test_http_setup_handles_unexpected_exceptions_without_leaking_detail() -> None:
    app = _app()
    request = _request("/boom")
    handler = app.exception_handlers[Exception]
    response: Response = _resolve_response(handler(request, RuntimeError("db password=x")))
    assert response.status_code == 500
    assert b"INTERNAL_SERVER_ERROR" in response.body
    assert b"password" not in response.body


def test_http_setup_handles_validation_exception() -> None:
    app = _app()
    request = _request("/Signup")
    handler = app.exception_handlers[RequestValidationError]
    response: Response = _resolve_response(
        handler(
            request,
            RequestValidationError(
                [{"loc": ("body", "phone"), "msg": "String should match pattern"}]
            ),
        )
    )
    assert response.status_code == 422
    assert b"VALIDATION_ERROR" in response.body
    assert b"body.phone" in response.body
