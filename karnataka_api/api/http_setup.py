"""HTTP middleware and exception handler wiring for FastAPI apps."""

from __future__ import annotations

import uuid
from typing import Any, Iterable
from urllib.parse import urlsplit

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from karnataka_api.api.contracts import ApiErrorResponse
from karnataka_api.api.errors import ApiErrorCode, to_error_payload
from karnataka_api.core.config import AppConfig
from karnataka_api.core.logging import set_correlation_id

REFERER_EXEMPT_PATHS = {"/health"}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}


def error_response(
    status_code: int,
    error_code: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the ``{error_code, message}`` envelope."""
    return JSONResponse(
        status_code=status_code,
        content=ApiErrorResponse(error_code=error_code, message=message).model_dump(),
        headers=headers,
    )


def _origin(url: str) -> str:
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}".lower()


def referer_allowed(referer: str | None, allowed_origins: list[str]) -> bool:
    """Return whether the Referer header's origin is one of the allowed origins."""
    origin = _origin(referer or "")
    if not origin:
        return False
    return origin in {_origin(allowed) for allowed in allowed_origins}


def _declared_length(request: Request) -> int:
    try:
        return int(request.headers.get("content-length") or 0)
    except ValueError:
        return 0


def _validation_message(errors: Iterable[dict[str, Any]]) -> str:
    parts = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in errors
    ]
    return "; ".join(parts) or "Invalid request"


def _request_fields(request: Request, status_code: int) -> dict[str, Any]:
    return {
        "path": request.url.path,
        "method": request.method,
        "status_code": status_code,
    }


def register_http_middleware(app: FastAPI, *, config: AppConfig, logger: Any) -> None:
    """Attach referer, body-size and request-logging middleware to an app."""
    security = config.security

    @app.middleware("http")
    async def referer_check_middleware(request: Request, call_next):
        checked = (
            security.referer_check_enabled
            and request.method != "OPTIONS"
            and request.url.path not in REFERER_EXEMPT_PATHS
        )
        if checked and not referer_allowed(
            request.headers.get("referer"), security.cors_allowed_origins
        ):
            return error_response(403, ApiErrorCode.REFERER_REJECTED, "Unauthorized")
        return await call_next(request)

    @app.middleware("http")
    async def request_size_limit_middleware(request: Request, call_next):
        if _declared_length(request) > security.request_max_bytes:
            return error_response(
                413,
                ApiErrorCode.REQUEST_TOO_LARGE,
                f"Request size exceeds configured limit ({security.request_max_bytes} bytes).",
            )
        return await call_next(request)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        correlation_id = (
            request.headers.get("x-request-id")
            or request.headers.get("x-correlation-id")
            or uuid.uuid4().hex
        )
        set_correlation_id(correlation_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = correlation_id
        response.headers.update(SECURITY_HEADERS)
        logger.info(
            "request_completed", extra=_request_fields(request, response.status_code)
        )
        return response


def register_exception_handlers(app: FastAPI, *, logger: Any) -> None:
    """Map raised exceptions onto the error envelope."""

    @app.exception_handler(HTTPException)
    async def handle_http_exception(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        payload = to_error_payload(exc.detail, exc.status_code)
        logger.warning("http_exception", extra=_request_fields(request, exc.status_code))
        return error_response(
            exc.status_code,
            payload["error_code"],
            payload["message"],
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_exception(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("validation_exception", extra=_request_fields(request, 422))
        return error_response(
            422, ApiErrorCode.VALIDATION_ERROR, _validation_message(exc.errors())
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Details stay in the log; clients get a fixed message.
        logger.exception("unexpected_exception", extra=_request_fields(request, 500))
        return error_response(
            500, ApiErrorCode.INTERNAL_SERVER_ERROR, "Internal server error"
        )
