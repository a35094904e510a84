"""HTTP middleware that enforces the route policy on incoming requests."""

from __future__ import annotations

from typing import Callable

from fastapi import Request

from karnataka_api.api.http_setup import error_response
from karnataka_api.auth.errors import AuthError
from karnataka_api.auth.policy import RoutePolicy
from karnataka_api.auth.service import AuthService


def extract_bearer_token(authorization: str | None) -> str:
    """Extract bearer token from authorization header value."""
    scheme, _, token = (authorization or "").strip().partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def create_auth_middleware(service: AuthService, policy: RoutePolicy) -> Callable:
    """Create middleware that gates each request by its route policy entry."""

    async def auth_middleware(request: Request, call_next: Callable):
        method, path = request.method, request.url.path
        if policy.is_public(method, path):
            return await call_next(request)

        try:
            request.state.user = service.authorize(
                extract_bearer_token(request.headers.get("authorization")),
                policy.required_role(method, path),
            )
        except AuthError as exc:
            return error_response(
                exc.status_code, exc.error_code, exc.message, headers=exc.headers
            )
        return await call_next(request)

    return auth_middleware
