from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI
from fastapi.routing import APIRoute

from karnataka_api.auth.policy import DEFAULT_ROUTE_POLICY, RoutePolicy
from tests.factories import app_config
from web_api import create_app


def _app(tmp_path: Path) -> FastAPI:
    return create_app(config=app_config(), app_root=tmp_path)


def test_health_endpoint_contract_function(tmp_path: Path) -> None:
    app = _app(tmp_path)
    route = next(
        (
            candidate
            for candidate in app.routes
            if isinstance(candidate, APIRoute) and candidate.path == "/health"
        ),
        None,
    )

    assert route is not None
    payload = route.endpoint()
    assert payload.model_dump() == {"status": "ok"}


def test_openapi_contains_auth_contracts(tmp_path: Path) -> None:
    schema = _app(tmp_path).openapi()

    login = schema["paths"]["/Login"]["post"]
    assert login["responses"]["200"]["content"]["application/json"]["schema"][
        "$ref"
    ].endswith("LoginResponse")
    assert login["responses"]["429"]["content"]["application/json"]["schema"][
        "$ref"
    ].endswith("ApiErrorResponse")
    assert login["responses"]["404"]["content"]["application/json"]["schema"][
        "$ref"
    ].endswith("ApiErrorResponse")

    refresh = schema["paths"]["/RefreshToken"]["post"]
    assert refresh["responses"]["403"]["content"]["application/json"]["schema"][
        "$ref"
    ].endswith("ApiErrorResponse")


def test_openapi_contains_catalog_contracts(tmp_path: Path) -> None:
    schema = _app(tmp_path).openapi()

    place = schema["paths"]["/places/{place_id}"]["get"]
    assert place["responses"]["404"]["content"]["application/json"]["schema"][
        "$ref"
    ].endswith("ApiErrorResponse")
    assert "201" in schema["paths"]["/bookings"]["post"]["responses"]
    assert "/Createplaces" in schema["paths"]
    assert "/Feedback/{feedback_id}" in schema["paths"]


def test_create_app_registers_middleware_stack(tmp_path: Path) -> None:
    app = _app(tmp_path)
    names = [
        getattr(middleware.kwargs.get("dispatch"), "__name__", "")
        for middleware in app.user_middleware
    ]

    assert "auth_middleware" in names
    assert "referer_check_middleware" in names
    assert (tmp_path / "runtime" / "test_state.db").exists()


def test_every_served_route_has_a_policy_entry(tmp_path: Path) -> None:
    schema = _app(tmp_path).openapi()
    served = [
        (method, path)
        for path, operations in schema["paths"].items()
        for method in operations
    ]

    assert len(served) == len(DEFAULT_ROUTE_POLICY)
    assert RoutePolicy.with_overrides().unlisted(served) == []
