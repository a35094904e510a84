from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from karnataka_api.api.contracts import HealthResponse
from karnataka_api.api.http_setup import register_exception_handlers, register_http_middleware
from karnataka_api.auth.middleware import create_auth_middleware
from karnataka_api.auth.policy import RoutePolicy
from karnataka_api.auth.rate_limiter import LoginRateLimiter
from karnataka_api.auth.repository import AccountRepository
from karnataka_api.auth.router import create_auth_router
from karnataka_api.auth.service import AuthService
from karnataka_api.catalog.repository import DocumentCollection
from karnataka_api.catalog.router import create_catalog_router
from karnataka_api.catalog.service import CatalogService
from karnataka_api.core.config import AppConfig
from karnataka_api.core.logging import setup_logging
from karnataka_api.core.mongo_migrations import apply_mongo_migrations
from karnataka_api.core.store import connect_mongo_database

LOGGER = logging.getLogger(__name__)

APP_ROOT = Path(__file__).resolve().parent


def create_app(config: AppConfig | None = None, app_root: Path = APP_ROOT) -> FastAPI:
    if config is None:
        load_dotenv()
        config = AppConfig.from_env()
    setup_logging(config.logging.level)

    apply_mongo_migrations(config.store)
    db = connect_mongo_database(config.store)

    auth_service = AuthService(AccountRepository(app_root, db), config.auth)
    auth_service.bootstrap_admin_user()
    login_rate_limiter = LoginRateLimiter(
        database_path=(app_root / config.store.state_sqlite_path).resolve(),
        max_attempts=config.security.login_rate_limit_max_attempts,
        window_seconds=config.security.login_rate_limit_window_seconds,
        lock_seconds=config.security.login_rate_limit_lock_seconds,
    )
    catalog_service = CatalogService(
        places=DocumentCollection("places", app_root, db),
        feedback=DocumentCollection("feedbacks", app_root, db),
        bookings=DocumentCollection("bookings", app_root, db),
    )
    policy = RoutePolicy.with_overrides(config.security.route_policy_overrides)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        yield
        login_rate_limiter.close()

    app = FastAPI(title="Visit Karnataka API", version="2.0.0", lifespan=lifespan)

    # Middleware added later runs earlier: CORS, logging, size, referer, auth.
    app.middleware("http")(create_auth_middleware(auth_service, policy))
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "PUT", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    routers = [
        create_auth_router(auth_service, login_rate_limiter),
        create_catalog_router(catalog_service),
    ]
    served = [
        (method, route.path)
        for router in routers
        for route in router.routes
        for method in getattr(route, "methods", None) or ()
    ]
    for entry in policy.unlisted(served):
        LOGGER.warning("route_policy_missing", extra={"reason": entry})
    for router in routers:
        app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
