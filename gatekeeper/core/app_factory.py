from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .config import APP_VERSION, Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.access_gate import AccessGate
from ..application.services.admin_auth_service import AdminAuthService
from ..application.services.approval_service import ApprovalService
from ..application.services.credential_service import CredentialService
from ..application.services.registration_service import RegistrationService
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..infrastructure.storage.screenshot_store import LocalScreenshotStore
from ..presentation.api.exception_handlers import add_exception_handlers
from ..presentation.api.routers import admin as admin_router
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import user as user_router

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Design Tool Gatekeeper", version=APP_VERSION, lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.api_rate_limit] if settings.rate_limit_enabled else [],
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    if settings.rate_limit_enabled:
        app.add_middleware(SlowAPIMiddleware)
        logger.info("Rate limiting enabled: %s per client address", settings.api_rate_limit)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return JSONResponse(
            status_code=429,
            content={
                "success": False,
                "message": "Too many requests from this IP, please try again later.",
            },
        )

    add_exception_handlers(app, settings)

    app.include_router(auth_router.router)
    app.include_router(user_router.router)
    app.include_router(admin_router.router)

    @app.get("/api/health")
    @limiter.exempt
    async def health(request: Request) -> JSONResponse:
        container: ApplicationContainer = request.app.state.container  # type: ignore[attr-defined]
        database_ok = container.persistence.ping()
        payload: Dict[str, Any] = {
            "status": "OK" if database_ok else "ERROR",
            "timestamp": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
            "environment": settings.app_env,
            "version": APP_VERSION,
            "database": "connected" if database_ok else "disconnected",
            "uploads": "ready" if container.screenshot_store.is_ready() else "missing",
        }
        return JSONResponse(status_code=200 if database_ok else 503, content=payload)

    return app


def build_container(settings: Settings) -> ApplicationContainer:
    persistence = SQLitePersistence(settings.database_path)
    screenshot_store = LocalScreenshotStore(settings.upload_dir, settings.max_upload_bytes)
    credential_service = CredentialService(
        user_secret=settings.user_token_secret,
        admin_secret=settings.admin_token_secret,
        user_token_exp_minutes=settings.user_token_exp_minutes,
        admin_token_exp_minutes=settings.admin_token_exp_minutes,
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    registration_service = RegistrationService(persistence, credential_service, screenshot_store)
    admin_auth_service = AdminAuthService(persistence, credential_service)
    approval_service = ApprovalService(
        persistence,
        screenshot_store,
        subscription_days=settings.subscription_days,
    )
    access_gate = AccessGate(persistence, credential_service)
    return ApplicationContainer(
        settings=settings,
        persistence=persistence,
        screenshot_store=screenshot_store,
        credential_service=credential_service,
        registration_service=registration_service,
        admin_auth_service=admin_auth_service,
        approval_service=approval_service,
        access_gate=access_gate,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        container = build_container(settings)
        container.admin_auth_service.ensure_default_admin(
            settings.admin_default_email,
            settings.admin_default_password,
            settings.admin_default_name,
        )
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("Gatekeeper started (%s) using %s", settings.app_env, settings.database_path)
        try:
            yield
        finally:
            container.close()

    return lifespan
