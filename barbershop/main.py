from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from barbershop.database import Database
from barbershop.errors import register_error_handlers
from barbershop.login_guard import LoginGuard
from barbershop.migrations import run_migrations
from barbershop.observability import configure_logging, request_logging_middleware
from barbershop.routers import api, health
from barbershop.seed import ensure_admin_user, seed_catalog_defaults
from barbershop.settings import Settings, get_settings
from barbershop.uploads import UPLOADS_URL_PREFIX


def validate_runtime_configuration(settings: Settings) -> None:
    missing = []
    if not settings.jwt_secret:
        missing.append("JWT_SECRET")
    if not settings.jwt_refresh_secret:
        missing.append("JWT_REFRESH_SECRET")
    if settings.smtp_enabled:
        if not settings.smtp_host:
            missing.append("SMTP_HOST")
        if not settings.smtp_sender_email:
            missing.append("SMTP_SENDER_EMAIL")

    if missing:
        raise RuntimeError("Required settings are missing: " + ", ".join(missing))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logger = configure_logging(settings)
    validate_runtime_configuration(settings)

    database = Database(settings.database_url)
    if settings.auto_run_migrations:
        run_migrations(settings.database_url)
    ensure_admin_user(database, settings)
    if settings.seed_defaults:
        seed_catalog_defaults(database)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        database.dispose()

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
        docs_url="/docs" if settings.docs_enabled else None,
        redoc_url="/redoc" if settings.docs_enabled else None,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.login_guard = LoginGuard(
        max_attempts=settings.login_max_attempts,
        window_seconds=settings.login_window_seconds,
        lockout_seconds=settings.login_lockout_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    app.middleware("http")(request_logging_middleware(logger, settings.request_id_header))
    register_error_handlers(app, debug_errors=settings.debug_errors)

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=str(upload_dir)), name="uploads")

    app.include_router(api.router)
    app.include_router(health.router)

    logger.info("Application ready environment=%s", settings.environment)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
