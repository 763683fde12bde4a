from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from tutorledger import __version__
from tutorledger.api.routes.expenses import router as expenses_router
from tutorledger.api.routes.groups import router as groups_router
from tutorledger.api.routes.guest import router as guest_router
from tutorledger.api.routes.guest_codes import router as guest_codes_router
from tutorledger.api.routes.health import router as health_router
from tutorledger.api.routes.payments import router as payments_router
from tutorledger.api.routes.reports import router as reports_router
from tutorledger.api.routes.students import router as students_router
from tutorledger.config import Settings, get_settings
from tutorledger.identity.middleware import REQUEST_ID_HEADER, OwnerContextMiddleware
from tutorledger.shared.database import close_database, create_schema, init_database
from tutorledger.shared.exceptions import register_exception_handlers
from tutorledger.shared.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    engine = await init_database(settings.database_url, settings)
    if settings.is_sqlite:
        await create_schema(engine)
    logger.info("Tutor ledger started", environment=settings.environment)
    try:
        yield
    finally:
        await close_database()
        logger.info("Tutor ledger stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        redact_pii=settings.redact_pii,
    )

    app = FastAPI(
        title="Tutor Ledger API",
        version=__version__,
        lifespan=lifespan,
        swagger_ui_parameters={"persistAuthorization": True},
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    # Bearer token -> owner id context
    app.add_middleware(OwnerContextMiddleware)

    app.include_router(students_router)
    app.include_router(groups_router)
    app.include_router(payments_router)
    app.include_router(expenses_router)
    app.include_router(guest_codes_router)
    app.include_router(reports_router)
    app.include_router(guest_router)
    app.include_router(health_router)

    # {code, message, details?, correlation_id?}
    register_exception_handlers(app)

    @app.get("/", tags=["Root"])
    async def root():
        return {"message": "Tutor Ledger API", "docs": "/docs", "health": "/_health/db"}

    # Bearer auth in the generated schema
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(title=app.title, version=app.version, routes=app.routes)
        schema.setdefault("components", {}).setdefault("securitySchemes", {})["bearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
        schema["security"] = [{"bearerAuth": []}]
        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi

    return app


app = create_app()
