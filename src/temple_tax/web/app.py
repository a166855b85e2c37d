"""
Temple Tax API application.

Builds the FastAPI app: logging, request ids, CORS, error envelope and the
resource routers. Run with:

    uvicorn temple_tax.web.app:app
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from temple_tax import __version__
from temple_tax.config.database import get_database_settings
from temple_tax.config.settings import Settings, get_settings
from temple_tax.database.connection import (
    check_database_connection,
    close_sync_engine,
    init_database,
)
from temple_tax.middleware.correlation import REQUEST_ID_HEADER, RequestIdMiddleware
from temple_tax.services.logging_config import configure_logging, get_logger
from temple_tax.web.dependencies import TEMPLE_ID_HEADER
from temple_tax.web.helpers.error_responses import register_exception_handlers
from temple_tax.web.routers import (
    health_router,
    tax_calculations_router,
    tax_registrations_router,
    tax_settings_router,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, dispose of the engine on shutdown."""
    try:
        init_database()
        db_settings = get_database_settings()
        if check_database_connection():
            logger.info(
                f"Database initialized: {db_settings.driver}",
                extra={"extra_data": {
                    "database": db_settings.name if db_settings.is_postgres else "sqlite",
                }},
            )
        else:
            logger.warning("Database connection check failed during startup")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")

    yield

    close_sync_engine()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Application settings. Defaults to cached settings.
    """
    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_output=settings.log_json,
        log_file=settings.log_file,
    )

    app = FastAPI(
        title=settings.name,
        version=__version__,
        debug=settings.debug,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )

    # Last added = first executed: request ids wrap everything, CORS included.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", TEMPLE_ID_HEADER, REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(tax_settings_router)
    app.include_router(tax_calculations_router)
    app.include_router(tax_registrations_router)

    logger.info(f"{settings.name} v{__version__} configured ({settings.environment})")
    return app


app = create_app()
