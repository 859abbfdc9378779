"""FastAPI Application Entry Point.

Personal data server built with FastAPI, featuring:
- Account registration with bcrypt password hashes
- JWT bearer authentication
- Per-account document storage (catalog in SQL, content on disk)
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from pds.api.accounts import router as accounts_router
from pds.api.documents import router as documents_router
from pds.api.health import router as health_router
from pds.core.config import Settings, get_settings
from pds.core.exceptions import setup_exception_handlers
from pds.core.logging import configure_logging, get_logger, setup_request_logging
from pds.core.middleware import setup_all_middleware
from pds.core.openapi import create_custom_openapi
from pds.services.container import ServiceContainer

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    container: ServiceContainer = app.state.container
    settings = container.settings

    # Startup
    logger.info(
        "Starting application",
        project_name=settings.PROJECT_NAME,
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
    )

    startup_tasks = []

    try:
        await container.startup()
        startup_tasks.append("Database tables created/verified")
        if await container.db.test_connection():
            startup_tasks.append("Database connected")
        else:
            logger.warning("Database connection test failed")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        if settings.is_production:
            raise

    logger.info("Application startup completed", tasks=startup_tasks)

    yield

    # Shutdown
    logger.info("Shutting down application")
    try:
        await container.close()
    except Exception as e:
        logger.error("Error closing database", error=str(e))
    logger.info("Application shutdown completed")


# API Description
API_DESCRIPTION = """# Personal Data Server

## Authentication
**JWT bearer tokens**:
- `POST /accounts/register` - Create an account
- `POST /accounts/login` - Get an access token
- **Header**: `Authorization: Bearer <access_token>`

## Documents
Upload, list, download and delete documents owned by the caller.
"""


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use, defaults to the cached environment settings
        container: Prebuilt service wiring, defaults to one built from settings
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=API_DESCRIPTION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.container = container or ServiceContainer(settings)

    # Custom OpenAPI schema
    app.openapi = lambda: create_custom_openapi(app)

    setup_all_middleware(app, settings)
    setup_exception_handlers(app, include_internals=settings.is_development)
    setup_request_logging(app, settings)

    app.include_router(health_router, tags=["Health"])
    app.include_router(accounts_router, prefix="/accounts", tags=["Accounts"])
    app.include_router(documents_router, prefix="/documents", tags=["Documents"])

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pds.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )
