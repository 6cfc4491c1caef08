"""
FastAPI application for the category manager.

This module creates and configures the FastAPI application, registering
all routers, middleware and exception handlers. Store handles are built
in the lifespan and kept on `app.state`; nothing connects at import time.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine

from api.config import Settings, settings as default_settings
from api.dependencies import build_engine, build_session_factory
from api.routers import categories, regions
from api.schemas.common import ErrorResponse, HealthCheckResponse
from backend.models.schema import Base
from services.exceptions import CategoryManagerError
from services.region_service import RegionDirectory
from services.storage_service import StorageService

# Configure logging
logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL),
    format=default_settings.LOG_FORMAT,
    handlers=[
        logging.FileHandler(default_settings.LOG_FILE),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)


def error_response(request: Request, status_code: int, error: str,
                   details: Optional[dict] = None) -> JSONResponse:
    """Build the standard JSON error payload."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            details=details or None,
            path=str(request.url.path)
        ).model_dump(mode='json', exclude_none=True)
    )


def create_app(app_settings: Optional[Settings] = None,
               engine: Optional[Engine] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        app_settings: Settings to use (default: environment settings)
        engine: Pre-built database engine (default: built from DATABASE_URL)
    """
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Builds the store handles on startup and disposes them on shutdown.
        """
        # Startup
        logger.info(f"Starting {app_settings.API_TITLE} v{app_settings.API_VERSION}")
        logger.info(f"Database: {app_settings.DATABASE_URL.split('@')[-1]}")  # Hide credentials

        db_engine = engine or build_engine(app_settings)
        app.state.engine = db_engine
        app.state.session_factory = build_session_factory(db_engine)

        # Ensure database tables exist
        try:
            Base.metadata.create_all(bind=db_engine)
            logger.info("Database tables verified")
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")

        app.state.storage = StorageService(app_settings.UPLOADS_DIR)
        logger.info(f"Uploads directory: {app_settings.UPLOADS_DIR}")

        app.state.regions = RegionDirectory.load(app_settings.REGIONS_DATA_DIR)

        yield

        # Shutdown
        logger.info("Shutting down application")
        if engine is None:
            db_engine.dispose()

    app = FastAPI(
        title=app_settings.API_TITLE,
        description=app_settings.API_DESCRIPTION,
        version=app_settings.API_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json"
    )
    app.state.settings = app_settings

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_credentials=app_settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=app_settings.CORS_ALLOW_METHODS,
        allow_headers=app_settings.CORS_ALLOW_HEADERS
    )

    # Exception handlers

    @app.exception_handler(CategoryManagerError)
    async def category_manager_exception_handler(request: Request, exc: CategoryManagerError):
        """Convert domain errors to their JSON payload and status."""
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")

        return error_response(request, exc.status_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle FastAPI parameter validation errors as 400s."""
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "Invalid request",
            {'errors': jsonable_encoder(exc.errors())}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle uncaught exceptions."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            {'message': str(exc)} if app_settings.DEBUG else None
        )

    # Register routers with API prefix
    app.include_router(categories.router, prefix=app_settings.API_PREFIX)
    app.include_router(regions.router, prefix=app_settings.API_PREFIX)

    # Root endpoints

    @app.get('/', include_in_schema=False)
    async def root():
        """
        Root endpoint - service information.
        """
        return {
            'message': f'Welcome to {app_settings.API_TITLE}',
            'version': app_settings.API_VERSION,
            'docs': '/docs',
            'redoc': '/redoc',
            'openapi': '/openapi.json'
        }

    @app.get('/health', response_model=HealthCheckResponse, tags=['health'])
    async def health_check(request: Request):
        """
        Health check endpoint.

        Checks database connectivity and reports how many regions are loaded.

        **Example:**
        ```bash
        curl http://localhost:8000/health
        ```
        """
        health_status = {
            'status': 'healthy',
            'timestamp': datetime.utcnow(),
            'version': app_settings.API_VERSION,
            'database': 'unknown',
            'regions': len(request.app.state.regions)
        }

        # Check database
        try:
            with request.app.state.session_factory() as session:
                session.execute(text('SELECT 1'))
            health_status['database'] = 'connected'
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            health_status['database'] = 'disconnected'
            health_status['status'] = 'unhealthy'

        return HealthCheckResponse(**health_status)

    @app.get(f'{app_settings.API_PREFIX}/ping', tags=['health'])
    async def ping():
        """
        Simple ping endpoint for load balancers.

        **Returns:**
        ```json
        {"ping": "pong"}
        ```
        """
        return {'ping': 'pong'}

    # Middleware for request logging

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all HTTP requests."""
        logger.info(f"{request.method} {request.url.path}")
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    return app


# Create FastAPI application
app = create_app()


if __name__ == '__main__':
    import uvicorn

    uvicorn.run(
        'api.main:app',
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.RELOAD,
        log_level=default_settings.LOG_LEVEL.lower()
    )
