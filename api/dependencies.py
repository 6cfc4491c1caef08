"""
Dependency injection utilities for FastAPI.

The database engine, session factory, upload storage and region directory
are built once at startup (see the lifespan in api/main.py) and kept on
`app.state`. The dependencies here hand them to request handlers.
"""

import logging
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from api.config import Settings
from services.category_service import CategoryService
from services.region_service import RegionDirectory
from services.storage_service import StorageService

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    """
    Create the database engine for the configured URL.

    SQLite gets a single shared connection so an in-memory database
    survives across requests and threads.
    """
    if settings.DATABASE_URL.startswith('sqlite'):
        return create_engine(
            settings.DATABASE_URL,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
            echo=settings.DEBUG
        )

    return create_engine(
        settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=settings.DB_POOL_PRE_PING,
        echo=settings.DEBUG
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create the session factory bound to an engine."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields database session and ensures it's closed after use.

    Usage:
        @app.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            # Use db session
            pass
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    """Get a CategoryService bound to the request session."""
    return CategoryService(db)


def get_storage(request: Request) -> StorageService:
    """Get the upload storage service."""
    return request.app.state.storage


def get_region_directory(request: Request) -> RegionDirectory:
    """Get the region directory loaded at startup."""
    return request.app.state.regions
