### Description ###
# CRM Gateway - Multi-tenant External API
# - App Database Setup -
# Date: 10/17/2026
# Python: 3.11
####################

"""
App Database Setup

Storage for:
- Tenants, API keys and webhooks
- Tenant-scoped CRM resources
- Request and webhook delivery logs

Uses synchronous SQLAlchemy. The engine and session factory are created
once per process and handed to the gateway components through app.state;
tests swap in their own factory the same way.
"""

from pathlib import Path

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from gateway.config import get_api_settings

# Base class for models
Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """Create an engine for the given URL (SQLite gets thread-safe connect args)"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # Allow multi-threaded access
        db_path = database_url.split("///", 1)[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(
        database_url,
        connect_args=connect_args,
        echo=False,  # Set True for SQL debugging
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine"""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_session_factory() -> sessionmaker:
    """Process-wide session factory, created on first use"""
    global _engine, _session_factory

    if _session_factory is None:
        _engine = create_db_engine(get_api_settings().database_url)
        _session_factory = create_session_factory(_engine)
    return _session_factory


def get_db(request: Request):
    """
    Dependency that provides a database session.

    Sessions come from the factory stored on app.state.

    Usage:
        @app.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine) -> None:
    """
    Initialize the database - create all tables.

    Call this on application startup.
    """
    # Import models to register them with Base
    from gateway.models import api_key, request_log, resources, tenant, webhook  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_db(engine: Engine) -> None:
    """Drop all tables (use with caution!)"""
    Base.metadata.drop_all(bind=engine)
