### Description ###
# CRM Gateway - Multi-tenant External API
# - Main Application -
# Date: 10/17/2026
# Python: 3.11
####################

"""
CRM Gateway API - Main Application

FastAPI application entry point that provides:
- /v1 REST endpoints for tenant CRM data (API key authentication)
- /dashboard endpoints for key, webhook and log management
- Per-key rate limiting
- Request logging and attribution
- OpenAPI documentation at /docs

Usage:
    # Development
    uvicorn gateway.main:app --reload --port 8000

    # Production
    uvicorn gateway.main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.config import APISettings, get_api_settings
from gateway.database import get_session_factory, init_db
from gateway.errors import GatewayError
from gateway.middleware import Authenticator, RequestLoggingMiddleware
from gateway.middleware.rate_limit import RETRY_AFTER_SECONDS, limiter, rate_limit_exceeded_handler
from gateway.models.api_key import DEFAULT_BCRYPT_ROUNDS
from gateway.routers import dashboard_router, gateway_router
from gateway.schemas.responses import ErrorResponse, HealthResponse
from gateway.services import KeyStore, WebhookDispatcher, build_registry
from gateway.utils import setup_logger

# Load settings
settings = get_api_settings()

api_logger = setup_logger("gateway", level=settings.log_level, log_to_file=settings.log_to_file)
logger = logging.getLogger(__name__)


def configure_gateway(
    app: FastAPI,
    session_factory: sessionmaker,
    api_settings: Optional[APISettings] = None,
    webhook_transport: Optional[httpx.AsyncBaseTransport] = None,
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> None:
    """
    Build the gateway components around one storage client and store
    them on app.state.

    Args:
        app: Application to configure
        session_factory: Storage client shared by every component
        api_settings: Settings to use (default: get_api_settings())
        webhook_transport: Optional httpx transport for webhook delivery
        bcrypt_rounds: Cost factor for newly issued keys
    """
    api_settings = api_settings or get_api_settings()

    key_store = KeyStore(session_factory, bcrypt_rounds=bcrypt_rounds)
    dispatcher = WebhookDispatcher(
        session_factory,
        timeout=api_settings.webhook_timeout_seconds,
        max_attempts=api_settings.webhook_max_attempts,
        signature_scheme=api_settings.webhook_signature_scheme,
        response_body_limit=api_settings.webhook_response_body_limit,
        transport=webhook_transport,
    )

    app.state.session_factory = session_factory
    app.state.key_store = key_store
    app.state.authenticator = Authenticator(key_store)
    app.state.webhook_dispatcher = dispatcher
    app.state.registry = build_registry(session_factory, dispatcher)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager

    Startup: create tables and build the gateway components, unless a
    session factory was already configured (tests do this).
    """
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")

    if getattr(app.state, "session_factory", None) is None:
        session_factory = get_session_factory()
        init_db(session_factory.kw["bind"])
        configure_gateway(app, session_factory)

    yield

    logger.info(f"Shutting down {settings.api_title}")


# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="""
## CRM Gateway API

Programmatic access to a tenant's CRM data.

### Resources
- **contacts**, **products**, **cards**, **appointments**, **tasks**

### Authentication
All `/v1` endpoints require an API key passed in the `x-api-key` header.

```
x-api-key: sk_live_...
```

### Listing
`?limit=` (1-100), `?cursor=` (from `meta.pagination.next_cursor`),
`?<column>=`, `?<column>_gte=`, `?<column>_lte=`, `?<column>_like=`,
`?custom_fields.<name>=`, `?include=<relation>,...`
    """,
    lifespan=lifespan,
)

app.state.session_factory = None

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


# ========================================
# Exception Handlers
# ========================================

@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Render gateway errors as {"error": ..., "details": [...]}"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.status_code == 429 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message, details=exc.details).model_dump(exclude_none=True),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body/query validation failures are a 400, like every other caller error"""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "code": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="Invalid request", details=details).model_dump(exclude_none=True),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions"""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            message=str(exc) if settings.debug else None,
        ).model_dump(exclude_none=True),
    )


# ========================================
# System Endpoints
# ========================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check",
    description="Check API health and database connectivity",
)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint"""
    database_connected = False
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is not None:
        try:
            with session_factory() as session:
                session.execute(text("SELECT 1"))
            database_connected = True
        except SQLAlchemyError:
            logger.warning("Health check could not reach the database", exc_info=True)

    return HealthResponse(
        status="healthy" if database_connected else "degraded",
        version=settings.api_version,
        database_connected=database_connected,
    )


# Root endpoint
@app.get("/", tags=["System"], summary="API Info")
async def root():
    """API root - returns basic API information"""
    return {
        "name": settings.api_title,
        "version": settings.api_version,
        "docs": "/docs",
        "health": "/health",
    }


# Include routers
app.include_router(
    gateway_router,
    prefix=settings.api_prefix,
    tags=["Gateway"],
)

app.include_router(
    dashboard_router,
    prefix="/dashboard",
    tags=["Dashboard"],
)


# Entry point for running directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
