# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the AssetGate API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import (
    AssetGateException,
    assetgate_exception_handler,
    validation_exception_handler,
)
from app.routers import health, user_assets, images, proxy

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup/shutdown and the active storage backend."""
    logger.info(f"Starting AssetGate API in {settings.ENVIRONMENT} mode")
    logger.info(
        f"Object store: {settings.OBJECT_STORE_BACKEND} "
        f"(bucket={settings.STORAGE_BUCKET}, base_url={settings.USER_ASSET_BASE_URL})"
    )

    yield

    logger.info("Shutting down AssetGate API")


# Create FastAPI application
app = FastAPI(
    title="AssetGate API",
    description="""
## User Asset Gateway

Stores user files and poster/avatar images. Metadata lives in Supabase,
bytes live in an object store (S3/R2 or Supabase Storage).

### Endpoints

| Path | Methods | Purpose |
|------|---------|---------|
| `/api/v1/user_asset/{path}` | PUT, POST, DELETE, GET | create, replace, delete, download a file |
| `/api/v1/image/{path}` | PUT/POST, DELETE, GET | project/profile/asset poster image |
| `/rest/...`, `/auth/...` | any | pass-through to Supabase |

Writes record metadata first and roll it back if the object store step
fails, so a stored URL never silently loses its bytes.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "User Assets",
            "description": "Create, replace, delete and download user files",
        },
        {
            "name": "Images",
            "description": "Poster and avatar images attached to projects, profiles and assets",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(AssetGateException)
async def handle_assetgate_exception(request: Request, exc: AssetGateException):
    """Handle custom AssetGate exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.code}] {exc.message}")
    return await assetgate_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# User asset endpoints
app.include_router(
    user_assets.router,
    prefix="/api/v1",
    tags=["User Assets"]
)

# Poster/avatar image endpoints
app.include_router(
    images.router,
    prefix="/api/v1",
    tags=["Images"]
)

# Supabase REST/auth pass-through
app.include_router(proxy.router)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "AssetGate API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
