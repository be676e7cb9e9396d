"""
Todo Calendar API - Main FastAPI Application.

Provides REST APIs for the calendar frontend: tasks, completions,
Google sign-in verification and cached profile images.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from todocal.api.context import AppContext
from todocal.config import SERVICE_NAME, SERVICE_VERSION, get_settings
from todocal.utils.logging import setup_logging

settings = get_settings()

# Configure logging early
setup_logging(SERVICE_NAME, settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the application context on startup and release it on shutdown."""
    logger.info("Starting Todo Calendar API...")
    logger.info(f"Using Google Client ID: {settings.google_client_id}")

    # A context installed beforehand (tests) is left untouched
    owns_context = getattr(app.state, "context", None) is None
    if owns_context:
        context = AppContext.from_settings(settings)
        context.start()
        app.state.context = context

    yield

    if owns_context:
        app.state.context.stop()
        app.state.context = None

    logger.info("Shutting down Todo Calendar API...")


# OpenAPI tag descriptions (shown in /docs and /openapi.json)
OPENAPI_TAGS = [
    {
        "name": "tasks",
        "description": "Per-date task lists (requires Bearer token)",
    },
    {
        "name": "completions",
        "description": "Task completion state (requires Bearer token)",
    },
    {
        "name": "users",
        "description": "Token verification and profile images",
    },
    {
        "name": "system",
        "description": "System health and information endpoints",
    },
]

app = FastAPI(
    title="Todo Calendar API",
    description=(
        "Backend for the Todo Calendar app.\n\n"
        "**Authentication:** Include a Google ID token in the "
        "`Authorization: Bearer <token>` header."
    ),
    version=SERVICE_VERSION,
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected request body for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/", tags=["system"], operation_id="getServiceInfo")
async def root():
    """Return basic information about the API service."""
    return {
        "service": "Todo Calendar API",
        "version": SERVICE_VERSION,
        "status": "operational",
    }


@app.get("/health", tags=["system"], operation_id="healthCheck")
async def health_check(request: Request):
    """Report liveness and whether the database pool is open."""
    context = getattr(request.app.state, "context", None)
    connected = context is not None and context.database_available
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if connected else "disconnected",
    }


# Import and include routers
from todocal.api.routes import completions, tasks, users

app.include_router(tasks.router, prefix="/api", tags=["tasks"])
app.include_router(completions.router, prefix="/api", tags=["completions"])
app.include_router(users.router, prefix="/api", tags=["users"])


def run():
    """Run the API with uvicorn (``todocal-api`` console script)."""
    uvicorn.run(app, host=settings.host, port=settings.port)
