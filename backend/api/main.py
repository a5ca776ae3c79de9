"""FastAPI application for the Tales API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.core.errors import (
    AccessDenied,
    AlreadyLiked,
    CredentialError,
    EmailAlreadyRegistered,
    NotFound,
    NotLiked,
    StoreFailure,
    TaleError,
    UpstreamGenerationFailure,
    ValidationFailed,
)
from .auth.routes import router as auth_router
from .config import DATABASE_URL, LOG_JSON, LOG_LEVEL
from .logging import configure_logging
from .routes import tales

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their bases
ERROR_STATUS_CODES: list[tuple[type[TaleError], int]] = [
    (NotLiked, 400),
    (AlreadyLiked, 400),
    (NotFound, 404),
    (AccessDenied, 403),
    (CredentialError, 401),
    (EmailAlreadyRegistered, 409),
    (ValidationFailed, 422),
    (UpstreamGenerationFailure, 502),
    (StoreFailure, 500),
]


def status_for_error(error: TaleError) -> int:
    """HTTP status code for a domain error."""
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    configure_logging(json_format=LOG_JSON, level=LOG_LEVEL)

    # Startup: Initialize database (only if DATABASE_URL is configured)
    if DATABASE_URL:
        from .database.db import init_db, init_pool

        await init_db()
        await init_pool()
        logger.info("Database initialized")
    else:
        logger.warning("DATABASE_URL not set - database not initialized")

    yield

    # Shutdown: Close the connection pool
    if DATABASE_URL:
        from .database.db import close_pool

        await close_pool()


app = FastAPI(
    title="Tales API",
    description="""
Write, share and discover short children's tales.

## Features
- **Tales**: Create tales for ages 3-5, 6-8 or 9-12 and keep them private or share them publicly
- **Discovery**: Browse public tales by age band, newest, oldest or most liked
- **Likes**: Like and unlike public tales
- **Generation**: Draft tale text with a language model from a title, topic and story options

## Authentication
Register or log in under `/auth` and send the token as `Authorization: Bearer <token>`.
Reading public tales works without a token; a valid token adds `is_liked` to each tale.
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TaleError)
async def tale_error_handler(request: Request, exc: TaleError) -> JSONResponse:
    """Map domain errors onto HTTP responses."""
    status_code = status_for_error(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", extra={"error_type": type(exc).__name__})
    return JSONResponse(status_code=status_code, content={"detail": exc.message}, headers=headers)


# Include routers
app.include_router(auth_router)  # No prefix - already has /auth
app.include_router(tales.router, prefix="/tales", tags=["Tales"])


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
