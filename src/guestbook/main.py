# src/guestbook/main.py
"""Main entry point for the guestbook application."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from guestbook.api.v1 import (
    attachments_router,
    messages_router,
    replies_router,
    system_router,
)
from guestbook.api.v1.dependencies import ContextDep
from guestbook.core.settings import settings
from guestbook.services.context import GuestbookContext, build_context
from guestbook.services.errors import BACKEND_ERRORS, classify_failure

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Initialize FastAPI app
app = FastAPI(
    title="Guestbook API",
    description="Post, reply to and like guestbook messages",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(messages_router, prefix="/api/v1")
app.include_router(replies_router, prefix="/api/v1")
app.include_router(attachments_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if getattr(app.state, "context", None) is None:
        app.state.context = build_context(settings)
    context: GuestbookContext = app.state.context
    if context.storage is not None:
        await asyncio.to_thread(context.storage.ensure_bucket)
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    context: GuestbookContext | None = getattr(app.state, "context", None)
    if context is not None:
        await context.close()


@app.get("/health")
async def health_check(context: ContextDep) -> dict[str, str]:
    """Health check endpoint reporting database reachability."""
    try:
        await context.repository.ping()
    except BACKEND_ERRORS as exc:
        logger.warning("Health check could not reach the database: %s", exc)
        return {"status": "degraded", "database": classify_failure(exc).value}
    return {"status": "ok", "database": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Guestbook API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("guestbook.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
