# src/neko_blog/main.py
"""Main entry point for the Neko Blog application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from neko_blog.api.responses import register_exception_handlers
from neko_blog.api.v1 import (
    auth_router,
    comments_router,
    posts_router,
    replies_router,
    search_router,
    topics_router,
    users_router,
)
from neko_blog.core.settings import settings
from neko_blog.services.maintenance import MaintenanceWorker
from neko_blog.services.search import get_search_client

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Micro-blogging API with likes, favourites, topics and follows",
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

register_exception_handlers(app)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(replies_router, prefix="/api/v1")
app.include_router(topics_router, prefix="/api/v1")
app.include_router(search_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    if settings.maintenance_enabled:
        worker = MaintenanceWorker()
        await worker.start()
        app.state.maintenance_worker = worker
    else:
        app.state.maintenance_worker = None
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: MaintenanceWorker | None = getattr(app.state, "maintenance_worker", None)
    if worker:
        await worker.stop()
    get_search_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("neko_blog.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
