"""
FastAPI application entry point for the mcp-manager backend service.

This module sets up the FastAPI application with CORS, health endpoints and
the catalogue routes. The server store is migrated and opened exactly once at
startup; if that fails the application does not start.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from database import check_database_health, open_store
from modules.catalog.routes import router as catalog_router
from modules.catalog.service import CatalogService
from utils.logging import setup_logging


def create_app(database_url: Optional[str] = None) -> FastAPI:
    """
    Build the application.

    Args:
        database_url: Store URL (defaults to settings.resolved_database_url)

    Returns:
        FastAPI: Configured application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup and shutdown tasks."""
        # Startup
        setup_logging(settings.log_level)
        logging.info("Starting mcp-manager backend service")

        # Migrate the schema before anything touches the store
        store = await open_store(database_url)
        app.state.store = store
        app.state.catalog_service = CatalogService(store)
        logging.info("Server store opened")

        yield

        # Shutdown
        logging.info("Shutting down mcp-manager backend service")
        await store.close()
        logging.info("Shutdown complete")

    app = FastAPI(
        title="MCP Manager Backend",
        description="Manages MCP server definitions and keeps client configuration files in sync",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # Health check endpoints
    @app.get("/health")
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "service": "mcp-manager-backend"}

    @app.get("/health/detailed")
    async def detailed_health_check(request: Request):
        """Detailed health check with the store's status."""
        database_ok = await check_database_health(request.app.state.store)
        return {
            "status": "healthy" if database_ok else "degraded",
            "service": "mcp-manager-backend",
            "version": "0.1.0",
            "dependencies": {
                "database": "healthy" if database_ok else "unhealthy",
            }
        }

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        logging.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"}
        )

    # Include routers
    app.include_router(catalog_router, prefix="/api", tags=["catalog"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
