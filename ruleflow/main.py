"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ruleflow import __version__
from ruleflow.core.config import get_settings
from ruleflow.observability.tracelog import configure_logging
from ruleflow.runtime import router as runtime_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting %s...", settings.app_name)
    logger.info("Document validation enabled: %s", settings.validate_documents)
    logger.info("Trace logging enabled: %s", settings.log_traces)

    app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.http_client.aclose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Step execution engine for declarative flows, rules and API mappings",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS middleware - configurable via CORS_ORIGINS env var
    cors_origins_str = os.getenv("CORS_ORIGINS", "*")
    cors_origins = cors_origins_str.split(",") if cors_origins_str != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(runtime_router)  # /runtime

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "endpoints": {
                "runtime": "/runtime/execute - Execute one flow step",
                "health": "/health - Health check",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
