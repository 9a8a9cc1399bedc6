"""
FastAPI application entry point for the XIGRA+ print backend.

This module initializes the FastAPI app with middleware, CORS, logging,
error handlers, the expiry reaper lifecycle, and registers all API routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from slowapi.errors import RateLimitExceeded

from xigra import __version__
from xigra.config import Settings, settings as default_settings
from xigra.core.errors import XigraError
from xigra.dependencies import build_services
from xigra.limiter import configure_limits, limiter
from xigra.routers import files, qr, shops

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Optional[Settings] = None, start_reaper: bool = True) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan context manager for startup and shutdown events.
        """
        # Startup
        logger.info("Initializing record store and directories...")
        services = build_services(settings)
        app.state.services = services
        if start_reaper:
            services.reaper.start()
        logger.info("XIGRA+ backend ready")

        yield

        # Shutdown
        logger.info("Shutting down application...")
        services.reaper.shutdown()
        services.store.close()

    app = FastAPI(
        title="XIGRA+ Print API",
        description="Encrypted print uploads with unlock-on-demand and timed purge",
        version=__version__,
        lifespan=lifespan,
    )
    configure_limits(settings)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"error": "Rate limit exceeded. Please try again later."},
        )

    @app.exception_handler(XigraError)
    async def xigra_error_handler(request: Request, exc: XigraError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request"},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Global exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add GZip compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Register routers
    app.include_router(shops.router, prefix="/api", tags=["shops"])
    app.include_router(qr.router, prefix="/api/qr", tags=["qr"])
    app.include_router(files.router, prefix="/api", tags=["files"])
    app.include_router(files.preview_router, tags=["files"])

    @app.get("/")
    async def root():
        """Root endpoint for health check."""
        return {"message": "XIGRA+ Print API", "status": "running"}

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "xigra.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        log_level=default_settings.LOG_LEVEL.lower(),
    )
