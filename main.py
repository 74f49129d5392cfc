"""
FastAPI application entry point for Server Content Compare.
"""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from config import settings

# Configure logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
)

logger = structlog.get_logger()

from api.routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting Server Content Compare", version=settings.APP_VERSION)

    # Ensure directories exist
    settings.ensure_directories()

    # Validate configuration
    issues = settings.validate()
    if issues:
        for issue in issues:
            logger.warning(f"Configuration issue: {issue}")

    yield

    # Shutdown
    logger.info("Shutting down Server Content Compare")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Classification of exported server configuration objects",
    lifespan=lifespan
)

# Include routes
app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
