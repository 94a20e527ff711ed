"""
FastAPI Main Application
Forum API Service
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from forum_api.core.config import settings
from forum_api.core.database import close_database, init_database
from forum_api.core.exceptions import ForumError
from forum_api.core.logging import setup_logging
from forum_api.api.v1.router import api_router
from forum_api.middleware.logging import LoggingMiddleware

# Setup structured logging
setup_logging()
logger = structlog.get_logger()

SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting Forum API Service", version=SERVICE_VERSION, environment=settings.ENVIRONMENT)
    await init_database()

    yield

    logger.info("Shutting down Forum API Service")
    await close_database()


# Create FastAPI application
app = FastAPI(
    title="Forum API",
    description="Forum service with role based permission enforcement",
    version=SERVICE_VERSION,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan
)

# CORS is registered first so preflight requests never reach the auth layer
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
    max_age=600,
)

app.add_middleware(LoggingMiddleware)

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Forum API Service",
        "version": SERVICE_VERSION,
        "docs": "/docs" if settings.ENVIRONMENT == "development" else "disabled",
        "health": "/api/v1/health"
    }


@app.exception_handler(ForumError)
async def forum_exception_handler(request: Request, exc: ForumError):
    """Domain errors; details stay in the logs"""
    logger.info(
        "Request failed with domain error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
        **exc.details,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "forum_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower()
    )
