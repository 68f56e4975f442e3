import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from snaplink_app.config import settings
from snaplink_app.database.connection import engine, Base
from snaplink_app.exceptions import AppError
from snaplink_app.logging_config import setup_logging
from snaplink_app.middleware.logging import RequestLoggingMiddleware
from snaplink_app.api.v1 import urls, redirect, analytics

# Import models to ensure they're registered with Base
from snaplink_app.models import URL  # noqa: F401

setup_logging(settings.log_level, json_format=settings.log_format == "json")
logger = logging.getLogger("snaplink_app.main")


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
    yield
    engine.dispose()
    logger.info("%s stopped", settings.app_name)


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortener with click counting and analytics",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


######## Error envelopes: {"success": false, "error": "..."}

def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    if any(error.get("type") == "json_invalid" for error in exc.errors()):
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid JSON format")
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return error_response(exc.status_code, message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "api": "/api",
    }


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


######## Include routers
app.include_router(urls.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")
app.include_router(redirect.router, prefix="/api/urls")
# Root-level alias for clean short URLs; must stay last so it never shadows other routes
app.include_router(redirect.router)


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
