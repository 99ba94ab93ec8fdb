"""
FastAPI application entry point.
SmartLife AI insurance portal API
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from smartlife import __version__
from smartlife.config import get_settings
from smartlife.api.routes import router
from smartlife.core.mongodb_client import (
    get_mongodb_client,
    get_database,
    close_mongodb_client,
    ensure_indexes,
)


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "change-me-in-production"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting SmartLife AI API...")
    logger.info(f"API Version: {__version__}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"AI provider: {settings.ai_provider}")

    if settings.jwt_secret == DEFAULT_JWT_SECRET and not settings.is_development:
        logger.warning("JWT_SECRET is the built-in default; set a real secret outside development")

    # Test MongoDB connection
    try:
        get_mongodb_client().admin.command("ping")
        ensure_indexes(get_database())
        logger.info("MongoDB connection established")
    except PyMongoError as e:
        logger.warning(f"MongoDB connection failed: {e}")
        logger.warning("API will start but database operations will fail")

    yield

    # Shutdown
    logger.info("Shutting down SmartLife AI API...")
    close_mongodb_client()
    logger.info("Cleanup complete")


# Create FastAPI application
app = FastAPI(
    title="SmartLife AI API",
    description="""
    Insurance portal backend for customers and agents

    ## Features

    - Account registration, login and password reset with JWT bearer tokens
    - Policy catalogue with side-by-side comparison
    - Claim filing and agent review workflow
    - AI assistant (keyword templates, HuggingFace or Vectara) with feedback
    - Policy recommendations and purchase likelihood prediction
    - Agent customer insights, segmentation and upsell simulation
    - PDF, Excel and CSV reports
    - Email and WhatsApp notifications
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report the first validation problem as a 400."""
    error = exc.errors()[0]
    message = str(error.get("msg", "Invalid request")).removeprefix("Value error, ")
    location = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": f"{location}: {message}" if location else message},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


# Include routes
app.include_router(router)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "SmartLife AI API",
        "version": __version__,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "smartlife.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )
