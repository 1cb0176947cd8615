"""
Video Vault - FastAPI Backend
Main application entry point with upload, gallery and diagnostics routing.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import missing_cloudinary_credentials, settings
from database import Base, dispose_engine, engine
import models  # noqa: F401
from routers import health, images, videos
from services.ingestion import IngestionError

logging.basicConfig(
    level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("video_vault")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Video Vault API...")
    missing = missing_cloudinary_credentials()
    if missing:
        logger.warning("Cloudinary is not fully configured, uploads will fail: missing %s", ", ".join(missing))
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database schema verified.")
        except Exception as e:
            logger.warning("Database bootstrap skipped: %s", e)
    yield
    await dispose_engine()
    logger.info("Shutting down API...")


app = FastAPI(
    title="Video Vault API",
    description="Upload, compress and share videos through Cloudinary",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IngestionError)
async def ingestion_error_handler(request: Request, exc: IngestionError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.details or exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(videos.router, prefix="/api", tags=["Videos"])
app.include_router(images.router, prefix="/api", tags=["Images"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Video Vault API",
        "version": "0.1.0",
        "status": "running"
    }
