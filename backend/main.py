"""
Main module for the FastAPI application.
"""
import os
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.version import API_VERSION, get_version_info
from app.db.session import engine
from app.api.v1.introductions import router as introductions_v1_router
from app.api.v1.professionals import router as professionals_v1_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan event handler - runs on startup and shutdown.
    """
    port = int(os.getenv("PORT", settings.API_PORT))
    database = "DATABASE_URL" if os.getenv("DATABASE_URL") else "DB_* env vars"
    logger.info(f"[STARTUP] Talent Introductions API {API_VERSION} starting")
    logger.info(f"[STARTUP] Database configured from {database}")
    logger.info(f"[STARTUP] Introduction requests expire after {settings.INTRODUCTION_EXPIRY_DAYS} days")
    logger.info(f"[STARTUP] Docs: http://localhost:{port}/docs")

    yield

    # Shutdown
    await engine.dispose()
    logger.info("[SHUTDOWN] Talent Introductions API shutting down")


app = FastAPI(
    title="Talent Introductions API",
    description="Introduction requests between companies and professionals",
    version=API_VERSION,
    lifespan=lifespan,
)

# Configure CORS
if settings.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Include routers
app.include_router(introductions_v1_router, prefix="/api/v1")
app.include_router(professionals_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """
    Root endpoint with version information.
    """
    return {"message": "Talent Introductions API is running", **get_version_info()}


@app.get("/health")
async def health():
    """
    Health check endpoint.
    """
    return {"status": "ok"}


if __name__ == "__main__":
    """
    Run the application directly.
    """
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=int(os.getenv("PORT", settings.API_PORT)),
        reload=True,
    )
