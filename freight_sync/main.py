"""
Freight Sync - PortPro webhook DLQ API
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from freight_sync.core.config import settings
from freight_sync.core.logging import setup_logging
from freight_sync.api.error_handlers import register_exception_handlers
from freight_sync.api.routes import admin_dlq, health, jobs

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown."""
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")
    yield
    logger.info(f"Stopping {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Dead-letter queue and retry engine for PortPro load webhooks",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router, tags=["Health"])
app.include_router(jobs.router)
app.include_router(admin_dlq.router)


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "status": "running",
        "docs": "/docs",
    }
