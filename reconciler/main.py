"""
reconciler/main.py

FastAPI application entry point for the reconciliation service.
Registers the intake routers.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI

from reconciler.routers.incoming import router as incoming_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle: startup and shutdown."""
    logger.info("reconciler_starting", port=8000)
    yield
    logger.info("reconciler_shutting_down")


app = FastAPI(
    title="Diabetes Sync Reconciler",
    description="Incoming-data reconciliation for the remote diabetes store",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(incoming_router)
