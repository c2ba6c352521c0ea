"""FastAPI application entry point."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..logger import configure_logging
from ..models.migration import MigrationConfig
from ..orchestrator import MigrationOrchestrator
from .models import HealthResponse
from .routes import migrations
from .storage import migration_storage


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = app.state.config_factory()
    configure_logging(config.log_level, log_dir=config.log_dir, redact_keys=config.redact_keys)
    yield


app = FastAPI(
    title="Order Migration API",
    description="API for starting and monitoring order migration runs",
    version=__version__,
    lifespan=lifespan,
)

# Swappable in tests
app.state.config_factory = lambda: MigrationConfig.from_env(os.environ)
app.state.orchestrator_factory = MigrationOrchestrator.from_config

# Include routers
app.include_router(migrations.router, prefix="/api/migrations", tags=["migrations"])


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        details={"runs": len(migration_storage.list_all())},
    )
