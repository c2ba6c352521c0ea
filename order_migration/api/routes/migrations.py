"""Migration run endpoints."""

import logging
from datetime import datetime
from typing import Callable

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from ..models import (
    MigrationCreate,
    MigrationListResponse,
    MigrationResponse,
)
from ..storage import migration_storage
from ...exceptions import ConfigurationError
from ...models.migration import MigrationConfig, MigrationRun, MigrationStatus

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=MigrationResponse)
async def create_migration(data: MigrationCreate, request: Request, background_tasks: BackgroundTasks):
    """Start a migration run in the background."""
    config: MigrationConfig = request.app.state.config_factory()
    config.batch_size = data.batch_size
    config.start_offset = data.start_offset
    config.max_orders = data.max_orders
    config.workers = data.workers
    if data.store_id:
        config.store_id = data.store_id

    try:
        config.validate()
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    run = MigrationRun(name=config.name, store_id=config.store_id, batch_size=config.batch_size)
    migration_storage.create(run)

    background_tasks.add_task(run_migration_task, request.app.state.orchestrator_factory, config, run)
    logger.info(f"Queued migration {run.id} for store {run.store_id}")
    return MigrationResponse.from_run(run)


@router.get("", response_model=MigrationListResponse)
async def list_migrations():
    """List all migration runs."""
    runs = migration_storage.list_all()
    return MigrationListResponse(
        migrations=[MigrationResponse.from_run(r) for r in runs],
        total=len(runs),
    )


@router.get("/{migration_id}", response_model=MigrationResponse)
async def get_migration(migration_id: str):
    """Get a specific migration run."""
    run = migration_storage.get(migration_id)
    if not run:
        raise HTTPException(status_code=404, detail="Migration not found")
    return MigrationResponse.from_run(run)


def run_migration_task(orchestrator_factory: Callable, config: MigrationConfig, run: MigrationRun):
    """Background task that executes a queued run."""
    try:
        orchestrator = orchestrator_factory(config)
        orchestrator.run_migration(run)
    except Exception as e:
        logger.error(f"Migration {run.id} failed: {e}")
        run.status = MigrationStatus.FAILED
        run.error = str(e)
        if run.completed_at is None:
            run.completed_at = datetime.utcnow()
