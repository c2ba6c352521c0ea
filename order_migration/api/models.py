"""Pydantic models for API requests and responses."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models.migration import MigrationRun


class MigrationStatusEnum(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# Request Models
class MigrationCreate(BaseModel):
    batch_size: int = Field(default=100, gt=0)
    store_id: Optional[str] = None
    start_offset: int = Field(default=0, ge=0)
    max_orders: Optional[int] = Field(default=None, ge=0)
    workers: int = Field(default=1, gt=0)


# Response Models
class StatsResponse(BaseModel):
    total_processed: int = 0
    success_count: int = 0
    failure_count: int = 0
    validation_failure_count: int = 0


class FailedOrderResponse(BaseModel):
    order_id: str
    error: str


class DiscrepancyResponse(BaseModel):
    type: str
    field: Optional[str] = None
    source_value: Optional[Any] = None
    dest_value: Optional[Any] = None
    error: Optional[str] = None


class ValidationFailureResponse(BaseModel):
    order_id: str
    discrepancies: List[DiscrepancyResponse] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class MigrationResponse(BaseModel):
    id: str
    name: str
    status: MigrationStatusEnum
    store_id: str
    batch_size: int
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    stats: StatsResponse
    pages_fetched: int = 0
    last_offset: int = 0
    failed_orders: List[FailedOrderResponse] = Field(default_factory=list)
    validation_failures: List[ValidationFailureResponse] = Field(default_factory=list)
    report_path: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_run(cls, run: MigrationRun) -> "MigrationResponse":
        return cls(**run.to_dict())


class MigrationListResponse(BaseModel):
    migrations: List[MigrationResponse]
    total: int


class HealthResponse(BaseModel):
    status: str
    version: str
    details: Dict[str, Any] = Field(default_factory=dict)
