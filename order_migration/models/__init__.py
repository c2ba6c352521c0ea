"""Data models for the migration application."""

from .schema import (
    ValueType,
    ColumnMapping,
    TableMapping,
    ORDER_MAPPING,
    ORDER_PRODUCT_MAPPING,
    ORDER_PRODUCT_DATA_MAPPING,
    ORDER_TOTAL_MAPPING,
    VOUCHER_MAPPING,
)
from .migration import (
    DatabaseConfig,
    MigrationConfig,
    MigrationRun,
    MigrationStats,
    MigrationStatus,
)
from .record import (
    SourceOrder,
    VoucherRecord,
    TransformedOrder,
    LoadResult,
    Discrepancy,
    DiscrepancyType,
    ValidationResult,
    FailedOrder,
    ValidationFailure,
    ReportResult,
)

__all__ = [
    "ValueType",
    "ColumnMapping",
    "TableMapping",
    "ORDER_MAPPING",
    "ORDER_PRODUCT_MAPPING",
    "ORDER_PRODUCT_DATA_MAPPING",
    "ORDER_TOTAL_MAPPING",
    "VOUCHER_MAPPING",
    "DatabaseConfig",
    "MigrationConfig",
    "MigrationRun",
    "MigrationStats",
    "MigrationStatus",
    "SourceOrder",
    "VoucherRecord",
    "TransformedOrder",
    "LoadResult",
    "Discrepancy",
    "DiscrepancyType",
    "ValidationResult",
    "FailedOrder",
    "ValidationFailure",
    "ReportResult",
]
