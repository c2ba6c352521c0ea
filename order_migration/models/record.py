"""Record models for migration data."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime


class DiscrepancyType(str, Enum):
    """Part of the destination record a discrepancy was found in."""
    ORDER = "order"
    PRODUCT = "product"
    TOTAL = "total"


@dataclass
class SourceOrder:
    """One denormalized order row extracted from the source store."""
    id: str
    data: Dict[str, Any]
    extracted_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "data": self.data,
            "extracted_at": self.extracted_at.isoformat(),
        }

    def get_field(self, name: str, default: Any = None) -> Any:
        """
        Get a field value by column name.

        Source column casing is inconsistent (``Currency`` vs ``currency``),
        so an exact match is tried first and then a case-insensitive one.
        """
        if name in self.data:
            value = self.data[name]
            return default if value is None else value

        lowered = name.lower()
        for key, value in self.data.items():
            if key.lower() == lowered:
                return default if value is None else value
        return default


@dataclass
class VoucherRecord:
    """A gift-voucher entry belonging to a source order."""
    order_id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {"order_id": self.order_id, "data": self.data}


@dataclass
class TransformedOrder:
    """
    An order in the destination schema's shape.

    Each row dict carries every column of its destination table; columns
    with no source value are present with ``None``.
    """
    order_id: str
    order: Dict[str, Any]
    products: List[Dict[str, Any]] = field(default_factory=list)
    totals: List[Dict[str, Any]] = field(default_factory=list)
    vouchers: List[Dict[str, Any]] = field(default_factory=list)
    transformed_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "order_id": self.order_id,
            "order": self.order,
            "products": self.products,
            "totals": self.totals,
            "vouchers": self.vouchers,
            "transformed_at": self.transformed_at.isoformat(),
        }


@dataclass(frozen=True)
class LoadResult:
    """Result of loading one transformed order into the destination."""
    success: bool
    order_id: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "order_id": self.order_id,
            "error": self.error,
        }


@dataclass
class Discrepancy:
    """A mismatch or missing row found when checking a migrated order."""
    type: DiscrepancyType
    field: Optional[str] = None
    source_value: Optional[Any] = None
    dest_value: Optional[Any] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "type": self.type.value,
            "field": self.field,
            "source_value": self.source_value,
            "dest_value": self.dest_value,
            "error": self.error,
        }

    def describe(self) -> str:
        """One-line human readable description."""
        if self.error:
            return f"{self.type.value}: {self.error}"
        return (
            f'{self.type.value} field "{self.field}": '
            f'source value: "{self.source_value}", '
            f'destination value: "{self.dest_value}"'
        )


@dataclass
class ValidationResult:
    """Outcome of validating one migrated order."""
    discrepancies: List[Discrepancy] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """True when no discrepancy or read error was found."""
        return not self.discrepancies and not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "is_valid": self.is_valid,
            "discrepancies": [d.to_dict() for d in self.discrepancies],
            "errors": self.errors,
            "metadata": self.metadata,
        }


@dataclass
class FailedOrder:
    """An order that could not be migrated."""
    order_id: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"order_id": self.order_id, "error": self.error}


@dataclass
class ValidationFailure:
    """An order that was written but did not match its source."""
    order_id: str
    discrepancies: List[Discrepancy] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "discrepancies": [d.to_dict() for d in self.discrepancies],
            "errors": self.errors,
        }


@dataclass
class ReportResult:
    """Outcome of writing the run reports; exactly one field is set."""
    report_path: Optional[str] = None
    error: Optional[str] = None
    files: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_path": self.report_path,
            "error": self.error,
            "files": self.files,
        }
