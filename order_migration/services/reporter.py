"""Report generation for completed migration runs."""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from ..models.migration import MigrationRun, MigrationStats
from ..models.record import FailedOrder, ReportResult, ValidationFailure

logger = logging.getLogger(__name__)

VALIDATION_CSV_HEADER = [
    "Order ID",
    "Discrepancy Type",
    "Field",
    "Source Value",
    "Destination Value",
    "Error",
]
FAILED_CSV_HEADER = ["Order ID", "Error"]

RULE = "=" * 60


def _cell(value) -> str:
    return "" if value is None else str(value)


class MigrationReporter:
    """
    Writes the human- and machine-readable reports of a run.

    Files, all sharing one timestamp:
    - migration-report-<ts>.txt: summary, failed orders, validation failures
    - validation-failures-<ts>.csv: one line per discrepancy (when any)
    - failed-orders-<ts>.csv: one line per failed order (when any)
    - migration-report-<ts>.json: the full run dump
    """

    def __init__(self, report_dir: str = "./reports"):
        self.report_dir = Path(report_dir)

    def generate(
        self,
        stats: MigrationStats,
        failed_orders: Sequence[FailedOrder],
        validation_failures: Sequence[ValidationFailure],
        run: Optional[MigrationRun] = None,
    ) -> ReportResult:
        """
        Generate the report files.

        Never raises: write errors are returned in ``ReportResult.error``.
        """
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")

        try:
            self.report_dir.mkdir(parents=True, exist_ok=True)
            files: List[str] = []

            report_path = self.report_dir / f"migration-report-{timestamp}.txt"
            report_path.write_text(
                self.render_text(stats, failed_orders, validation_failures),
                encoding="utf-8",
            )
            files.append(str(report_path))

            if validation_failures:
                files.append(str(self._write_validation_csv(timestamp, validation_failures)))

            if failed_orders:
                files.append(str(self._write_failed_csv(timestamp, failed_orders)))

            json_path = self.report_dir / f"migration-report-{timestamp}.json"
            payload = run.to_dict() if run is not None else {
                "stats": stats.to_dict(),
                "failed_orders": [f.to_dict() for f in failed_orders],
                "validation_failures": [v.to_dict() for v in validation_failures],
            }
            with open(json_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str)
            files.append(str(json_path))

        except Exception as e:
            logger.error(f"Failed to generate migration report: {e}")
            return ReportResult(error=str(e))

        logger.info(f"Migration report written to {report_path}")
        return ReportResult(report_path=str(report_path), files=files)

    def render_text(
        self,
        stats: MigrationStats,
        failed_orders: Sequence[FailedOrder],
        validation_failures: Sequence[ValidationFailure],
    ) -> str:
        lines = [
            "ORDER MIGRATION REPORT",
            RULE,
            f"Generated: {datetime.now().isoformat(timespec='seconds')}",
            "",
            "SUMMARY",
            "-" * 7,
            f"Total orders processed: {stats.total_processed}",
            f"Successfully migrated: {stats.success_count}",
            f"Failed migrations: {stats.failure_count}",
            f"Validation failures: {stats.validation_failure_count}",
            "",
        ]

        if failed_orders:
            lines += ["FAILED ORDERS", "-" * 13]
            for failed in failed_orders:
                lines.append(f"Order ID: {failed.order_id}")
                lines.append(f"  Error: {failed.error}")
            lines.append("")

        if validation_failures:
            lines += ["VALIDATION FAILURES", "-" * 19]
            for failure in validation_failures:
                lines.append(f"Order ID: {failure.order_id}")
                for discrepancy in failure.discrepancies:
                    lines.append(f"  - {discrepancy.describe()}")
                for error in failure.errors:
                    lines.append(f"  - error: {error}")
            lines.append("")

        return "\n".join(lines)

    def _write_validation_csv(self, timestamp: str, failures: Sequence[ValidationFailure]) -> Path:
        path = self.report_dir / f"validation-failures-{timestamp}.csv"
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(VALIDATION_CSV_HEADER)
            for failure in failures:
                for d in failure.discrepancies:
                    writer.writerow([
                        failure.order_id,
                        d.type.value,
                        _cell(d.field),
                        _cell(d.source_value),
                        _cell(d.dest_value),
                        _cell(d.error),
                    ])
                for error in failure.errors:
                    writer.writerow([failure.order_id, "", "", "", "", error])
        return path

    def _write_failed_csv(self, timestamp: str, failed_orders: Sequence[FailedOrder]) -> Path:
        path = self.report_dir / f"failed-orders-{timestamp}.csv"
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(FAILED_CSV_HEADER)
            for failed in failed_orders:
                writer.writerow([failed.order_id, failed.error])
        return path
