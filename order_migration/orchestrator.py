"""Migration orchestrator - drives the paginated order migration."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from .database.connection import DatabaseManager
from .extractors.base import BaseExtractor
from .extractors.sql_extractor import SQLOrderExtractor
from .loaders.base import BaseLoader
from .loaders.sql_loader import SQLOrderLoader
from .logger import log_with_context
from .models.migration import (
    MigrationConfig,
    MigrationRun,
    MigrationStats,
    MigrationStatus,
)
from .models.record import (
    FailedOrder,
    SourceOrder,
    ValidationFailure,
    ValidationResult,
)
from .services.reporter import MigrationReporter
from .services.transformer import OrderTransformer
from .services.validator import MigrationValidator

logger = logging.getLogger(__name__)


@dataclass
class OrderOutcome:
    """What happened to one source order."""
    order_id: str
    error: Optional[str] = None
    validation: Optional[ValidationResult] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def invalid(self) -> bool:
        return self.validation is not None and not self.validation.is_valid


class MigrationOrchestrator:
    """
    Orchestrates the order migration.

    Handles:
    - Offset pagination over the source until a page comes back empty
    - Per order: vouchers, transform, load, read-back validation
    - Isolation of per-order errors from the rest of the run
    - Optional concurrent processing of one page's orders
    - Progress logging, run lifecycle and reporting
    """

    def __init__(
        self,
        extractor: BaseExtractor,
        loader: BaseLoader,
        validator: MigrationValidator,
        destination: DatabaseManager,
        reporter: Optional[MigrationReporter] = None,
        transformer: Optional[OrderTransformer] = None,
        config: Optional[MigrationConfig] = None,
        owns_stores: bool = False,
    ):
        """
        Initialize the orchestrator.

        Args:
            extractor: Source order store
            loader: Destination writer
            validator: Read-back validator
            destination: Destination database the validator reads from
            reporter: Report writer; no reports when None
            transformer: Order transformer
            config: Run options (store, batch size, offsets, workers)
            owns_stores: Close extractor and loader when the run ends
        """
        self.config = config or MigrationConfig()
        self.extractor = extractor
        self.loader = loader
        self.validator = validator
        self.destination = destination
        self.reporter = reporter
        self.transformer = transformer or OrderTransformer()
        self.owns_stores = owns_stores

        self.current_run: Optional[MigrationRun] = None

    @classmethod
    def from_config(cls, config: MigrationConfig) -> "MigrationOrchestrator":
        """Build an orchestrator with its own source and destination connections."""
        config.validate()

        source = DatabaseManager(config.source, name="source database").initialize()
        try:
            destination = DatabaseManager(config.destination, name="destination database").initialize()
        except Exception:
            source.close()
            raise

        return cls(
            extractor=SQLOrderExtractor(source),
            loader=SQLOrderLoader(destination),
            validator=MigrationValidator(),
            destination=destination,
            reporter=MigrationReporter(config.report_dir),
            config=config,
            owns_stores=True,
        )

    def run_migration(self, run: Optional[MigrationRun] = None) -> MigrationRun:
        """
        Run the complete migration with status tracking and reporting.

        Args:
            run: Run record to update; a new one is created when None

        Returns:
            The finished MigrationRun

        Raises:
            Exception: Any fatal fault, after the run is marked failed
        """
        run = run or MigrationRun(
            name=self.config.name,
            store_id=self.config.store_id,
            batch_size=self.config.batch_size,
        )
        run.started_at = datetime.utcnow()
        run.status = MigrationStatus.RUNNING
        logger.info(f"=== MIGRATION STARTED: store {run.store_id}, batch size {run.batch_size} ===")

        try:
            self.run_pages(run)
            run.status = MigrationStatus.COMPLETED
            logger.info("=== MIGRATION COMPLETED ===")

        except Exception as e:
            logger.error(f"Migration failed: {e}")
            run.status = MigrationStatus.FAILED
            run.error = str(e)
            raise

        finally:
            run.completed_at = datetime.utcnow()
            self._report(run)
            if self.owns_stores:
                self.close()

        return run

    def run(self, batch_size: Optional[int] = None, store_filter: Optional[str] = None) -> MigrationStats:
        """
        Migrate every order of a store.

        Args:
            batch_size: Page size; defaults to the configured batch size
            store_filter: Store to migrate; defaults to the configured store

        Returns:
            MigrationStats for this run
        """
        run = MigrationRun(
            name=self.config.name,
            store_id=store_filter or self.config.store_id,
            batch_size=batch_size or self.config.batch_size,
        )
        self.run_pages(run)
        return run.stats

    def run_pages(self, run: MigrationRun) -> MigrationStats:
        """Page through the source, processing every order into ``run``."""
        self.current_run = run
        stats = run.stats
        max_orders = self.config.max_orders
        offset = self.config.start_offset

        for page in self.extractor.stream(run.store_id, run.batch_size, offset):
            if max_orders is not None:
                page = page[:max_orders - stats.total_processed]
                if not page:
                    break

            run.pages_fetched += 1
            for outcome in self._process_page(page):
                self._record(run, outcome)

            offset += run.batch_size
            run.last_offset = offset
            logger.info(
                f"Progress: {stats.total_processed} processed, {stats.success_count} succeeded, "
                f"{stats.failure_count} failed, {stats.validation_failure_count} failed validation"
            )

            if max_orders is not None and stats.total_processed >= max_orders:
                logger.info(f"Reached max_orders={max_orders}, stopping")
                break
        else:
            logger.info("No more orders to process")

        logger.info(f"Migration summary: {stats.to_dict()}")
        return stats

    def _process_page(self, page: List[SourceOrder]) -> List[OrderOutcome]:
        """
        Process a page, one task per order.

        Rows of the same order stay on one task and run in page order.
        Outcomes come back in page order.
        """
        rows_by_order: Dict[str, List[int]] = {}
        for index, source_order in enumerate(page):
            rows_by_order.setdefault(str(source_order.id), []).append(index)

        workers = self.config.workers
        if workers <= 1 or len(rows_by_order) <= 1:
            return [self.process_order(source_order) for source_order in page]

        groups = [[page[i] for i in indexes] for indexes in rows_by_order.values()]
        with ThreadPoolExecutor(max_workers=min(workers, len(groups))) as pool:
            results = list(pool.map(self._process_rows, groups))

        outcomes: List[Optional[OrderOutcome]] = [None] * len(page)
        for indexes, group_outcomes in zip(rows_by_order.values(), results):
            for index, outcome in zip(indexes, group_outcomes):
                outcomes[index] = outcome
        return outcomes

    def _process_rows(self, rows: List[SourceOrder]) -> List[OrderOutcome]:
        return [self.process_order(row) for row in rows]

    def process_order(self, source_order: SourceOrder) -> OrderOutcome:
        """Migrate one order; never raises."""
        order_id = str(source_order.id)
        try:
            vouchers = self.extractor.fetch_vouchers(order_id)
            transformed = self.transformer.transform(source_order, vouchers)

            result = self.loader.load(transformed)
            if not result.success:
                return OrderOutcome(order_id=order_id, error=result.error or "Load failed")

            validation = self.validator.validate(self.destination, source_order, transformed.order_id)
            return OrderOutcome(order_id=order_id, validation=validation)

        except Exception as e:
            logger.error(f"Error processing order {order_id}: {e}")
            return OrderOutcome(order_id=order_id, error=str(e))

    def _record(self, run: MigrationRun, outcome: OrderOutcome) -> None:
        stats = run.stats
        stats.total_processed += 1

        if outcome.failed:
            stats.failure_count += 1
            run.failed_orders.append(FailedOrder(order_id=outcome.order_id, error=outcome.error))
        elif outcome.invalid:
            stats.validation_failure_count += 1
            run.validation_failures.append(ValidationFailure(
                order_id=outcome.order_id,
                discrepancies=outcome.validation.discrepancies,
                errors=outcome.validation.errors,
            ))
            log_with_context(
                logger,
                logging.WARNING,
                f"Validation failed for order {outcome.order_id}",
                order_id=outcome.order_id,
                discrepancies=len(outcome.validation.discrepancies),
                errors=len(outcome.validation.errors),
            )
        else:
            stats.success_count += 1

    def _report(self, run: MigrationRun) -> None:
        if self.reporter is None:
            return

        result = self.reporter.generate(run.stats, run.failed_orders, run.validation_failures, run=run)
        if result.error:
            logger.error(f"Could not write migration report: {result.error}")
            return

        run.report_path = result.report_path
        logger.info(f"Report saved to: {result.report_path}")
        if run.stats.validation_failure_count:
            logger.warning(
                f"{run.stats.validation_failure_count} orders failed validation, "
                f"see {result.report_path}"
            )

    def close(self) -> None:
        """Release the source and destination stores."""
        self.extractor.close()
        self.loader.close()
        if self.destination is not None:
            self.destination.close()
