"""Command line interface for the order migration."""

import argparse
import json
import logging
import sys
from typing import Mapping, Optional

from dotenv import load_dotenv

from .database.connection import DatabaseManager
from .exceptions import MigrationError
from .logger import configure_logging
from .models.migration import MigrationConfig
from .models.schema import DESTINATION_MAPPINGS
from .orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Order Migration Tool - Migrate orders from the source store to the destination store"
    )
    parser.add_argument("--env-file", help="Path to a .env file (default: ./.env if present)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run migration
    run_parser = subparsers.add_parser("run", help="Run a migration")
    run_parser.add_argument("--config", help="Path to a JSON migration config file")
    run_parser.add_argument("--batch-size", type=int, help="Orders per page")
    run_parser.add_argument("--store-id", help="Store whose orders are migrated")
    run_parser.add_argument("--start-offset", type=int, help="Row offset to resume from")
    run_parser.add_argument("--max-orders", type=int, help="Stop after this many orders")
    run_parser.add_argument("--workers", type=int, help="Orders processed concurrently per page")
    run_parser.add_argument("--report-dir", help="Directory for report files")
    run_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Connectivity check
    check_parser = subparsers.add_parser("check", help="Check source and destination connectivity")
    check_parser.add_argument("--config", help="Path to a JSON migration config file")

    # Show column mappings
    subparsers.add_parser("mappings", help="Print the destination column mappings")

    return parser


def load_config(args: argparse.Namespace, env: Optional[Mapping[str, str]] = None) -> MigrationConfig:
    """
    Resolve the run configuration.

    A JSON config file replaces the environment; command line flags
    override either.
    """
    if getattr(args, "config", None):
        with open(args.config) as f:
            config = MigrationConfig.from_dict(json.load(f))
    else:
        config = MigrationConfig.from_env(env)

    overrides = {
        "batch_size": getattr(args, "batch_size", None),
        "store_id": getattr(args, "store_id", None),
        "start_offset": getattr(args, "start_offset", None),
        "max_orders": getattr(args, "max_orders", None),
        "workers": getattr(args, "workers", None),
        "report_dir": getattr(args, "report_dir", None),
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    if getattr(args, "verbose", False):
        config.log_level = "DEBUG"

    config.validate()
    return config


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.env_file:
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    if args.command == "run":
        sys.exit(run_migration(args))
    elif args.command == "check":
        sys.exit(run_check(args))
    elif args.command == "mappings":
        print_mappings()
    else:
        parser.print_help()


def run_migration(args) -> int:
    """Run a migration; returns the process exit status."""
    try:
        config = load_config(args)
    except (MigrationError, OSError, ValueError) as e:
        configure_logging("INFO", log_dir=None)
        logger.error(f"Invalid configuration: {e}")
        return 1

    configure_logging(config.log_level, log_dir=config.log_dir, redact_keys=config.redact_keys)
    logger.info(f"Starting migration with config: {config.to_dict()}")

    try:
        orchestrator = MigrationOrchestrator.from_config(config)
        result = orchestrator.run_migration()
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        return 1

    stats = result.stats
    logger.info("=" * 60)
    logger.info("MIGRATION COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Status: {result.status.value}")
    logger.info(f"Total orders processed: {stats.total_processed}")
    logger.info(f"Successfully migrated: {stats.success_count}")
    logger.info(f"Failed migrations: {stats.failure_count}")
    logger.info(f"Validation failures: {stats.validation_failure_count}")
    if result.duration_seconds:
        logger.info(f"Duration: {result.duration_seconds:.2f} seconds")
    if result.report_path:
        logger.info(f"Report: {result.report_path}")
    return 0


def run_check(args) -> int:
    """Check that both databases are reachable."""
    configure_logging("INFO", log_dir=None)
    try:
        config = load_config(args)
    except (MigrationError, OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    healthy = True
    for name, db_config in (("source database", config.source), ("destination database", config.destination)):
        try:
            with DatabaseManager(db_config, name=name) as database:
                ok = database.health_check()
        except Exception as e:
            logger.error(f"Cannot connect to {name}: {e}")
            ok = False
        print(f"{name}: {'ok' if ok else 'FAILED'}")
        healthy = healthy and ok

    return 0 if healthy else 1


def print_mappings():
    """Print the destination column mappings as JSON."""
    print(json.dumps([m.to_dict() for m in DESTINATION_MAPPINGS], indent=2, default=str))


if __name__ == "__main__":
    main()
