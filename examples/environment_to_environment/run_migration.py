#!/usr/bin/env python3
"""
Example: Environment to Environment Migration

Copies a handful of articles, together with the items and assets they
reference, from a source environment into a target environment.

Usage:
    export MIGRATION_SOURCE_API_KEY=...
    export MIGRATION_TARGET_API_KEY=...

    # Export and import in one run
    python run_migration.py

    # Only import articles, never the authors they link to
    python run_migration.py --only-type article
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from migration_toolkit.models.migration import CanImport, MigrationConfig
from migration_toolkit.orchestrator import MigrationOrchestrator
from migration_toolkit.services.migration_logger import LogEvent, LogType, MigrationLogger

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('migration.log')
    ]
)
logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent / "migration_config.json"


def print_progress(event: LogEvent):
    """Echo write operations as they happen."""
    if event.type in (LogType.CREATE, LogType.UPSERT, LogType.PUBLISH, LogType.ARCHIVE):
        print(f"  [{event.type.value}] {event.message}")


async def run_migration(config: MigrationConfig, only_type: str = None):
    """Run the migration."""
    logger.info("=" * 60)
    logger.info("STARTING MIGRATION")
    logger.info("=" * 60)
    logger.info(f"Name: {config.name}")
    logger.info(f"Source: {config.source.environment_id}")
    logger.info(f"Target: {config.target.environment_id}")
    logger.info(f"Items: {len(config.export_items)}")

    orchestrator = MigrationOrchestrator(config, migration_logger=MigrationLogger(callback=print_progress))

    result = await orchestrator.run_export()
    if result.status.value == "failed":
        return result

    if only_type:
        config.can_import = CanImport(
            content_item=lambda item: item.system.type.codename == only_type,
        )
        logger.info(f"Importing only items of type '{only_type}'")

    result = await orchestrator.run_import()

    logger.info("=" * 60)
    logger.info("MIGRATION COMPLETE")
    logger.info("=" * 60)
    logger.info(f"Status: {result.status.value}")
    logger.info(f"Total Processed: {result.total_records_processed}")
    logger.info(f"Succeeded: {result.total_records_succeeded}")
    logger.info(f"Failed: {result.total_records_failed}")
    logger.info(f"Skipped: {result.total_records_skipped}")

    if result.duration_seconds:
        logger.info(f"Duration: {result.duration_seconds:.2f} seconds")

    if result.errors:
        logger.warning(f"\nErrors ({len(result.errors)}):")
        for error in result.errors[:10]:
            logger.warning(f"  - {error}")

    return result


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Environment to Environment Migration"
    )
    parser.add_argument(
        "--config",
        default=str(CONFIG_PATH),
        help="Path to JSON config file"
    )
    parser.add_argument(
        "--only-type",
        help="Import only content items of this content type"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    required_env = ["MIGRATION_SOURCE_API_KEY", "MIGRATION_TARGET_API_KEY"]
    missing = [var for var in required_env if not os.environ.get(var)]
    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
        sys.exit(1)

    with open(args.config) as f:
        config = MigrationConfig.from_dict(json.load(f))

    result = asyncio.run(run_migration(config, args.only_type))
    if result.status.value == "failed":
        sys.exit(1)


if __name__ == "__main__":
    main()
