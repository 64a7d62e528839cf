"""Command line interface for the content migration toolkit."""

import argparse
import asyncio
import json
import logging
import sys

from .models.migration import ExportRequestItem, MigrationConfig, MigrationRun, MigrationStatus
from .orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Content Migration Tool - Move content between CMS environments"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Export
    export_parser = subparsers.add_parser("export", help="Export items to a migration package")
    _add_common_arguments(export_parser)
    export_parser.add_argument(
        "--item",
        action="append",
        default=[],
        metavar="CODENAME:LANGUAGE",
        help="Item to export, may be repeated (adds to the config's export_items)",
    )

    # Import
    import_parser = subparsers.add_parser("import", help="Import a migration package")
    _add_common_arguments(import_parser)

    # Export + import
    migrate_parser = subparsers.add_parser("migrate", help="Export and import in one run")
    _add_common_arguments(migrate_parser)

    args = parser.parse_args()

    # Set up logging
    log_level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    if args.command not in ("export", "import", "migrate"):
        parser.print_help()
        return

    config = load_config(args)
    orchestrator = MigrationOrchestrator(config)

    if args.command == "export":
        result = asyncio.run(orchestrator.run_export())
    elif args.command == "import":
        result = asyncio.run(orchestrator.run_import())
    else:
        result = asyncio.run(orchestrator.run_migration())

    print_summary(args.command, result)
    if result.status == MigrationStatus.FAILED:
        sys.exit(1)


def _add_common_arguments(subparser: argparse.ArgumentParser):
    subparser.add_argument("--config", required=True, help="Path to migration config file")
    subparser.add_argument("--output-dir", help="Directory for the package and reports")
    subparser.add_argument("--package-file", help="File name of the migration package")
    subparser.add_argument("--skip-failed-items", action="store_true", help="Log and skip failing items")
    subparser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")


def parse_export_item(value: str) -> ExportRequestItem:
    """Parse a CODENAME:LANGUAGE pair."""
    codename, sep, language = value.partition(":")
    if not sep or not codename or not language:
        raise ValueError(f"Invalid item '{value}', expected CODENAME:LANGUAGE")
    return ExportRequestItem(item_codename=codename, language_codename=language)


def load_config(args) -> MigrationConfig:
    """Load a migration config file and apply command line overrides."""
    with open(args.config) as f:
        config_data = json.load(f)

    config = MigrationConfig.from_dict(config_data)

    if args.output_dir:
        config.output_dir = args.output_dir
    if args.package_file:
        config.package_file = args.package_file
    if args.skip_failed_items:
        config.skip_failed_items = True
    for value in getattr(args, "item", []):
        config.export_items.append(parse_export_item(value))

    return config


def print_summary(command: str, result: MigrationRun):
    print("\n" + "=" * 60)
    print(f"{command.upper()} COMPLETE")
    print("=" * 60)
    print(f"Status: {result.status.value}")
    print(f"Records Processed: {result.total_records_processed}")
    print(f"Succeeded: {result.total_records_succeeded}")
    print(f"Skipped: {result.total_records_skipped}")
    print(f"Failed: {result.total_records_failed}")
    for error in result.errors:
        print(f"Error: {error['error']}")
    if result.duration_seconds:
        print(f"Duration: {result.duration_seconds:.2f} seconds")


if __name__ == "__main__":
    main()
