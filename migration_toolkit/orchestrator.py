"""Migration orchestrator - coordinates export, package storage and import."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .extractors.environment_extractor import EnvironmentExtractor
from .loaders.environment_loader import EnvironmentLoader
from .models.content import MigrationData
from .models.migration import MigrationConfig, MigrationRun, MigrationStatus, MigrationStep
from .services.formatter import JsonFormatter, MigrationDataFormatter
from .services.management_client import ManagementClient
from .services.migration_logger import MigrationLogger

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """
    Orchestrates a complete migration between two environments.

    Handles:
    - Export of the requested items from the source environment
    - Writing and reading the migration package
    - Import into the target environment
    - Progress tracking and reporting
    """

    def __init__(
        self,
        config: MigrationConfig,
        source_client: Optional[ManagementClient] = None,
        target_client: Optional[ManagementClient] = None,
        migration_logger: Optional[MigrationLogger] = None,
        formatter: Optional[MigrationDataFormatter] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            config: Migration configuration
            source_client: Client of the source environment (built from config when omitted)
            target_client: Client of the target environment (built from config when omitted)
            migration_logger: Logger receiving migration events
            formatter: Package codec, JSON by default
        """
        self.config = config
        self.source_client = source_client
        self.target_client = target_client
        self.log = migration_logger or MigrationLogger()
        self.formatter = formatter or JsonFormatter()

        self.run: Optional[MigrationRun] = None

        self._setup_directories()

    def _setup_directories(self):
        """Create output directories."""
        base = Path(self.config.output_dir)
        self.logs_dir = base / "logs"
        self.package_path = base / self.config.package_file

        for dir in [base, self.logs_dir]:
            dir.mkdir(parents=True, exist_ok=True)

    async def run_export(self) -> MigrationRun:
        """
        Export the configured items and write the package to disk.

        Returns:
            MigrationRun with results and statistics
        """
        return await self._execute(export=True, load=False)

    async def run_import(self, data: Optional[MigrationData] = None) -> MigrationRun:
        """
        Import a package into the target environment.

        Args:
            data: Package to import, read from the package file when omitted

        Returns:
            MigrationRun with results and statistics
        """
        return await self._execute(export=False, load=True, data=data)

    async def run_migration(self) -> MigrationRun:
        """
        Export from the source and import into the target in one run.

        Returns:
            MigrationRun with results and statistics
        """
        return await self._execute(export=True, load=True)

    async def _execute(self, export: bool, load: bool, data: Optional[MigrationData] = None) -> MigrationRun:
        self.run = MigrationRun(name=self.config.name)
        self.run.started_at = datetime.utcnow()

        try:
            if export:
                logger.info("=== PHASE 1: EXPORT ===")
                self.run.status = MigrationStatus.EXPORTING
                data = await self._run_export()
                self._save_package(data)

            if load:
                logger.info("=== PHASE 2: IMPORT ===")
                self.run.status = MigrationStatus.IMPORTING
                if data is None:
                    data = self._load_package()
                await self._run_import(data)

            self.run.status = MigrationStatus.COMPLETED
            logger.info("=== MIGRATION COMPLETED ===")

        except Exception as e:
            logger.error(f"Migration failed: {e}")
            self.run.errors.append({
                "phase": self.run.status.value,
                "error": str(e),
                "timestamp": datetime.utcnow().isoformat(),
            })
            self.run.status = MigrationStatus.FAILED

        finally:
            self.run.completed_at = datetime.utcnow()
            self.run.update_totals()
            self._save_report()

        return self.run

    async def _run_export(self) -> MigrationData:
        """Run the export phase."""
        export_config = self.config.export_config()
        step = self.run.add_step(f"Export from {export_config.environment.environment_id}")
        step.status = MigrationStatus.EXPORTING
        step.started_at = datetime.utcnow()

        extractor = EnvironmentExtractor(export_config, client=self.source_client, migration_logger=self.log)
        try:
            result = await extractor.extract()

            step.records_processed = len(export_config.export_items)
            step.records_succeeded = result.total_items
            step.records_failed = step.records_processed - result.total_items
            step.errors = result.errors
            step.warnings = result.warnings
            step.status = MigrationStatus.COMPLETED
            self.run.metadata["export"] = result.to_dict()
            logger.info(f"Exported {result.total_items} items and {result.total_assets} assets")
            if not result.success:
                logger.warning(f"Export skipped {len(result.errors)} failed requests")
            return result.data

        except Exception as e:
            self._fail_step(step, e)
            raise

        finally:
            step.completed_at = datetime.utcnow()
            await extractor.close()

    async def _run_import(self, data: MigrationData) -> None:
        """Run the import phase."""
        import_config = self.config.import_config()
        step = self.run.add_step(f"Import into {import_config.environment.environment_id}")
        step.status = MigrationStatus.IMPORTING
        step.started_at = datetime.utcnow()

        seen_errors = len(self.log.errors)
        seen_warnings = len(self.log.warnings)
        loader = EnvironmentLoader(import_config, client=self.target_client, migration_logger=self.log)
        try:
            result = await loader.load(data)

            for name, phase in result.phases.items():
                step.records_processed += phase.total_attempted
                step.records_succeeded += phase.total_created + phase.total_updated
                step.records_skipped += phase.total_skipped
                step.records_failed += phase.total_failed
                self.run.metadata[name] = {
                    "created": phase.total_created,
                    "updated": phase.total_updated,
                    "skipped": phase.total_skipped,
                    "failed": phase.total_failed,
                }

            self.run.metadata["import"] = result.to_dict()
            step.errors = [{"message": m} for m in result.errors[seen_errors:]]
            step.warnings = result.warnings[seen_warnings:]
            step.status = MigrationStatus.COMPLETED

        except Exception as e:
            self._fail_step(step, e)
            raise

        finally:
            step.completed_at = datetime.utcnow()
            await loader.close()

    def _fail_step(self, step: MigrationStep, error: Exception) -> None:
        step.status = MigrationStatus.FAILED
        step.errors.append({"error": str(error)})
        step.warnings = list(self.log.warnings)
        logger.error(f"{step.name} failed: {error}")

    def _save_package(self, data: MigrationData):
        """Write the migration package to disk."""
        self.package_path.write_bytes(self.formatter.serialize(data))
        logger.info(f"Saved migration package to {self.package_path}")

    def _load_package(self) -> MigrationData:
        """Read the migration package from disk."""
        if not self.package_path.exists():
            raise FileNotFoundError(f"Migration package not found: {self.package_path}")
        logger.info(f"Loading migration package from {self.package_path}")
        return self.formatter.parse(self.package_path.read_bytes())

    def _save_report(self):
        """Save the migration report."""
        filepath = self.logs_dir / f"migration_report_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.json"
        report = self.run.to_dict()
        report["events"] = [e.to_dict() for e in self.log.events]
        with open(filepath, 'w') as f:
            json.dump(report, f, indent=2, default=str)
        logger.info(f"Saved migration report to {filepath}")
