"""Base loader interface for the target environment."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar
from datetime import datetime
import logging

from ..models.migration import ImportConfig
from ..models.record import ActionType, ImportedData, MigrationResult, RecordKind
from ..services.migration_logger import MigrationLogger
from ..services.processing import process_items
from .import_context import ImportContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class LoadResult:
    """Result of a load operation."""
    entity: str
    total_attempted: int = 0
    total_created: int = 0
    total_updated: int = 0
    total_skipped: int = 0
    total_failed: int = 0
    results: List[MigrationResult] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def add(self, result: MigrationResult) -> None:
        self.results.append(result)
        if result.action == ActionType.CREATED:
            self.total_created += 1
        elif result.action == ActionType.UPDATED:
            self.total_updated += 1
        elif result.action == ActionType.SKIPPED:
            self.total_skipped += 1
        elif result.action == ActionType.FAILED:
            self.total_failed += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "total_attempted": self.total_attempted,
            "total_created": self.total_created,
            "total_updated": self.total_updated,
            "total_skipped": self.total_skipped,
            "total_failed": self.total_failed,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class ImportResult:
    """Results of every import phase plus the final accumulator."""
    phases: Dict[str, LoadResult] = field(default_factory=dict)
    imported_data: ImportedData = field(default_factory=ImportedData)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phases": {name: r.to_dict() for name, r in self.phases.items()},
            "warnings": self.warnings,
            "errors": self.errors,
        }


class BaseLoader(ABC, Generic[T]):
    """
    Base class for the loaders of one import phase.

    Each loader receives the ImportedData produced by the previous phase
    and returns an extended copy together with its LoadResult.
    """

    entity: RecordKind

    def __init__(
        self,
        client,
        context: ImportContext,
        config: ImportConfig,
        migration_logger: MigrationLogger,
    ):
        """
        Initialize the loader.

        Args:
            client: Management API client of the target environment
            context: Import context with the target state
            config: Import configuration
            migration_logger: Logger receiving migration events
        """
        self.client = client
        self.context = context
        self.config = config
        self.log = migration_logger

    @property
    def parallel_limit(self) -> int:
        return self.config.item_parallel_limit

    @abstractmethod
    async def load_record(self, record: T, imported_data: ImportedData) -> Tuple[MigrationResult, Any]:
        """
        Load a single record to the target environment.

        Args:
            record: Package record to import
            imported_data: Objects imported by the previous phases

        Returns:
            MigrationResult and the target object it produced
        """
        pass

    @abstractmethod
    def describe(self, record: T) -> str:
        """Human readable name of a record for log messages."""
        pass

    @abstractmethod
    def accumulate(self, imported_data: ImportedData, loaded: List[Any]) -> ImportedData:
        """Return imported_data extended with the loaded target objects."""
        pass

    async def load_all(self, records: Sequence[T], imported_data: ImportedData) -> Tuple[LoadResult, ImportedData]:
        """
        Load every record of this phase.

        Args:
            records: Package records to import
            imported_data: Accumulator produced by the previous phase

        Returns:
            LoadResult with phase statistics and the extended accumulator
        """
        result = LoadResult(entity=self.entity.value)
        result.started_at = datetime.utcnow()
        logger.info(f"Loading {len(records)} {self.entity.value} records...")

        outcomes = await process_items(
            records,
            lambda record: self.load_record(record, imported_data),
            parallel_limit=self.parallel_limit,
            skip_failed_items=self.config.skip_failed_items,
            describe=self.describe,
            migration_logger=self.log,
        )

        result.total_attempted = len(records)
        for migration_result, _ in outcomes:
            result.add(migration_result)
        result.total_failed += len(records) - len(outcomes)
        result.completed_at = datetime.utcnow()

        logger.info(
            f"Loaded {self.entity.value}: {result.total_created} created, {result.total_updated} updated, "
            f"{result.total_skipped} skipped, {result.total_failed} failed"
        )

        return result, self.accumulate(imported_data, [target for _, target in outcomes if target is not None])
