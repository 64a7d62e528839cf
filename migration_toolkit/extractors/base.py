"""Base extractor interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime

from ..models.content import MigrationData
from ..models.migration import ExportConfig
from ..models.record import MigrationResult
from ..services.migration_logger import MigrationLogger


@dataclass
class ExtractionResult:
    """Result of an extraction operation."""
    environment_id: str
    data: MigrationData = field(default_factory=MigrationData)
    results: List[MigrationResult] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def total_items(self) -> int:
        return len(self.data.items)

    @property
    def total_assets(self) -> int:
        return len(self.data.assets)

    @property
    def success(self) -> bool:
        """Check if extraction was successful."""
        return len(self.errors) == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "environment_id": self.environment_id,
            "total_items": self.total_items,
            "total_assets": self.total_assets,
            "results": [r.to_dict() for r in self.results],
            "errors": self.errors,
            "warnings": self.warnings,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "metadata": self.metadata,
        }


class BaseExtractor(ABC):
    """
    Base class for exporters of an environment.

    Extractors pull content from a source environment and convert it to
    the portable MigrationData graph.
    """

    def __init__(self, config: ExportConfig, migration_logger: Optional[MigrationLogger] = None):
        """
        Initialize the extractor.

        Args:
            config: Export configuration
            migration_logger: Logger receiving migration events
        """
        self.config = config
        self.log = migration_logger or MigrationLogger()

    @abstractmethod
    async def extract(self) -> ExtractionResult:
        """
        Export all requested content from the source environment.

        Returns:
            ExtractionResult holding the exported MigrationData
        """
        pass

    def get_extraction_result(self, data: MigrationData, results: List[MigrationResult]) -> ExtractionResult:
        """Create an ExtractionResult from exported data."""
        return ExtractionResult(
            environment_id=self.config.environment.environment_id,
            data=data,
            results=results,
            errors=[{"message": m} for m in self.log.errors],
            warnings=list(self.log.warnings),
        )
