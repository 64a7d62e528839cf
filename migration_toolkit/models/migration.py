"""Migration execution models."""

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from enum import Enum
from datetime import datetime
import uuid

from .content import MigrationAsset, MigrationItem


DEFAULT_BASE_URL = "https://manage.kontent.ai/v2"


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    EXPORTING = "exporting"
    IMPORTING = "importing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class EnvironmentConfig:
    """Connection settings for one environment."""
    environment_id: str
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = 3
    timeout: float = 60.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (API key excluded)."""
        return {
            "environment_id": self.environment_id,
            "base_url": self.base_url,
            "max_retries": self.max_retries,
            "timeout": self.timeout,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], api_key_env: Optional[str] = None) -> "EnvironmentConfig":
        """Create from dictionary representation, falling back to an env var for the key."""
        api_key = data.get("api_key")
        if not api_key and api_key_env:
            api_key = os.environ.get(api_key_env)
        return cls(
            environment_id=data.get("environment_id", ""),
            api_key=api_key,
            base_url=data.get("base_url") or DEFAULT_BASE_URL,
            max_retries=data.get("max_retries", 3),
            timeout=data.get("timeout", 60.0),
        )


@dataclass(frozen=True)
class ExportRequestItem:
    """A content item language variant requested for export."""
    item_codename: str
    language_codename: str

    def to_dict(self) -> Dict[str, Any]:
        return {"item_codename": self.item_codename, "language_codename": self.language_codename}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportRequestItem":
        return cls(item_codename=data["item_codename"], language_codename=data["language_codename"])


@dataclass
class ExportConfig:
    """Configuration of an export run."""
    environment: EnvironmentConfig
    export_items: List[ExportRequestItem] = field(default_factory=list)
    skip_failed_items: bool = False
    replace_invalid_links: bool = False
    fetch_asset_details: bool = True
    item_parallel_limit: int = 1
    reference_parallel_limit: int = 5
    asset_parallel_limit: int = 5


@dataclass
class CanImport:
    """Predicates deciding which parts of a package are imported."""
    asset: Optional[Callable[[MigrationAsset], bool]] = None
    content_item: Optional[Callable[[MigrationItem], bool]] = None


@dataclass
class ImportConfig:
    """Configuration of an import run."""
    environment: EnvironmentConfig
    skip_failed_items: bool = False
    can_import: CanImport = field(default_factory=CanImport)
    external_id_generator: Optional[Callable[[str], str]] = None
    item_parallel_limit: int = 1
    reference_parallel_limit: int = 5
    asset_parallel_limit: int = 5


@dataclass
class MigrationStep:
    """A single step in a migration process."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    status: MigrationStatus = MigrationStatus.PENDING
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    records_processed: int = 0
    records_succeeded: int = 0
    records_failed: int = 0
    records_skipped: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "records_processed": self.records_processed,
            "records_succeeded": self.records_succeeded,
            "records_failed": self.records_failed,
            "records_skipped": self.records_skipped,
            "errors": self.errors,
            "warnings": self.warnings,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


@dataclass
class MigrationRun:
    """A complete migration run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    status: MigrationStatus = MigrationStatus.PENDING

    # Timing
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Progress
    steps: List[MigrationStep] = field(default_factory=list)
    current_step: Optional[str] = None

    # Statistics
    total_records_processed: int = 0
    total_records_succeeded: int = 0
    total_records_failed: int = 0
    total_records_skipped: int = 0

    errors: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "steps": [s.to_dict() for s in self.steps],
            "current_step": self.current_step,
            "total_records_processed": self.total_records_processed,
            "total_records_succeeded": self.total_records_succeeded,
            "total_records_failed": self.total_records_failed,
            "total_records_skipped": self.total_records_skipped,
            "errors": self.errors,
            "metadata": self.metadata,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def add_step(self, name: str) -> MigrationStep:
        """Add a new step to the migration."""
        step = MigrationStep(name=name)
        self.steps.append(step)
        self.current_step = step.id
        return step

    def update_totals(self) -> None:
        """Update total statistics from steps."""
        self.total_records_processed = sum(s.records_processed for s in self.steps)
        self.total_records_succeeded = sum(s.records_succeeded for s in self.steps)
        self.total_records_failed = sum(s.records_failed for s in self.steps)
        self.total_records_skipped = sum(s.records_skipped for s in self.steps)


@dataclass
class MigrationConfig:
    """Configuration for a migration loaded from a JSON file."""
    name: str
    source: Optional[EnvironmentConfig] = None
    target: Optional[EnvironmentConfig] = None
    export_items: List[ExportRequestItem] = field(default_factory=list)

    # Execution options
    skip_failed_items: bool = False
    replace_invalid_links: bool = False
    fetch_asset_details: bool = True
    item_parallel_limit: int = 1
    reference_parallel_limit: int = 5
    asset_parallel_limit: int = 5

    # Import filters, code only
    can_import: CanImport = field(default_factory=CanImport)

    # Output
    output_dir: str = "./data"
    package_file: str = "migration-data.json"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "source": self.source.to_dict() if self.source else None,
            "target": self.target.to_dict() if self.target else None,
            "export_items": [i.to_dict() for i in self.export_items],
            "skip_failed_items": self.skip_failed_items,
            "replace_invalid_links": self.replace_invalid_links,
            "fetch_asset_details": self.fetch_asset_details,
            "item_parallel_limit": self.item_parallel_limit,
            "reference_parallel_limit": self.reference_parallel_limit,
            "asset_parallel_limit": self.asset_parallel_limit,
            "output_dir": self.output_dir,
            "package_file": self.package_file,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        source = None
        if data.get("source"):
            source = EnvironmentConfig.from_dict(data["source"], api_key_env="MIGRATION_SOURCE_API_KEY")

        target = None
        if data.get("target"):
            target = EnvironmentConfig.from_dict(data["target"], api_key_env="MIGRATION_TARGET_API_KEY")

        return cls(
            name=data.get("name", ""),
            source=source,
            target=target,
            export_items=[ExportRequestItem.from_dict(i) for i in data.get("export_items", [])],
            skip_failed_items=data.get("skip_failed_items", False),
            replace_invalid_links=data.get("replace_invalid_links", False),
            fetch_asset_details=data.get("fetch_asset_details", True),
            item_parallel_limit=data.get("item_parallel_limit", 1),
            reference_parallel_limit=data.get("reference_parallel_limit", 5),
            asset_parallel_limit=data.get("asset_parallel_limit", 5),
            output_dir=data.get("output_dir", "./data"),
            package_file=data.get("package_file", "migration-data.json"),
        )

    def export_config(self) -> ExportConfig:
        """Build the export configuration for the source environment."""
        if not self.source:
            raise ValueError("Migration config has no 'source' environment")
        return ExportConfig(
            environment=self.source,
            export_items=list(self.export_items),
            skip_failed_items=self.skip_failed_items,
            replace_invalid_links=self.replace_invalid_links,
            fetch_asset_details=self.fetch_asset_details,
            item_parallel_limit=self.item_parallel_limit,
            reference_parallel_limit=self.reference_parallel_limit,
            asset_parallel_limit=self.asset_parallel_limit,
        )

    def import_config(self) -> ImportConfig:
        """Build the import configuration for the target environment."""
        if not self.target:
            raise ValueError("Migration config has no 'target' environment")
        return ImportConfig(
            environment=self.target,
            skip_failed_items=self.skip_failed_items,
            can_import=self.can_import,
            item_parallel_limit=self.item_parallel_limit,
            reference_parallel_limit=self.reference_parallel_limit,
            asset_parallel_limit=self.asset_parallel_limit,
        )
