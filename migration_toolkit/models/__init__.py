"""Data models for the migration toolkit."""

from .content import (
    ElementType,
    MigrationReference,
    DateTimeValue,
    UrlSlugValue,
    RichTextValue,
    MigrationElement,
    MigrationElements,
    MigrationComponent,
    MigrationComponentSystem,
    MigrationItem,
    MigrationItemSystem,
    MigrationItemVersion,
    MigrationAsset,
    MigrationAssetDescription,
    MigrationData,
)
from .migration import (
    EnvironmentConfig,
    ExportRequestItem,
    ExportConfig,
    ImportConfig,
    CanImport,
    MigrationConfig,
    MigrationRun,
    MigrationStep,
    MigrationStatus,
)
from .record import (
    ActionType,
    RecordKind,
    MigrationResult,
    ImportedData,
    ImportedVariant,
)

__all__ = [
    "ElementType",
    "MigrationReference",
    "DateTimeValue",
    "UrlSlugValue",
    "RichTextValue",
    "MigrationElement",
    "MigrationElements",
    "MigrationComponent",
    "MigrationComponentSystem",
    "MigrationItem",
    "MigrationItemSystem",
    "MigrationItemVersion",
    "MigrationAsset",
    "MigrationAssetDescription",
    "MigrationData",
    "EnvironmentConfig",
    "ExportRequestItem",
    "ExportConfig",
    "ImportConfig",
    "CanImport",
    "MigrationConfig",
    "MigrationRun",
    "MigrationStep",
    "MigrationStatus",
    "ActionType",
    "RecordKind",
    "MigrationResult",
    "ImportedData",
    "ImportedVariant",
]
