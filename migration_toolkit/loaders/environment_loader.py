"""Imports a migration package into a target environment."""

import logging
from dataclasses import replace
from typing import Dict, List, Optional

from ..models.content import MigrationData, MigrationItem
from ..models.migration import CanImport, ImportConfig
from ..models.record import ImportedData
from ..services.content_types import fetch_environment_metadata
from ..services.management_client import ManagementClient
from ..services.migration_logger import LogType, MigrationLogger
from ..services.transformer import ElementTransformRegistry
from .asset_loader import AssetLoader
from .base import ImportResult
from .content_item_loader import ContentItemLoader
from .import_context import ImportContextBuilder
from .language_variant_loader import LanguageVariantLoader

logger = logging.getLogger(__name__)


def filter_importable(data: MigrationData, can_import: CanImport, migration_logger: MigrationLogger) -> MigrationData:
    """Drop the items and assets rejected by the can_import predicates."""
    items = data.items
    assets = data.assets

    if can_import.content_item:
        items = [i for i in items if can_import.content_item(i)]
        removed = len(data.items) - len(items)
        if removed:
            migration_logger.log(LogType.SKIP, f"Filtered out {removed} content items")

    if can_import.asset:
        assets = [a for a in assets if can_import.asset(a)]
        removed = len(data.assets) - len(assets)
        if removed:
            migration_logger.log(LogType.SKIP, f"Filtered out {removed} assets")

    return replace(data, items=items, assets=assets)


def unique_by_codename(items: List[MigrationItem]) -> List[MigrationItem]:
    """One package item per codename, keeping the first language variant seen."""
    seen: Dict[str, MigrationItem] = {}
    for item in items:
        seen.setdefault(item.codename.lower(), item)
    return list(seen.values())


class EnvironmentLoader:
    """
    Loads a MigrationData package in three ordered phases.

    Assets first, then content items, then language variants. Each phase
    receives the ImportedData accumulated by the phases before it.
    """

    def __init__(
        self,
        config: ImportConfig,
        client: Optional[ManagementClient] = None,
        migration_logger: Optional[MigrationLogger] = None,
        registry: Optional[ElementTransformRegistry] = None,
    ):
        """
        Initialize the loader.

        Args:
            config: Import configuration
            client: Management API client of the target environment
            migration_logger: Logger receiving migration events
            registry: Element transforms (built-in ones when omitted)
        """
        self.config = config
        self.log = migration_logger or MigrationLogger()
        self._owns_client = client is None
        self.client = client or ManagementClient(config.environment)
        self.registry = registry or ElementTransformRegistry()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.close()

    async def load(self, data: MigrationData) -> ImportResult:
        """
        Import a package.

        Args:
            data: Package to import

        Returns:
            ImportResult with per-phase statistics and the imported objects
        """
        data = filter_importable(data, self.config.can_import, self.log)

        metadata = await fetch_environment_metadata(self.client, self.log)
        context = await ImportContextBuilder(self.client, self.config, self.log).build(metadata, data)

        result = ImportResult()
        imported_data = ImportedData()

        asset_loader = AssetLoader(self.client, context, self.config, self.log)
        result.phases["assets"], imported_data = await asset_loader.load_all(data.assets, imported_data)

        item_loader = ContentItemLoader(self.client, context, self.config, self.log)
        result.phases["content_items"], imported_data = await item_loader.load_all(
            unique_by_codename(context.regular_items), imported_data
        )

        variant_loader = LanguageVariantLoader(
            self.client, context, self.config, self.log, registry=self.registry
        )
        result.phases["language_variants"], imported_data = await variant_loader.load_all(
            context.regular_items, imported_data
        )

        result.imported_data = imported_data
        result.warnings = list(self.log.warnings)
        result.errors = list(self.log.errors)

        logger.info(
            f"Imported {len(imported_data.assets)} assets, {len(imported_data.content_items)} content items "
            f"and {len(imported_data.language_variants)} language variants"
        )
        return result
