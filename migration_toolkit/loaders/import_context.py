"""Target environment state needed to reconcile a migration package."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..errors import NotFoundError
from ..models.content import MigrationData, MigrationItem
from ..models.environment import Asset, ContentItem, LanguageVariant
from ..models.migration import ImportConfig
from ..models.record import ImportedData
from ..services.content_types import EnvironmentMetadata
from ..services.migration_logger import LogType, MigrationLogger
from ..services.processing import process_items
from ..services.reference_extractor import extract_referenced_codenames
from ..services.reference_resolver import ImportReferenceResolver, default_external_id_generator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemImportState:
    """How an incoming item codename maps onto the target environment."""
    codename: str
    external_id: str
    item: Optional[ContentItem] = None
    is_component: bool = False

    @property
    def exists(self) -> bool:
        return self.item is not None


@dataclass(frozen=True)
class ImportContext:
    """
    Read-only snapshot of the target environment for one import run.

    Codename keys are lowercase.
    """
    metadata: EnvironmentMetadata
    regular_items: List[MigrationItem]
    component_items: List[MigrationItem]
    component_codenames: Set[str]
    existing_items: Dict[str, ContentItem] = field(default_factory=dict)
    existing_assets: Dict[str, Asset] = field(default_factory=dict)
    existing_variants: Dict[Tuple[str, str], LanguageVariant] = field(default_factory=dict)
    external_id_generator: Callable[[str], str] = default_external_id_generator

    def get_item_state(self, codename: str) -> ItemImportState:
        key = codename.lower()
        return ItemImportState(
            codename=codename,
            external_id=self.external_id_generator(codename),
            item=self.existing_items.get(key),
            is_component=key in self.component_codenames,
        )

    def get_existing_asset(self, codename: str) -> Optional[Asset]:
        return self.existing_assets.get(codename.lower())

    def get_existing_variant(self, item_codename: str, language_codename: str) -> Optional[LanguageVariant]:
        return self.existing_variants.get((item_codename.lower(), language_codename.lower()))

    def resolver(self, imported_data: ImportedData) -> ImportReferenceResolver:
        """Resolver seeing the existing target state plus everything imported so far."""
        return ImportReferenceResolver(
            self.metadata,
            imported_data,
            existing_items=self.existing_items,
            existing_assets=self.existing_assets,
            external_id_generator=self.external_id_generator,
        )


class ImportContextBuilder:
    """Fetches the target state of every item, asset and variant in a package."""

    def __init__(self, client, config: ImportConfig, migration_logger: MigrationLogger):
        self.client = client
        self.config = config
        self.log = migration_logger

    async def build(self, metadata: EnvironmentMetadata, data: MigrationData) -> ImportContext:
        """
        Build the import context.

        Args:
            metadata: Target environment metadata
            data: Package being imported

        Returns:
            ImportContext describing the target state
        """
        referenced = extract_referenced_codenames(data.items)
        component_codenames = {c.lower() for c in referenced.component_codenames}

        regular_items = [i for i in data.items if i.codename.lower() not in component_codenames]
        component_items = [i for i in data.items if i.codename.lower() in component_codenames]
        if component_items:
            self.log.log(
                LogType.SKIP,
                f"Skipping {len(component_items)} items because they represent components",
            )

        item_codenames = sorted(
            {i.codename for i in regular_items} | referenced.item_codenames,
            key=str.lower,
        )
        asset_codenames = sorted(
            {a.codename for a in data.assets} | referenced.asset_codenames,
            key=str.lower,
        )

        items = await process_items(
            item_codenames,
            self._fetch_item,
            parallel_limit=self.config.reference_parallel_limit,
        )
        assets = await process_items(
            asset_codenames,
            self._fetch_asset,
            parallel_limit=self.config.reference_parallel_limit,
        )
        existing_items = {i.codename.lower(): i for i in items if i}
        existing_assets = {a.codename.lower(): a for a in assets if a}

        variant_keys = [
            (i.codename, i.language_codename)
            for i in regular_items
            if i.codename.lower() in existing_items
        ]
        variants = await process_items(
            variant_keys,
            self._fetch_variant,
            parallel_limit=self.config.reference_parallel_limit,
        )
        existing_variants = {
            (codename.lower(), language.lower()): variant
            for (codename, language), variant in zip(variant_keys, variants)
            if variant
        }

        logger.info(
            f"Target environment has {len(existing_items)}/{len(item_codenames)} items, "
            f"{len(existing_assets)}/{len(asset_codenames)} assets and "
            f"{len(existing_variants)}/{len(variant_keys)} language variants"
        )

        return ImportContext(
            metadata=metadata,
            regular_items=regular_items,
            component_items=component_items,
            component_codenames=component_codenames,
            existing_items=existing_items,
            existing_assets=existing_assets,
            existing_variants=existing_variants,
            external_id_generator=self.config.external_id_generator or default_external_id_generator,
        )

    async def _fetch_item(self, codename: str) -> Optional[ContentItem]:
        try:
            return await self.client.view_content_item(codename)
        except NotFoundError:
            return None

    async def _fetch_asset(self, codename: str) -> Optional[Asset]:
        try:
            return await self.client.view_asset(codename)
        except NotFoundError:
            return None

    async def _fetch_variant(self, key: Tuple[str, str]) -> Optional[LanguageVariant]:
        try:
            return await self.client.view_language_variant(*key)
        except NotFoundError:
            return None
