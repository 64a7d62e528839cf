"""Exports content items and assets from a source environment."""

import logging
from datetime import datetime
from typing import List, Optional

from ..errors import InvalidCodenameError
from ..models.content import (
    MigrationAsset,
    MigrationAssetDescription,
    MigrationData,
    MigrationItem,
    MigrationItemSystem,
    MigrationItemVersion,
    MigrationReference,
)
from ..models.environment import Asset
from ..models.migration import ExportConfig
from ..models.record import ActionType, MigrationResult, RecordKind
from ..services.content_types import EnvironmentMetadata, fetch_environment_metadata
from ..services.management_client import ManagementClient
from ..services.migration_logger import LogType, MigrationLogger
from ..services.processing import process_items
from ..services.reference_resolver import ExportReferenceResolver
from ..services.rich_text import RichTextProcessor
from ..services.transformer import ElementTransformRegistry
from .base import BaseExtractor, ExtractionResult
from .export_context import ExportContext, ExportContextBuilder, PreparedItem

logger = logging.getLogger(__name__)


class EnvironmentExtractor(BaseExtractor):
    """
    Exports requested language variants and the assets they reference.

    Handles:
    - Environment metadata and export context build
    - Element transforms to the portable format
    - Asset binary download with bounded parallelism
    """

    def __init__(
        self,
        config: ExportConfig,
        client: Optional[ManagementClient] = None,
        migration_logger: Optional[MigrationLogger] = None,
        registry: Optional[ElementTransformRegistry] = None,
    ):
        """
        Initialize the extractor.

        Args:
            config: Export configuration
            client: Management API client of the source environment
            migration_logger: Logger receiving migration events
            registry: Element transforms (built-in ones when omitted)
        """
        super().__init__(config, migration_logger)
        self._owns_client = client is None
        self.client = client or ManagementClient(config.environment)
        self.registry = registry or ElementTransformRegistry()
        self.rich_text = RichTextProcessor(self.log, replace_invalid_links=config.replace_invalid_links)

    async def close(self) -> None:
        if self._owns_client:
            await self.client.close()

    async def extract(self) -> ExtractionResult:
        """
        Export all requested items.

        Returns:
            ExtractionResult with the exported MigrationData
        """
        started_at = datetime.utcnow()

        metadata = await fetch_environment_metadata(self.client, self.log)
        context = await ExportContextBuilder(self.client, self.config, self.log).build(
            metadata, self.config.export_items
        )
        resolver = context.resolver()

        results: List[MigrationResult] = []
        items: List[MigrationItem] = []
        for prepared in context.prepared_items:
            items.append(self.map_item(prepared, resolver))
            results.append(MigrationResult(
                kind=RecordKind.LANGUAGE_VARIANT,
                codename=prepared.item.codename,
                language=prepared.language.codename,
                action=ActionType.EXPORTED,
                target_id=prepared.item.id,
            ))

        assets = await self.export_assets(context)
        results.extend(
            MigrationResult(kind=RecordKind.ASSET, codename=a.codename, action=ActionType.EXPORTED)
            for a in assets
        )

        result = self.get_extraction_result(MigrationData(items=items, assets=assets), results)
        result.started_at = started_at
        result.completed_at = datetime.utcnow()
        result.metadata = {
            "requested_items": len(self.config.export_items),
            "referenced_items": len(context.referenced.item_ids),
            "referenced_assets": len(context.referenced.asset_ids),
        }
        logger.info(f"Exported {result.total_items} items and {result.total_assets} assets")
        return result

    def map_item(self, prepared: PreparedItem, resolver: ExportReferenceResolver) -> MigrationItem:
        """Convert a prepared item to its portable form."""
        item_context = f" in item '{prepared.item.codename}' and language '{prepared.language.codename}'"

        versions = []
        for version in prepared.versions:
            elements = self.registry.export_elements(
                version.variant.elements,
                prepared.content_type,
                resolver,
                self.rich_text,
                item_context,
            )
            step = version.workflow_step
            versions.append(MigrationItemVersion(
                elements=elements,
                workflow_step=MigrationReference(step.codename) if step else None,
            ))

        return MigrationItem(
            system=MigrationItemSystem(
                codename=prepared.item.codename,
                name=prepared.item.name,
                language=MigrationReference(prepared.language.codename),
                type=MigrationReference(prepared.content_type.codename),
                collection=MigrationReference(prepared.collection.codename),
                workflow=MigrationReference(prepared.workflow.codename) if prepared.workflow else None,
            ),
            versions=versions,
        )

    async def export_assets(self, context: ExportContext) -> List[MigrationAsset]:
        """Download every existing referenced asset."""
        assets = [
            state.asset
            for _, state in sorted(context.asset_states.items())
            if state.exists
        ]
        return await process_items(
            assets,
            lambda asset: self._export_asset(asset, context.metadata),
            parallel_limit=self.config.asset_parallel_limit,
            skip_failed_items=self.config.skip_failed_items,
            describe=lambda asset: asset.codename,
            migration_logger=self.log,
        )

    async def _export_asset(self, asset: Asset, metadata: EnvironmentMetadata) -> MigrationAsset:
        binary_data = await self.client.download_binary(asset.url)
        self.log.log(LogType.DOWNLOAD, asset.url)

        collection = None
        descriptions = []
        if self.config.fetch_asset_details:
            if asset.collection_id:
                found = metadata.get_collection_by_id(asset.collection_id)
                if not found:
                    raise InvalidCodenameError(
                        "collection", asset.collection_id, [c.codename for c in metadata.collections],
                        context=f"of asset '{asset.codename}'",
                    )
                collection = MigrationReference(found.codename)
            for description in asset.descriptions:
                language = metadata.get_language_by_id(description.language.id)
                if not language:
                    raise InvalidCodenameError(
                        "language", str(description.language.id), [l.codename for l in metadata.languages],
                        context=f"in descriptions of asset '{asset.codename}'",
                    )
                descriptions.append(MigrationAssetDescription(
                    language=MigrationReference(language.codename),
                    description=description.description,
                ))

        return MigrationAsset(
            codename=asset.codename,
            filename=asset.file_name,
            title=asset.title or "",
            collection=collection,
            descriptions=descriptions,
            binary_data=binary_data,
            source_url=asset.url,
        )
