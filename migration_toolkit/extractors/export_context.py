"""Builds the export context: prepared items plus resolved reference tables."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..errors import ExportRequestError, MissingReferenceError, NotFoundError
from ..models.environment import Collection, ContentItem, Language, LanguageVariant, Workflow, WorkflowStep
from ..models.migration import ExportConfig, ExportRequestItem
from ..services.content_types import EnvironmentMetadata, FlattenedContentType
from ..services.migration_logger import LogType, MigrationLogger
from ..services.processing import process_items
from ..services.reference_extractor import ReferencedIds, extract_referenced_ids
from ..services.reference_resolver import AssetState, ExportReferenceResolver, ItemState

logger = logging.getLogger(__name__)


@dataclass
class PreparedVersion:
    """One exported version of a language variant."""
    variant: LanguageVariant
    workflow_step: Optional[WorkflowStep] = None


@dataclass
class PreparedItem:
    """A requested language variant with everything needed to export it."""
    request: ExportRequestItem
    item: ContentItem
    language: Language
    content_type: FlattenedContentType
    collection: Collection
    workflow: Optional[Workflow] = None
    versions: List[PreparedVersion] = field(default_factory=list)

    @property
    def description(self) -> str:
        return f"{self.item.codename} ({self.language.codename})"


@dataclass(frozen=True)
class ExportContext:
    """Immutable result of the export context build."""
    metadata: EnvironmentMetadata
    prepared_items: List[PreparedItem]
    referenced: ReferencedIds
    item_states: Dict[str, ItemState]
    asset_states: Dict[str, AssetState]

    def get_item_state(self, item_id: str) -> ItemState:
        state = self.item_states.get(item_id)
        if state is None:
            raise MissingReferenceError("item", item_id, f"Item with id '{item_id}' was not resolved during export")
        return state

    def get_asset_state(self, asset_id: str) -> AssetState:
        state = self.asset_states.get(asset_id)
        if state is None:
            raise MissingReferenceError("asset", asset_id, f"Asset with id '{asset_id}' was not resolved during export")
        return state

    def resolver(self) -> ExportReferenceResolver:
        return ExportReferenceResolver(self.metadata, self.get_item_state, self.get_asset_state)


class ExportContextBuilder:
    """
    Builds an ExportContext in four steps.

    1. take the environment metadata
    2. prepare each requested item (item, latest and published variant)
    3. extract referenced item and asset ids, recursing into components
    4. resolve every referenced id against the source environment
    """

    def __init__(self, client, config: ExportConfig, migration_logger: MigrationLogger):
        self.client = client
        self.config = config
        self.log = migration_logger

    async def build(self, metadata: EnvironmentMetadata, export_items: List[ExportRequestItem]) -> ExportContext:
        """
        Build the export context.

        Args:
            metadata: Source environment metadata
            export_items: Item and language pairs to export

        Returns:
            ExportContext with prepared items and reference state tables
        """
        prepared_items = await process_items(
            export_items,
            lambda request: self._prepare_item(metadata, request),
            parallel_limit=self.config.item_parallel_limit,
            skip_failed_items=self.config.skip_failed_items,
            describe=lambda request: f"{request.item_codename} ({request.language_codename})",
            migration_logger=self.log,
        )

        referenced = ReferencedIds()
        for prepared in prepared_items:
            referenced.item_ids.add(prepared.item.id)
            for version in prepared.versions:
                extract_referenced_ids(version.variant.elements, prepared.content_type, metadata, referenced)

        logger.info(
            f"Prepared {len(prepared_items)} items referencing {len(referenced.item_ids)} items "
            f"and {len(referenced.asset_ids)} assets"
        )

        item_states = await process_items(
            sorted(referenced.item_ids),
            self._fetch_item_state,
            parallel_limit=self.config.reference_parallel_limit,
        )
        asset_states = await process_items(
            sorted(referenced.asset_ids),
            self._fetch_asset_state,
            parallel_limit=self.config.reference_parallel_limit,
        )

        return ExportContext(
            metadata=metadata,
            prepared_items=prepared_items,
            referenced=referenced,
            item_states={s.id: s for s in item_states},
            asset_states={s.id: s for s in asset_states},
        )

    async def _prepare_item(self, metadata: EnvironmentMetadata, request: ExportRequestItem) -> PreparedItem:
        try:
            return await self._load_item(metadata, request)
        except Exception as e:
            raise ExportRequestError(request.item_codename, request.language_codename, str(e)) from e

    async def _load_item(self, metadata: EnvironmentMetadata, request: ExportRequestItem) -> PreparedItem:
        language = metadata.get_language_by_codename(request.language_codename)
        item = await self.client.view_content_item(request.item_codename)
        latest = await self.client.view_language_variant(request.item_codename, request.language_codename)
        self.log.log(LogType.FETCH, f"{item.codename} ({language.codename})")

        content_type = metadata.get_content_type_by_id(item.type.id)
        collection = metadata.get_collection_by_id(item.collection.id)
        if not collection:
            raise MissingReferenceError("collection", str(item.collection.id))

        workflow, step = self._find_workflow_and_step(metadata, latest)
        versions = [PreparedVersion(variant=latest, workflow_step=step)]

        if latest.step_id != workflow.published_step.id:
            published = await self._view_published_variant(request)
            if published:
                versions.insert(0, PreparedVersion(variant=published, workflow_step=workflow.published_step))

        return PreparedItem(
            request=request,
            item=item,
            language=language,
            content_type=content_type,
            collection=collection,
            workflow=workflow,
            versions=versions,
        )

    async def _view_published_variant(self, request: ExportRequestItem) -> Optional[LanguageVariant]:
        try:
            return await self.client.view_published_language_variant(
                request.item_codename, request.language_codename
            )
        except NotFoundError:
            return None

    @staticmethod
    def _find_workflow_and_step(metadata: EnvironmentMetadata, variant: LanguageVariant) -> Tuple[Workflow, WorkflowStep]:
        """
        Resolve the workflow and step of a variant.

        Raises:
            MissingReferenceError: If the workflow or step does not exist in the source environment
        """
        candidates = metadata.workflows
        if variant.workflow_id:
            workflow = metadata.get_workflow_by_id(variant.workflow_id)
            if not workflow:
                raise MissingReferenceError(
                    "workflow", variant.workflow_id, f"Invalid workflow '{variant.workflow_id}'"
                )
            candidates = [workflow]

        for candidate in candidates:
            step = candidate.find_step_by_id(variant.step_id)
            if step:
                return candidate, step
        raise MissingReferenceError(
            "workflow step", str(variant.step_id), f"Invalid workflow step '{variant.step_id}'"
        )

    async def _fetch_item_state(self, item_id: str) -> ItemState:
        try:
            return ItemState(id=item_id, item=await self.client.view_content_item_by_id(item_id))
        except NotFoundError:
            logger.debug(f"Referenced item '{item_id}' does not exist")
            return ItemState(id=item_id)

    async def _fetch_asset_state(self, asset_id: str) -> AssetState:
        try:
            return AssetState(id=asset_id, asset=await self.client.view_asset_by_id(asset_id))
        except NotFoundError:
            logger.debug(f"Referenced asset '{asset_id}' does not exist")
            return AssetState(id=asset_id)
