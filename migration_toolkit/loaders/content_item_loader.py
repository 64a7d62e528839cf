"""Imports content items (without their language variants)."""

import logging
from typing import List, Tuple

from ..models.content import MigrationItem
from ..models.environment import ContentItem
from ..models.record import ActionType, ImportedData, MigrationResult, RecordKind
from ..services.content_types import EnvironmentMetadata
from ..services.migration_logger import LogType
from .base import BaseLoader

logger = logging.getLogger(__name__)


def should_update_content_item(item: MigrationItem, existing: ContentItem, metadata: EnvironmentMetadata) -> bool:
    """
    Whether an existing content item needs its name or collection updated.

    Raises:
        InvalidCodenameError: If the item's collection does not exist in the target
    """
    collection = metadata.get_collection_by_codename(item.system.collection.codename)
    existing_collection = metadata.get_collection_by_id(existing.collection.id)
    existing_codename = existing_collection.codename if existing_collection else existing.collection.codename
    return item.system.name != existing.name or collection.codename != existing_codename


class ContentItemLoader(BaseLoader[MigrationItem]):
    """Creates missing content items and renames or moves changed ones."""

    entity = RecordKind.CONTENT_ITEM

    def describe(self, record: MigrationItem) -> str:
        return record.codename

    def accumulate(self, imported_data: ImportedData, loaded: List[ContentItem]) -> ImportedData:
        return imported_data.with_content_items({i.codename.lower(): i for i in loaded})

    async def load_record(self, record: MigrationItem, imported_data: ImportedData) -> Tuple[MigrationResult, ContentItem]:
        metadata = self.context.metadata
        state = self.context.get_item_state(record.codename)

        if state.exists:
            if not should_update_content_item(record, state.item, metadata):
                self.log.log(LogType.SKIP, f"Item '{record.codename}' already exists")
                return MigrationResult(
                    RecordKind.CONTENT_ITEM, record.codename, ActionType.SKIPPED, target_id=state.item.id
                ), state.item

            updated = await self.client.upsert_content_item(record.codename, {
                "name": record.system.name,
                "collection": {"codename": record.system.collection.codename},
            })
            self.log.log(LogType.UPSERT, f"Item '{record.codename}'")
            return MigrationResult(
                RecordKind.CONTENT_ITEM, record.codename, ActionType.UPDATED, target_id=updated.id
            ), updated

        content_type = metadata.get_content_type_by_codename(record.system.type.codename)
        collection = metadata.get_collection_by_codename(record.system.collection.codename)
        logger.debug(f"Creating item '{record.codename}' with external id {state.external_id}")
        created = await self.client.add_content_item({
            "name": record.system.name,
            "type": {"codename": content_type.codename},
            "codename": record.codename,
            "collection": {"codename": collection.codename},
            "external_id": state.external_id,
        })
        self.log.log(LogType.CREATE, f"Item '{record.codename}'")
        return MigrationResult(
            RecordKind.CONTENT_ITEM, record.codename, ActionType.CREATED, target_id=created.id
        ), created
