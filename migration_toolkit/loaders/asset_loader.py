"""Imports assets into the target environment."""

import logging
import mimetypes
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

from ..models.content import MigrationAsset
from ..models.environment import Asset
from ..models.record import ActionType, ImportedData, MigrationResult, RecordKind
from ..services.asset_comparer import should_replace_binary_file, should_update_asset
from ..services.migration_logger import LogType
from ..services.reference_resolver import ImportReferenceResolver, ReferenceKind
from .base import BaseLoader

logger = logging.getLogger(__name__)


class AssetLoader(BaseLoader[MigrationAsset]):
    """
    Creates missing assets and updates changed ones.

    Binary files are only re-uploaded when size or filename differ.
    """

    entity = RecordKind.ASSET

    @property
    def parallel_limit(self) -> int:
        return self.config.asset_parallel_limit

    def describe(self, record: MigrationAsset) -> str:
        return record.codename

    def accumulate(self, imported_data: ImportedData, loaded: List[Asset]) -> ImportedData:
        return imported_data.with_assets({a.codename.lower(): a for a in loaded})

    async def load_record(self, record: MigrationAsset, imported_data: ImportedData) -> Tuple[MigrationResult, Asset]:
        asset = await self._with_binary_data(record)
        resolver = self.context.resolver(imported_data)
        existing = self.context.get_existing_asset(asset.codename)

        if existing is None:
            file_reference = await self._upload(asset)
            payload = self._payload(asset, resolver, file_reference)
            payload["codename"] = asset.codename
            payload["external_id"] = self.context.external_id_generator(asset.codename)
            created = await self.client.add_asset(payload)
            self.log.log(LogType.CREATE, f"Asset '{asset.codename}'")
            return MigrationResult(RecordKind.ASSET, asset.codename, ActionType.CREATED, target_id=created.id), created

        if not should_update_asset(asset, existing, self.context.metadata):
            self.log.log(LogType.SKIP, f"Asset '{asset.codename}' is up to date")
            return MigrationResult(RecordKind.ASSET, asset.codename, ActionType.SKIPPED, target_id=existing.id), existing

        file_reference = existing.file_reference
        if should_replace_binary_file(asset, existing):
            file_reference = await self._upload(asset)

        updated = await self.client.upsert_asset(asset.codename, self._payload(asset, resolver, file_reference))
        self.log.log(LogType.UPSERT, f"Asset '{asset.codename}'")
        return MigrationResult(RecordKind.ASSET, asset.codename, ActionType.UPDATED, target_id=updated.id), updated

    async def _with_binary_data(self, asset: MigrationAsset) -> MigrationAsset:
        """Materialize the binary file from its source URL when missing."""
        if asset.has_binary_data or not asset.source_url:
            return asset
        binary_data = await self.client.download_binary(asset.source_url)
        self.log.log(LogType.DOWNLOAD, asset.source_url)
        return replace(asset, binary_data=binary_data)

    async def _upload(self, asset: MigrationAsset) -> Dict[str, Any]:
        if asset.binary_data is None:
            raise ValueError(f"Asset '{asset.codename}' has no binary data and no source URL")
        content_type = mimetypes.guess_type(asset.filename)[0] or "application/octet-stream"
        logger.debug(f"Uploading {asset.filename} ({content_type}, {len(asset.binary_data)} bytes)")
        file_reference = await self.client.upload_binary_file(asset.filename, asset.binary_data, content_type)
        self.log.log(LogType.UPLOAD, asset.filename)
        return file_reference

    @staticmethod
    def _payload(
        asset: MigrationAsset,
        resolver: ImportReferenceResolver,
        file_reference: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "file_reference": file_reference,
            "title": asset.title or None,
        }
        # unknown details (exported without them) are not sent
        if asset.collection:
            payload["collection"] = {
                "reference": resolver.reference_of(asset.collection.codename, ReferenceKind.COLLECTION)
            }
        if asset.descriptions:
            payload["descriptions"] = [
                {
                    "language": resolver.reference_of(d.language.codename, ReferenceKind.LANGUAGE),
                    "description": d.description,
                }
                for d in asset.descriptions
            ]
        return payload
