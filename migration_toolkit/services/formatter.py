"""Serialization of migration data."""

import base64
import json
import logging
from typing import Protocol

from ..models.content import MigrationAsset, MigrationData, MigrationItem

logger = logging.getLogger(__name__)


class MigrationDataFormatter(Protocol):
    """Codec turning MigrationData into bytes and back."""

    def serialize(self, data: MigrationData) -> bytes:
        ...

    def parse(self, raw: bytes) -> MigrationData:
        ...


class JsonFormatter:
    """
    Single JSON document holding items and assets.

    Asset binaries are embedded base64 encoded under "binary_data".
    """

    def __init__(self, indent: int = 2):
        self.indent = indent

    def serialize(self, data: MigrationData) -> bytes:
        assets = []
        for asset in data.assets:
            asset_dict = asset.to_dict()
            if asset.binary_data is not None:
                asset_dict["binary_data"] = base64.b64encode(asset.binary_data).decode("ascii")
            assets.append(asset_dict)

        document = {
            "items": [item.to_dict() for item in data.items],
            "assets": assets,
        }
        return json.dumps(document, indent=self.indent, ensure_ascii=False).encode("utf-8")

    def parse(self, raw: bytes) -> MigrationData:
        document = json.loads(raw.decode("utf-8"))

        assets = []
        for asset_dict in document.get("assets", []):
            encoded = asset_dict.get("binary_data")
            binary = base64.b64decode(encoded) if encoded is not None else None
            assets.append(MigrationAsset.from_dict(asset_dict, binary_data=binary))

        items = [MigrationItem.from_dict(i) for i in document.get("items", [])]
        logger.info(f"Parsed {len(items)} items and {len(assets)} assets")
        return MigrationData(items=items, assets=assets)
