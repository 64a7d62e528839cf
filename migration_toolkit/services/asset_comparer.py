"""Decides whether an existing target asset differs from a package asset."""

from typing import Optional, Set, Tuple

from ..models.content import MigrationAsset
from ..models.environment import Asset
from .content_types import EnvironmentMetadata


def _binary_size(asset: MigrationAsset) -> Optional[int]:
    return len(asset.binary_data) if asset.binary_data is not None else None


def _target_descriptions(target: Asset, metadata: EnvironmentMetadata) -> Set[Tuple[str, str]]:
    descriptions = set()
    for description in target.descriptions:
        if not description.description:
            continue
        language = description.language.codename
        if not language:
            found = metadata.get_language_by_id(description.language.id)
            language = found.codename if found else description.language.id
        descriptions.add((language, description.description))
    return descriptions


def _source_descriptions(source: MigrationAsset) -> Set[Tuple[str, str]]:
    return {
        (d.language.codename, d.description)
        for d in source.descriptions
        if d.description
    }


def should_replace_binary_file(source: MigrationAsset, target: Asset) -> bool:
    """
    Whether the binary file of the target asset must be re-uploaded.

    Size and filename stand in for the file content; a package without
    binary data never forces a replacement on size alone.
    """
    if source.filename != target.file_name:
        return True
    size = _binary_size(source)
    return size is not None and size != target.size


def should_update_asset(source: MigrationAsset, target: Asset, metadata: EnvironmentMetadata) -> bool:
    """
    Whether any tracked property of the target asset differs from the package.

    Compares collection, the set of descriptions, title and binary identity.
    A package asset without collection or descriptions (exported without
    asset details) leaves those properties of the target untouched.
    """
    if source.collection:
        target_collection = metadata.get_collection_by_id(target.collection_id)
        if not target_collection or source.collection.codename != target_collection.codename:
            return True

    if source.descriptions and _source_descriptions(source) != _target_descriptions(target, metadata):
        return True

    if (source.title or "") != (target.title or ""):
        return True

    return should_replace_binary_file(source, target)
