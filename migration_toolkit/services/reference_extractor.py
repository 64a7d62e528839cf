"""Collects references from element sets, recursing into rich text components."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from ..models.content import ElementType, MigrationElements, MigrationItem, RichTextValue
from ..models.environment import VariantElement
from .content_types import EnvironmentMetadata, FlattenedContentType
from .rich_text import extract_codenames, extract_ids

LINKED_ITEM_TYPES = (ElementType.MODULAR_CONTENT.value, ElementType.SUBPAGES.value)


@dataclass
class ReferencedIds:
    """Ids of items and assets referenced from exported content."""
    item_ids: Set[str] = field(default_factory=set)
    asset_ids: Set[str] = field(default_factory=set)


@dataclass
class ReferencedCodenames:
    """Codenames referenced from a migration package."""
    item_codenames: Set[str] = field(default_factory=set)
    asset_codenames: Set[str] = field(default_factory=set)
    component_codenames: Set[str] = field(default_factory=set)


def _reference_ids(value) -> List[str]:
    return [ref["id"] for ref in (value or []) if isinstance(ref, dict) and ref.get("id")]


def extract_referenced_ids(
    elements: Iterable[VariantElement],
    content_type: FlattenedContentType,
    metadata: EnvironmentMetadata,
    result: Optional[ReferencedIds] = None,
) -> ReferencedIds:
    """
    Extract item and asset ids referenced by environment elements.

    Rich text markup and the elements of its components are searched
    recursively, components using their own content type.

    Args:
        elements: Elements of a language variant or component
        content_type: Content type the elements belong to
        metadata: Source environment metadata (for component types)
        result: Accumulator to extend, a new one is created when omitted

    Returns:
        The accumulated ReferencedIds
    """
    result = result if result is not None else ReferencedIds()

    for element in elements:
        definition = content_type.get_element_by_id(element.element.id)

        if definition.type == ElementType.ASSET.value:
            result.asset_ids.update(_reference_ids(element.value))

        elif definition.type in LINKED_ITEM_TYPES:
            result.item_ids.update(_reference_ids(element.value))

        elif definition.type == ElementType.RICH_TEXT.value:
            references = extract_ids(element.value or "")
            result.item_ids.update(references.items)
            result.asset_ids.update(references.assets)

            for component in element.components:
                component_type = metadata.get_content_type_by_id(component.type.id)
                extract_referenced_ids(component.elements, component_type, metadata, result)

    return result


def _extract_from_elements(elements: MigrationElements, result: ReferencedCodenames) -> None:
    for element in elements.values():
        if element.type == ElementType.ASSET:
            result.asset_codenames.update(ref.codename for ref in element.value or [])

        elif element.type in (ElementType.MODULAR_CONTENT, ElementType.SUBPAGES):
            result.item_codenames.update(ref.codename for ref in element.value or [])

        elif element.type == ElementType.RICH_TEXT and isinstance(element.value, RichTextValue):
            references = extract_codenames(element.value.value)
            result.item_codenames.update(references.items)
            result.asset_codenames.update(references.assets)
            result.component_codenames.update(references.components)

            for component in element.value.components:
                result.component_codenames.add(component.codename)
                _extract_from_elements(component.elements, result)


def extract_referenced_codenames(items: Iterable[MigrationItem]) -> ReferencedCodenames:
    """Extract item, asset and component codenames referenced by package items."""
    result = ReferencedCodenames()
    for item in items:
        for version in item.versions:
            _extract_from_elements(version.elements, result)
    return result
