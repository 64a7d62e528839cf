"""Translation between environment ids and portable codenames."""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..errors import InvalidCodenameError, MissingReferenceError
from ..models.environment import Asset, ContentItem
from ..models.record import ImportedData
from .content_types import EnvironmentMetadata, FlattenedElement


class ReferenceKind(str, Enum):
    """Kinds of objects that can be referenced from content."""
    ITEM = "item"
    ASSET = "asset"
    TAXONOMY_TERM = "taxonomy_term"
    COLLECTION = "collection"
    LANGUAGE = "language"
    WORKFLOW_STEP = "workflow_step"
    MULTIPLE_CHOICE_OPTION = "multiple_choice_option"


@dataclass(frozen=True)
class ItemState:
    """Whether a referenced content item exists in the source environment."""
    id: str
    item: Optional[ContentItem] = None

    @property
    def exists(self) -> bool:
        return self.item is not None


@dataclass(frozen=True)
class AssetState:
    """Whether a referenced asset exists in the source environment."""
    id: str
    asset: Optional[Asset] = None

    @property
    def exists(self) -> bool:
        return self.asset is not None


def default_external_id_generator(codename: str) -> str:
    """Stable external id derived from a codename, identical across processes."""
    digest = hashlib.sha256(codename.lower().encode("utf-8")).hexdigest()
    return f"migration_{digest[:32]}"


class ExportReferenceResolver:
    """
    Resolves source environment ids to codenames.

    Item and asset lookups read the state tables built by the export
    context; everything else is resolved against environment metadata.
    """

    def __init__(
        self,
        metadata: EnvironmentMetadata,
        get_item_state: Callable[[str], ItemState],
        get_asset_state: Callable[[str], AssetState],
    ):
        self.metadata = metadata
        self._get_item_state = get_item_state
        self._get_asset_state = get_asset_state

    def codename_of(
        self,
        id: str,
        kind: ReferenceKind,
        element: Optional[FlattenedElement] = None,
    ) -> str:
        """
        Get the codename of an object referenced by id.

        Args:
            id: Environment id of the referenced object
            kind: Kind of the referenced object
            element: Element definition (needed for options and terms)

        Returns:
            Codename of the referenced object

        Raises:
            MissingReferenceError: If the object does not exist
        """
        if kind == ReferenceKind.ITEM:
            state = self._get_item_state(id)
            if not state.exists:
                raise MissingReferenceError(kind.value, id)
            return state.item.codename

        if kind == ReferenceKind.ASSET:
            state = self._get_asset_state(id)
            if not state.exists:
                raise MissingReferenceError(kind.value, id)
            return state.asset.codename

        if kind == ReferenceKind.MULTIPLE_CHOICE_OPTION:
            option = element.find_option_by_id(id) if element else None
            if not option or not option.codename:
                raise MissingReferenceError(
                    kind.value, id,
                    f"Missing multiple choice option with id '{id}'"
                    + (f" in element '{element.codename}'" if element else ""),
                )
            return option.codename

        if kind == ReferenceKind.TAXONOMY_TERM:
            group_id = element.taxonomy_group_id if element else None
            term = self.metadata.find_taxonomy_term_by_id(id, group_id)
            if not term:
                raise MissingReferenceError(kind.value, id)
            return term.codename

        if kind == ReferenceKind.COLLECTION:
            collection = self.metadata.get_collection_by_id(id)
            if not collection:
                raise MissingReferenceError(kind.value, id)
            return collection.codename

        if kind == ReferenceKind.LANGUAGE:
            language = self.metadata.get_language_by_id(id)
            if not language:
                raise MissingReferenceError(kind.value, id)
            return language.codename

        if kind == ReferenceKind.WORKFLOW_STEP:
            for workflow in self.metadata.workflows:
                step = workflow.find_step_by_id(id)
                if step:
                    return step.codename
            raise MissingReferenceError(kind.value, id)

        raise ValueError(f"Unsupported reference kind: {kind}")

    def codename_of_reference(
        self,
        reference: Dict[str, Any],
        kind: ReferenceKind,
        element: Optional[FlattenedElement] = None,
    ) -> str:
        """
        Get the codename of an object referenced either by id or by codename.

        Codenames of options and terms are checked against the element
        definition, item and asset codenames are taken as they are.

        Raises:
            MissingReferenceError: If the reference cannot be resolved
        """
        if reference.get("id"):
            return self.codename_of(reference["id"], kind, element)

        codename = reference.get("codename")
        if not codename:
            raise MissingReferenceError(
                kind.value, str(reference), f"Reference {reference} has neither an id nor a codename"
            )

        if kind == ReferenceKind.MULTIPLE_CHOICE_OPTION:
            if not element or not element.find_option_by_codename(codename):
                raise MissingReferenceError(
                    kind.value, codename,
                    f"Missing multiple choice option with codename '{codename}'"
                    + (f" in element '{element.codename}'" if element else ""),
                )
        elif kind == ReferenceKind.TAXONOMY_TERM:
            group_id = element.taxonomy_group_id if element else None
            if not self.metadata.find_taxonomy_term_by_codename(codename, group_id):
                raise MissingReferenceError(
                    kind.value, codename, f"Missing taxonomy term with codename '{codename}'"
                )
        return codename

    def item_state(self, id: str) -> ItemState:
        return self._get_item_state(id)


class ImportReferenceResolver:
    """
    Resolves portable codenames to target environment references.

    Items that do not exist yet are referenced by a deterministic external
    id so that items can be imported in any order.
    """

    def __init__(
        self,
        metadata: EnvironmentMetadata,
        imported_data: ImportedData,
        existing_items: Optional[Dict[str, ContentItem]] = None,
        existing_assets: Optional[Dict[str, Asset]] = None,
        external_id_generator: Optional[Callable[[str], str]] = None,
    ):
        """
        Initialize the resolver.

        Args:
            metadata: Target environment metadata
            imported_data: Objects imported so far in this run
            existing_items: Target content items keyed by lowercase codename
            existing_assets: Target assets keyed by lowercase codename
            external_id_generator: Maps an item codename to its external id
        """
        self.metadata = metadata
        self.imported_data = imported_data
        self._existing_items = existing_items or {}
        self._existing_assets = existing_assets or {}
        self.generate_external_id = external_id_generator or default_external_id_generator

    def find_item(self, codename: str) -> Optional[ContentItem]:
        return self.imported_data.get_content_item(codename.lower()) or self._existing_items.get(codename.lower())

    def find_asset(self, codename: str) -> Optional[Asset]:
        return self.imported_data.get_asset(codename.lower()) or self._existing_assets.get(codename.lower())

    def reference_of(
        self,
        codename: str,
        kind: ReferenceKind,
        element: Optional[FlattenedElement] = None,
    ) -> Optional[Dict[str, str]]:
        """
        Get the Management API reference for a codename.

        Args:
            codename: Portable codename of the referenced object
            kind: Kind of the referenced object
            element: Target element definition (needed for options and terms)

        Returns:
            Reference object, or None for an unknown asset

        Raises:
            MissingReferenceError: Unknown option or taxonomy term
            InvalidCodenameError: Unknown collection, language or workflow step
        """
        if kind == ReferenceKind.ITEM:
            item = self.find_item(codename)
            if item:
                return {"id": item.id}
            return {"external_id": self.generate_external_id(codename)}

        if kind == ReferenceKind.ASSET:
            asset = self.find_asset(codename)
            return {"id": asset.id} if asset else None

        if kind == ReferenceKind.MULTIPLE_CHOICE_OPTION:
            option = element.find_option_by_codename(codename) if element else None
            if not option:
                raise MissingReferenceError(
                    kind.value, codename,
                    f"Missing multiple choice option with codename '{codename}'"
                    + (f" in element '{element.codename}'" if element else ""),
                )
            return {"id": option.id}

        if kind == ReferenceKind.TAXONOMY_TERM:
            group_id = element.taxonomy_group_id if element else None
            term = self.metadata.find_taxonomy_term_by_codename(codename, group_id)
            if not term:
                raise MissingReferenceError(
                    kind.value, codename, f"Missing taxonomy term with codename '{codename}'"
                )
            return {"id": term.id}

        if kind == ReferenceKind.COLLECTION:
            return {"codename": self.metadata.get_collection_by_codename(codename).codename}

        if kind == ReferenceKind.LANGUAGE:
            return {"codename": self.metadata.get_language_by_codename(codename).codename}

        if kind == ReferenceKind.WORKFLOW_STEP:
            for workflow in self.metadata.workflows:
                if workflow.find_step_by_codename(codename):
                    return {"codename": codename}
            valid = [s.codename for w in self.metadata.workflows for s in w.all_steps()]
            raise InvalidCodenameError("workflow step", codename, valid)

        raise ValueError(f"Unsupported reference kind: {kind}")
