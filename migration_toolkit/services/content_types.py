"""Environment metadata registry with snippet-flattened content types."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import (
    InvalidCodenameError,
    MissingContentTypeError,
    MissingElementError,
    SnippetReferenceError,
)
from ..models.environment import (
    Collection,
    ContentType,
    ContentTypeSnippet,
    Language,
    MultipleChoiceOption,
    Taxonomy,
    Workflow,
)
from .migration_logger import LogType, MigrationLogger

logger = logging.getLogger(__name__)

# element types that never carry a value in a language variant
NON_VALUE_ELEMENT_TYPES = ("guidelines",)


@dataclass
class FlattenedElement:
    """A content type element with snippets already expanded."""
    id: str
    codename: str
    type: str
    options: List[MultipleChoiceOption] = field(default_factory=list)
    taxonomy_group_id: Optional[str] = None

    def find_option_by_id(self, option_id: str) -> Optional[MultipleChoiceOption]:
        return next((o for o in self.options if o.id == option_id), None)

    def find_option_by_codename(self, codename: str) -> Optional[MultipleChoiceOption]:
        return next((o for o in self.options if o.codename == codename), None)


@dataclass
class FlattenedContentType:
    """A content type whose snippet elements are inlined."""
    id: str
    codename: str
    elements: List[FlattenedElement] = field(default_factory=list)

    def get_element_by_id(self, element_id: str) -> FlattenedElement:
        for element in self.elements:
            if element.id == element_id:
                return element
        raise MissingElementError(
            f"Could not find element with id '{element_id}' in content type '{self.codename}'"
        )

    def get_element_by_codename(self, codename: str) -> FlattenedElement:
        for element in self.elements:
            if element.codename == codename:
                return element
        raise MissingElementError(
            f"Could not find element with codename '{codename}' in content type '{self.codename}'"
        )


def flatten_content_types(
    types: List[ContentType],
    snippets: List[ContentTypeSnippet],
) -> List[FlattenedContentType]:
    """
    Expand snippet elements of every content type inline.

    Args:
        types: Content types as returned by the Management API
        snippets: Content type snippets referenced by the types

    Returns:
        Flattened content types in input order
    """
    snippets_by_id = {s.id: s for s in snippets}
    flattened = []

    for content_type in types:
        elements: List[FlattenedElement] = []
        for element in content_type.elements:
            if element.type == "snippet":
                snippet_id = element.snippet.id if element.snippet else None
                snippet = snippets_by_id.get(snippet_id)
                if not snippet:
                    raise SnippetReferenceError(
                        f"Could not find content type snippet '{snippet_id}' "
                        f"referenced by content type '{content_type.codename}'"
                    )
                source_elements = snippet.elements
            else:
                source_elements = [element]

            for source in source_elements:
                if source.type in NON_VALUE_ELEMENT_TYPES:
                    continue
                elements.append(FlattenedElement(
                    id=source.id or "",
                    codename=source.codename or "",
                    type=source.type,
                    options=list(source.options),
                    taxonomy_group_id=source.taxonomy_group.id if source.taxonomy_group else None,
                ))

        flattened.append(FlattenedContentType(
            id=content_type.id,
            codename=content_type.codename,
            elements=elements,
        ))

    return flattened


@dataclass
class EnvironmentMetadata:
    """
    Read-only snapshot of an environment's schema and settings.

    Lookups by id return None when nothing matches; lookups by codename used
    to validate incoming data raise InvalidCodenameError.
    """
    collections: List[Collection] = field(default_factory=list)
    languages: List[Language] = field(default_factory=list)
    workflows: List[Workflow] = field(default_factory=list)
    taxonomies: List[Taxonomy] = field(default_factory=list)
    content_types: List[FlattenedContentType] = field(default_factory=list)

    # Collections

    def get_collection_by_id(self, collection_id: Optional[str]) -> Optional[Collection]:
        return next((c for c in self.collections if c.id == collection_id), None)

    def get_collection_by_codename(self, codename: str) -> Collection:
        for collection in self.collections:
            if collection.codename == codename:
                return collection
        raise InvalidCodenameError("collection", codename, [c.codename for c in self.collections])

    # Languages

    def get_language_by_id(self, language_id: Optional[str]) -> Optional[Language]:
        return next((l for l in self.languages if l.id == language_id), None)

    def get_language_by_codename(self, codename: str) -> Language:
        for language in self.languages:
            if language.codename == codename:
                return language
        raise InvalidCodenameError("language", codename, [l.codename for l in self.languages])

    # Workflows

    def get_workflow_by_id(self, workflow_id: Optional[str]) -> Optional[Workflow]:
        return next((w for w in self.workflows if w.id == workflow_id), None)

    def get_workflow_by_codename(self, codename: str) -> Workflow:
        for workflow in self.workflows:
            if workflow.codename == codename:
                return workflow
        raise InvalidCodenameError("workflow", codename, [w.codename for w in self.workflows])

    # Taxonomies

    def get_taxonomy_by_id(self, taxonomy_id: Optional[str]) -> Optional[Taxonomy]:
        return next((t for t in self.taxonomies if t.id == taxonomy_id), None)

    def find_taxonomy_term_by_id(self, term_id: str, group_id: Optional[str] = None) -> Optional[Taxonomy]:
        """Find a term by id, within one taxonomy group when given."""
        groups = [self.get_taxonomy_by_id(group_id)] if group_id else self.taxonomies
        for group in groups:
            if not group:
                continue
            for term in group.terms:
                found = term.find_term_by_id(term_id)
                if found:
                    return found
        return None

    def find_taxonomy_term_by_codename(self, codename: str, group_id: Optional[str] = None) -> Optional[Taxonomy]:
        groups = [self.get_taxonomy_by_id(group_id)] if group_id else self.taxonomies
        for group in groups:
            if not group:
                continue
            for term in group.terms:
                found = term.find_term_by_codename(codename)
                if found:
                    return found
        return None

    # Content types

    def get_content_type_by_id(self, type_id: Optional[str]) -> FlattenedContentType:
        for content_type in self.content_types:
            if content_type.id == type_id:
                return content_type
        raise MissingContentTypeError(f"Could not find content type with id '{type_id}'")

    def get_content_type_by_codename(self, codename: str) -> FlattenedContentType:
        for content_type in self.content_types:
            if content_type.codename == codename:
                return content_type
        raise MissingContentTypeError(
            f"Could not find content type with codename '{codename}'. "
            f"Available content types are: {', '.join(t.codename for t in self.content_types)}"
        )


async def fetch_environment_metadata(client, migration_logger: Optional[MigrationLogger] = None) -> EnvironmentMetadata:
    """
    Fetch collections, languages, workflows, taxonomies and content types.

    Args:
        client: Management API client of the environment
        migration_logger: Optional logger receiving fetch events

    Returns:
        EnvironmentMetadata with flattened content types
    """
    if migration_logger:
        migration_logger.log(LogType.FETCH, "Environment metadata")

    collections, languages, workflows, taxonomies, types, snippets = await asyncio.gather(
        client.list_collections(),
        client.list_languages(),
        client.list_workflows(),
        client.list_taxonomies(),
        client.list_content_types(),
        client.list_snippets(),
    )

    logger.info(
        f"Fetched {len(types)} content types, {len(snippets)} snippets, "
        f"{len(languages)} languages, {len(workflows)} workflows, "
        f"{len(taxonomies)} taxonomies and {len(collections)} collections"
    )

    return EnvironmentMetadata(
        collections=collections,
        languages=languages,
        workflows=workflows,
        taxonomies=taxonomies,
        content_types=flatten_content_types(types, snippets),
    )
