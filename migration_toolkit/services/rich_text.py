"""Rewriting of references embedded in rich text markup."""

import uuid
from dataclasses import dataclass, field
from typing import Any, List, Optional, Set

from bs4 import BeautifulSoup, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

from .migration_logger import LogType, MigrationLogger
from .reference_resolver import ExportReferenceResolver, ImportReferenceResolver, ReferenceKind

OBJECT_TYPE = "application/kenticocloud"

# Attributes holding references in environment (id) form
ITEM_ID_ATTR = "data-id"
LINK_ITEM_ID_ATTR = "data-item-id"
ASSET_ID_ATTR = "data-asset-id"
LEGACY_IMAGE_ID_ATTR = "data-image-id"

# Attributes holding references in portable (codename) form
ITEM_CODENAME_ATTR = "data-codename"
LINK_ITEM_CODENAME_ATTR = "data-item-codename"
ASSET_CODENAME_ATTR = "data-asset-codename"

# Attributes used for items that do not exist in the target yet
ITEM_EXTERNAL_ID_ATTR = "data-external-id"
LINK_ITEM_EXTERNAL_ID_ATTR = "data-item-external-id"

COMPONENT_NAMESPACE = uuid.UUID("6ba7b811-9dad-11d1-80b4-00c04fd430c8")

_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


def component_id_to_codename(component_id: str) -> str:
    """Portable codename of a component; reversible for UUID ids."""
    return component_id.replace("-", "_")


def component_codename_to_id(codename: str) -> str:
    """
    Deterministic component id for a component codename.

    Codenames produced from a UUID map back to that UUID, any other
    codename maps to a name-based UUID.
    """
    candidate = codename.replace("_", "-").lower()
    try:
        if str(uuid.UUID(candidate)) == candidate:
            return candidate
    except ValueError:
        pass
    return str(uuid.uuid5(COMPONENT_NAMESPACE, codename))


@dataclass
class RichTextReferences:
    """References found in a rich text value."""
    items: Set[str] = field(default_factory=set)
    assets: Set[str] = field(default_factory=set)
    components: List[str] = field(default_factory=list)


@dataclass
class ProcessedRichText:
    html: str
    component_codenames: List[str] = field(default_factory=list)


def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _serialize(soup: BeautifulSoup) -> str:
    return soup.decode(formatter=_FORMATTER).strip()


def _is_content_object(tag: Tag) -> bool:
    return tag.name == "object" and tag.get("type") == OBJECT_TYPE


def _is_component(tag: Tag) -> bool:
    data_type = tag.get("data-type")
    return data_type == "component" or (data_type == "item" and tag.get("data-rel") == "component")


def _replace_attribute(tag: Tag, old: str, new: str, value: Any) -> None:
    """Rename an attribute in place, keeping attribute order."""
    attrs = {}
    for name, current in tag.attrs.items():
        if name == old:
            attrs[new] = value
        elif name != new:
            attrs[name] = current
    if old not in tag.attrs:
        attrs[new] = value
    tag.attrs = attrs


def extract_ids(html: str) -> RichTextReferences:
    """Collect item, asset and component ids referenced by environment markup."""
    references = RichTextReferences()
    soup = _parse(html)

    for tag in soup.find_all("object"):
        if not _is_content_object(tag) or not tag.get(ITEM_ID_ATTR):
            continue
        if _is_component(tag):
            references.components.append(tag[ITEM_ID_ATTR])
        elif tag.get("data-type") == "item":
            references.items.add(tag[ITEM_ID_ATTR])

    for tag in soup.find_all(attrs={LINK_ITEM_ID_ATTR: True}):
        references.items.add(tag[LINK_ITEM_ID_ATTR])

    for tag in soup.find_all(attrs={ASSET_ID_ATTR: True}):
        references.assets.add(tag[ASSET_ID_ATTR])

    return references


def extract_codenames(html: str) -> RichTextReferences:
    """Collect item, asset and component codenames referenced by portable markup."""
    references = RichTextReferences()
    soup = _parse(html)

    for tag in soup.find_all("object"):
        if not _is_content_object(tag) or not tag.get(ITEM_CODENAME_ATTR):
            continue
        if tag.get("data-type") == "component":
            references.components.append(tag[ITEM_CODENAME_ATTR])
        elif tag.get("data-type") == "item":
            references.items.add(tag[ITEM_CODENAME_ATTR])

    for tag in soup.find_all(attrs={LINK_ITEM_CODENAME_ATTR: True}):
        references.items.add(tag[LINK_ITEM_CODENAME_ATTR])

    for tag in soup.find_all(attrs={ASSET_CODENAME_ATTR: True}):
        references.assets.add(tag[ASSET_CODENAME_ATTR])

    return references


class RichTextProcessor:
    """
    Rewrites object, link and asset markup between id and codename forms.

    Export direction uses an ExportReferenceResolver and fails on references
    that cannot be resolved (item links are governed by replace_invalid_links).
    Import direction uses an ImportReferenceResolver and drops unknown assets
    with a warning.
    """

    def __init__(self, migration_logger: MigrationLogger, replace_invalid_links: bool = False):
        self.log = migration_logger
        self.replace_invalid_links = replace_invalid_links

    def process_export_html(
        self,
        html: Optional[str],
        resolver: ExportReferenceResolver,
        context: str = "",
    ) -> ProcessedRichText:
        """
        Convert environment markup to portable markup.

        Args:
            html: Rich text value as stored in the environment
            resolver: Resolver backed by the export state tables
            context: Description of the owning item for log messages

        Returns:
            ProcessedRichText with the rewritten html and component codenames
        """
        if not html:
            return ProcessedRichText(html="")

        soup = _parse(html)
        component_codenames: List[str] = []

        for tag in soup.find_all("object"):
            if not _is_content_object(tag) or not tag.get(ITEM_ID_ATTR):
                continue
            if _is_component(tag):
                codename = component_id_to_codename(tag[ITEM_ID_ATTR])
                component_codenames.append(codename)
                tag.attrs = {
                    "type": OBJECT_TYPE,
                    "data-type": "component",
                    ITEM_CODENAME_ATTR: codename,
                }
            elif tag.get("data-type") == "item":
                codename = resolver.codename_of(tag[ITEM_ID_ATTR], ReferenceKind.ITEM)
                _replace_attribute(tag, ITEM_ID_ATTR, ITEM_CODENAME_ATTR, codename)

        for tag in soup.find_all(attrs={LINK_ITEM_ID_ATTR: True}):
            item_id = tag[LINK_ITEM_ID_ATTR]
            state = resolver.item_state(item_id)
            if state.exists:
                _replace_attribute(tag, LINK_ITEM_ID_ATTR, LINK_ITEM_CODENAME_ATTR, state.item.codename)
            elif self.replace_invalid_links:
                self.log.log(
                    LogType.WARNING,
                    f"Could not find content item with id '{item_id}' referenced as a link{context}. "
                    f"Replacing link with plain text.",
                )
                tag.replace_with(tag.get_text())
            else:
                self.log.log(
                    LogType.WARNING,
                    f"Could not find content item with id '{item_id}' referenced as a link{context}. "
                    f"This may be fixed by enabling 'replace_invalid_links' option.",
                )

        for tag in soup.find_all(attrs={ASSET_ID_ATTR: True}):
            codename = resolver.codename_of(tag[ASSET_ID_ATTR], ReferenceKind.ASSET)
            _replace_attribute(tag, ASSET_ID_ATTR, ASSET_CODENAME_ATTR, codename)

        for tag in soup.find_all(attrs={LEGACY_IMAGE_ID_ATTR: True}):
            del tag[LEGACY_IMAGE_ID_ATTR]

        return ProcessedRichText(html=_serialize(soup), component_codenames=component_codenames)

    def process_import_html(
        self,
        html: Optional[str],
        resolver: ImportReferenceResolver,
        context: str = "",
    ) -> ProcessedRichText:
        """
        Convert portable markup to target environment markup.

        Args:
            html: Portable rich text value
            resolver: Resolver for the target environment
            context: Description of the owning item for log messages

        Returns:
            ProcessedRichText with the rewritten html and component codenames
        """
        if not html:
            return ProcessedRichText(html="")

        soup = _parse(html)
        component_codenames: List[str] = []

        for tag in soup.find_all("object"):
            if not _is_content_object(tag) or not tag.get(ITEM_CODENAME_ATTR):
                continue
            codename = tag[ITEM_CODENAME_ATTR]
            if tag.get("data-type") == "component":
                component_codenames.append(codename)
                _replace_attribute(tag, ITEM_CODENAME_ATTR, ITEM_ID_ATTR, component_codename_to_id(codename))
            elif tag.get("data-type") == "item":
                item = resolver.find_item(codename)
                if item:
                    _replace_attribute(tag, ITEM_CODENAME_ATTR, ITEM_ID_ATTR, item.id)
                else:
                    _replace_attribute(
                        tag, ITEM_CODENAME_ATTR, ITEM_EXTERNAL_ID_ATTR, resolver.generate_external_id(codename)
                    )

        for tag in soup.find_all(attrs={LINK_ITEM_CODENAME_ATTR: True}):
            codename = tag[LINK_ITEM_CODENAME_ATTR]
            item = resolver.find_item(codename)
            if item:
                _replace_attribute(tag, LINK_ITEM_CODENAME_ATTR, LINK_ITEM_ID_ATTR, item.id)
            else:
                _replace_attribute(
                    tag, LINK_ITEM_CODENAME_ATTR, LINK_ITEM_EXTERNAL_ID_ATTR, resolver.generate_external_id(codename)
                )

        for tag in soup.find_all(attrs={ASSET_CODENAME_ATTR: True}):
            if tag.decomposed:
                continue
            codename = tag[ASSET_CODENAME_ATTR]
            asset = resolver.find_asset(codename)
            if asset:
                _replace_attribute(tag, ASSET_CODENAME_ATTR, ASSET_ID_ATTR, asset.id)
                continue

            self.log.log(
                LogType.WARNING,
                f"Could not find asset with codename '{codename}' referenced in rich text{context}. "
                f"Skipping asset reference.",
            )
            if tag.name == "a":
                tag.unwrap()
            else:
                tag.decompose()

        # figures are written without their rendered image
        for tag in soup.find_all("img"):
            tag.decompose()

        for tag in soup.find_all("a"):
            self._clean_link(tag)

        return ProcessedRichText(html=_serialize(soup), component_codenames=component_codenames)

    @staticmethod
    def _clean_link(tag: Tag) -> None:
        """Drop link attributes the Management API does not accept."""
        if tag.get("target") == "_blank":
            del tag["target"]
            tag["data-new-window"] = "true"
        if "rel" in tag.attrs:
            del tag["rel"]
        if tag.get("data-email-address") and "href" in tag.attrs:
            del tag["href"]
        if tag.get("data-rel") == "link":
            del tag["data-rel"]
        if "href" in tag.attrs and not tag["href"]:
            del tag["href"]
