"""Element value transforms between environment payloads and portable values."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from dateutil import parser as date_parser

from ..errors import ElementTransformError, IncompleteTransformRegistryError, MissingReferenceError
from ..models.content import (
    DateTimeValue,
    ElementType,
    MigrationComponent,
    MigrationComponentSystem,
    MigrationElement,
    MigrationElements,
    MigrationReference,
    RichTextValue,
    UrlSlugValue,
)
from ..models.environment import VariantComponent, VariantElement
from .content_types import FlattenedContentType, FlattenedElement
from .migration_logger import LogType, MigrationLogger
from .reference_resolver import ExportReferenceResolver, ImportReferenceResolver, ReferenceKind
from .rich_text import RichTextProcessor, component_codename_to_id, component_id_to_codename

logger = logging.getLogger(__name__)


@dataclass
class ExportTransformContext:
    """Everything an export transform needs besides the element itself."""
    resolver: ExportReferenceResolver
    rich_text: RichTextProcessor
    element: FlattenedElement
    item_context: str = ""


@dataclass
class ImportTransformContext:
    """Everything an import transform needs besides the portable value."""
    resolver: ImportReferenceResolver
    rich_text: RichTextProcessor
    element: FlattenedElement
    migration_logger: MigrationLogger
    item_context: str = ""


ExportTransform = Callable[[VariantElement, ExportTransformContext], Any]
ImportTransform = Callable[[Any, ImportTransformContext], Dict[str, Any]]


def _plain(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "model_dump"):
        return value.model_dump()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def dump_raw_value(value: Any) -> str:
    """Best-effort JSON dump of a value for diagnostics."""
    try:
        return json.dumps(_plain(value))
    except (TypeError, ValueError):
        return ElementTransformError.UNSERIALIZABLE


def _references(value: Any) -> List[Dict[str, Any]]:
    return list(value or [])


def _codenames(value: Any) -> List[str]:
    return [ref.codename if isinstance(ref, MigrationReference) else str(ref) for ref in (value or [])]


class ElementTransformRegistry:
    """
    One export and one import transform per element type.

    Supports:
    - Built-in transforms for every ElementType
    - Overriding individual transforms
    - Recursive transformation of rich text components
    """

    def __init__(
        self,
        export_overrides: Optional[Dict[ElementType, ExportTransform]] = None,
        import_overrides: Optional[Dict[ElementType, ImportTransform]] = None,
    ):
        """
        Initialize the registry.

        Args:
            export_overrides: Export transforms replacing the built-in ones
            import_overrides: Import transforms replacing the built-in ones

        Raises:
            IncompleteTransformRegistryError: If an element type lacks a transform
        """
        self._export_transforms = {**self._register_export_transforms(), **(export_overrides or {})}
        self._import_transforms = {**self._register_import_transforms(), **(import_overrides or {})}
        self._verify_complete()

    def _register_export_transforms(self) -> Dict[ElementType, ExportTransform]:
        """Register all built-in export transforms."""
        return {
            ElementType.TEXT: self._export_scalar,
            ElementType.CUSTOM: self._export_scalar,
            ElementType.NUMBER: self._export_scalar,
            ElementType.DATE_TIME: self._export_date_time,
            ElementType.URL_SLUG: self._export_url_slug,
            ElementType.MULTIPLE_CHOICE: self._export_multiple_choice,
            ElementType.TAXONOMY: self._export_taxonomy,
            ElementType.ASSET: self._export_asset,
            ElementType.MODULAR_CONTENT: self._export_linked_items,
            ElementType.SUBPAGES: self._export_linked_items,
            ElementType.RICH_TEXT: self._export_rich_text,
        }

    def _register_import_transforms(self) -> Dict[ElementType, ImportTransform]:
        """Register all built-in import transforms."""
        return {
            ElementType.TEXT: self._import_text,
            ElementType.CUSTOM: self._import_custom,
            ElementType.NUMBER: self._import_number,
            ElementType.DATE_TIME: self._import_date_time,
            ElementType.URL_SLUG: self._import_url_slug,
            ElementType.MULTIPLE_CHOICE: self._import_multiple_choice,
            ElementType.TAXONOMY: self._import_taxonomy,
            ElementType.ASSET: self._import_asset,
            ElementType.MODULAR_CONTENT: self._import_linked_items,
            ElementType.SUBPAGES: self._import_linked_items,
            ElementType.RICH_TEXT: self._import_rich_text,
        }

    def _verify_complete(self) -> None:
        missing = [
            element_type.value
            for element_type in ElementType
            if element_type not in self._export_transforms or element_type not in self._import_transforms
        ]
        if missing:
            raise IncompleteTransformRegistryError(
                f"Missing export or import transform for element types: {', '.join(missing)}"
            )

    # Public API

    def export_element(self, element: VariantElement, context: ExportTransformContext) -> MigrationElement:
        """
        Convert one environment element to its portable form.

        Raises:
            ElementTransformError: If the transform fails for any reason
        """
        definition = context.element
        try:
            element_type = ElementType(definition.type)
            value = self._export_transforms[element_type](element, context)
        except ElementTransformError:
            raise
        except Exception as e:
            raise ElementTransformError(
                definition.codename, definition.type, dump_raw_value(element.value), str(e)
            ) from e
        return MigrationElement(type=element_type, value=value)

    def import_element(
        self,
        codename: str,
        element: MigrationElement,
        context: ImportTransformContext,
    ) -> Dict[str, Any]:
        """
        Convert one portable element to a Management API element payload.

        Raises:
            ElementTransformError: If the transform fails for any reason
        """
        try:
            payload = self._import_transforms[element.type](element.value, context)
        except ElementTransformError:
            raise
        except Exception as e:
            raise ElementTransformError(
                codename, element.type.value, dump_raw_value(element.value), str(e)
            ) from e
        return {"element": {"codename": codename}, **payload}

    def export_elements(
        self,
        elements: List[VariantElement],
        content_type: FlattenedContentType,
        resolver: ExportReferenceResolver,
        rich_text: RichTextProcessor,
        item_context: str = "",
    ) -> MigrationElements:
        """Export an element set, keyed and ordered by element codename."""
        exported: MigrationElements = {}
        for element in elements:
            definition = content_type.get_element_by_id(element.element.id)
            context = ExportTransformContext(
                resolver=resolver,
                rich_text=rich_text,
                element=definition,
                item_context=item_context,
            )
            exported[definition.codename] = self.export_element(element, context)
        return dict(sorted(exported.items()))

    def import_elements(
        self,
        elements: MigrationElements,
        content_type: FlattenedContentType,
        resolver: ImportReferenceResolver,
        rich_text: RichTextProcessor,
        migration_logger: MigrationLogger,
        item_context: str = "",
    ) -> List[Dict[str, Any]]:
        """Build the element payloads of a language variant or component."""
        payloads = []
        for codename in sorted(elements):
            context = ImportTransformContext(
                resolver=resolver,
                rich_text=rich_text,
                element=content_type.get_element_by_codename(codename),
                migration_logger=migration_logger,
                item_context=item_context,
            )
            payloads.append(self.import_element(codename, elements[codename], context))
        return payloads

    # Export transforms

    def _export_scalar(self, element: VariantElement, context: ExportTransformContext) -> Any:
        return element.value

    def _export_date_time(self, element: VariantElement, context: ExportTransformContext) -> DateTimeValue:
        return DateTimeValue(value=element.value, display_timezone=element.display_timezone)

    def _export_url_slug(self, element: VariantElement, context: ExportTransformContext) -> UrlSlugValue:
        return UrlSlugValue(value=element.value, mode=element.mode or "autogenerated")

    def _export_multiple_choice(self, element: VariantElement, context: ExportTransformContext) -> List[MigrationReference]:
        return [
            MigrationReference(
                context.resolver.codename_of_reference(ref, ReferenceKind.MULTIPLE_CHOICE_OPTION, context.element)
            )
            for ref in _references(element.value)
        ]

    def _export_taxonomy(self, element: VariantElement, context: ExportTransformContext) -> List[MigrationReference]:
        return [
            MigrationReference(context.resolver.codename_of_reference(ref, ReferenceKind.TAXONOMY_TERM, context.element))
            for ref in _references(element.value)
        ]

    def _export_asset(self, element: VariantElement, context: ExportTransformContext) -> List[MigrationReference]:
        return [
            MigrationReference(context.resolver.codename_of_reference(ref, ReferenceKind.ASSET))
            for ref in _references(element.value)
        ]

    def _export_linked_items(self, element: VariantElement, context: ExportTransformContext) -> List[MigrationReference]:
        return [
            MigrationReference(context.resolver.codename_of_reference(ref, ReferenceKind.ITEM))
            for ref in _references(element.value)
        ]

    def _export_rich_text(self, element: VariantElement, context: ExportTransformContext) -> RichTextValue:
        processed = context.rich_text.process_export_html(
            element.value, context.resolver, context.item_context
        )
        components = [self._export_component(c, context) for c in element.components]
        return RichTextValue(value=processed.html, components=components)

    def _export_component(self, component: VariantComponent, context: ExportTransformContext) -> MigrationComponent:
        content_type = context.resolver.metadata.get_content_type_by_id(component.type.id)
        return MigrationComponent(
            system=MigrationComponentSystem(
                codename=component_id_to_codename(component.id),
                type=MigrationReference(content_type.codename),
            ),
            elements=self.export_elements(
                component.elements,
                content_type,
                context.resolver,
                context.rich_text,
                context.item_context,
            ),
        )

    # Import transforms

    def _import_text(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        return {"value": str(value) if value not in (None, "") else None}

    def _import_custom(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        return {"value": "" if value is None else str(value)}

    def _import_number(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        if value is None or value == "":
            return {"value": None}
        if isinstance(value, (int, float)):
            return {"value": value}
        number = float(value)
        return {"value": int(number) if number.is_integer() else number}

    def _import_date_time(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        date_value = value if isinstance(value, DateTimeValue) else DateTimeValue.from_dict(value)
        if not date_value.value:
            return {"value": None}
        payload = {"value": date_parser.parse(date_value.value).isoformat()}
        if date_value.display_timezone:
            payload["display_timezone"] = date_value.display_timezone
        return payload

    def _import_url_slug(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        slug = value if isinstance(value, UrlSlugValue) else UrlSlugValue.from_dict(value)
        return {"value": slug.value or "", "mode": "custom"}

    def _import_multiple_choice(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        return {"value": [
            context.resolver.reference_of(codename, ReferenceKind.MULTIPLE_CHOICE_OPTION, context.element)
            for codename in _codenames(value)
        ]}

    def _import_taxonomy(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        return {"value": [
            context.resolver.reference_of(codename, ReferenceKind.TAXONOMY_TERM, context.element)
            for codename in _codenames(value)
        ]}

    def _import_asset(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        references = []
        for codename in _codenames(value):
            reference = context.resolver.reference_of(codename, ReferenceKind.ASSET)
            if reference is None:
                context.migration_logger.log(
                    LogType.WARNING,
                    f"Could not find asset with codename '{codename}' in element "
                    f"'{context.element.codename}'{context.item_context}. Skipping asset.",
                )
                continue
            references.append(reference)
        return {"value": references}

    def _import_linked_items(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        return {"value": [
            context.resolver.reference_of(codename, ReferenceKind.ITEM)
            for codename in _codenames(value)
        ]}

    def _import_rich_text(self, value: Any, context: ImportTransformContext) -> Dict[str, Any]:
        rich_text = value if isinstance(value, RichTextValue) else RichTextValue.from_dict(value)
        processed = context.rich_text.process_import_html(
            rich_text.value, context.resolver, context.item_context
        )

        components_by_codename = {c.codename: c for c in rich_text.components}
        components = []
        for codename in processed.component_codenames:
            component = components_by_codename.get(codename)
            if not component:
                raise MissingReferenceError(
                    "component", codename, f"Could not find component with codename '{codename}'"
                )
            content_type = context.resolver.metadata.get_content_type_by_codename(component.system.type.codename)
            components.append({
                "id": component_codename_to_id(codename),
                "type": {"codename": content_type.codename},
                "elements": self.import_elements(
                    component.elements,
                    content_type,
                    context.resolver,
                    context.rich_text,
                    context.migration_logger,
                    context.item_context,
                ),
            })

        return {"value": processed.html, "components": components}
