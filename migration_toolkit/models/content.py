"""Portable content models exchanged between export and import."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
from enum import Enum


class ElementType(str, Enum):
    """Element types supported by the migration format."""
    TEXT = "text"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    MULTIPLE_CHOICE = "multiple_choice"
    DATE_TIME = "date_time"
    ASSET = "asset"
    MODULAR_CONTENT = "modular_content"
    TAXONOMY = "taxonomy"
    URL_SLUG = "url_slug"
    CUSTOM = "custom"
    SUBPAGES = "subpages"


REFERENCE_LIST_TYPES = (
    ElementType.MULTIPLE_CHOICE,
    ElementType.ASSET,
    ElementType.MODULAR_CONTENT,
    ElementType.TAXONOMY,
    ElementType.SUBPAGES,
)


@dataclass(frozen=True)
class MigrationReference:
    """Reference to another object by its codename."""
    codename: str

    def to_dict(self) -> Dict[str, Any]:
        return {"codename": self.codename}

    @classmethod
    def from_dict(cls, data: Union[Dict[str, Any], str]) -> "MigrationReference":
        if isinstance(data, str):
            return cls(codename=data)
        return cls(codename=data["codename"])


def _optional_reference(data: Optional[Dict[str, Any]]) -> Optional[MigrationReference]:
    if not data:
        return None
    return MigrationReference.from_dict(data)


@dataclass
class DateTimeValue:
    """Value of a date & time element."""
    value: Optional[str] = None
    display_timezone: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "display_timezone": self.display_timezone}

    @classmethod
    def from_dict(cls, data: Any) -> "DateTimeValue":
        if isinstance(data, dict):
            return cls(value=data.get("value"), display_timezone=data.get("display_timezone"))
        # plain ISO strings from older packages
        return cls(value=data)


@dataclass
class UrlSlugValue:
    """Value of a URL slug element."""
    value: Optional[str] = None
    mode: str = "autogenerated"

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "mode": self.mode}

    @classmethod
    def from_dict(cls, data: Any) -> "UrlSlugValue":
        if isinstance(data, dict):
            return cls(value=data.get("value"), mode=data.get("mode") or "autogenerated")
        return cls(value=data)


@dataclass
class RichTextValue:
    """Rich text HTML together with the components embedded in it."""
    value: str = ""
    components: List["MigrationComponent"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "components": [c.to_dict() for c in self.components],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "RichTextValue":
        if isinstance(data, dict):
            return cls(
                value=data.get("value") or "",
                components=[MigrationComponent.from_dict(c) for c in data.get("components", [])],
            )
        return cls(value=data or "")


ElementValue = Union[
    None, str, int, float, List[MigrationReference], DateTimeValue, UrlSlugValue, RichTextValue
]


@dataclass
class MigrationElement:
    """A single element value tagged with its type."""
    type: ElementType
    value: ElementValue = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        value = self.value
        if isinstance(value, (DateTimeValue, UrlSlugValue, RichTextValue)):
            value = value.to_dict()
        elif isinstance(value, list):
            value = [ref.to_dict() for ref in value]
        return {"type": self.type.value, "value": value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationElement":
        """Create from dictionary representation."""
        element_type = ElementType(data["type"])
        raw = data.get("value")

        if element_type in REFERENCE_LIST_TYPES:
            value: ElementValue = [MigrationReference.from_dict(r) for r in (raw or [])]
        elif element_type == ElementType.DATE_TIME:
            value = DateTimeValue.from_dict(raw)
        elif element_type == ElementType.URL_SLUG:
            value = UrlSlugValue.from_dict(raw)
        elif element_type == ElementType.RICH_TEXT:
            value = RichTextValue.from_dict(raw)
        else:
            value = raw

        return cls(type=element_type, value=value)


MigrationElements = Dict[str, MigrationElement]


def elements_to_dict(elements: MigrationElements) -> Dict[str, Any]:
    return {codename: element.to_dict() for codename, element in elements.items()}


def elements_from_dict(data: Dict[str, Any]) -> MigrationElements:
    return {codename: MigrationElement.from_dict(element) for codename, element in (data or {}).items()}


@dataclass
class MigrationComponentSystem:
    """System attributes of a rich text component."""
    codename: str
    type: MigrationReference


@dataclass
class MigrationComponent:
    """A content item embedded inline within a rich text value."""
    system: MigrationComponentSystem
    elements: MigrationElements = field(default_factory=dict)

    @property
    def codename(self) -> str:
        return self.system.codename

    def to_dict(self) -> Dict[str, Any]:
        return {
            "system": {
                "codename": self.system.codename,
                "type": self.system.type.to_dict(),
            },
            "elements": elements_to_dict(self.elements),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationComponent":
        system = data["system"]
        return cls(
            system=MigrationComponentSystem(
                codename=system["codename"],
                type=MigrationReference.from_dict(system["type"]),
            ),
            elements=elements_from_dict(data.get("elements", {})),
        )


@dataclass
class MigrationItemSystem:
    """System attributes of a content item language variant."""
    codename: str
    name: str
    language: MigrationReference
    type: MigrationReference
    collection: MigrationReference
    workflow: Optional[MigrationReference] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "codename": self.codename,
            "name": self.name,
            "language": self.language.to_dict(),
            "type": self.type.to_dict(),
            "collection": self.collection.to_dict(),
            "workflow": self.workflow.to_dict() if self.workflow else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationItemSystem":
        return cls(
            codename=data["codename"],
            name=data.get("name", data["codename"]),
            language=MigrationReference.from_dict(data["language"]),
            type=MigrationReference.from_dict(data["type"]),
            collection=MigrationReference.from_dict(data["collection"]),
            workflow=_optional_reference(data.get("workflow")),
        )


@dataclass
class MigrationItemVersion:
    """One version (workflow state) of a language variant."""
    elements: MigrationElements = field(default_factory=dict)
    workflow_step: Optional[MigrationReference] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elements": elements_to_dict(self.elements),
            "workflow_step": self.workflow_step.to_dict() if self.workflow_step else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationItemVersion":
        return cls(
            elements=elements_from_dict(data.get("elements", {})),
            workflow_step=_optional_reference(data.get("workflow_step")),
        )


@dataclass
class MigrationItem:
    """One logical content item language variant and its versions."""
    system: MigrationItemSystem
    versions: List[MigrationItemVersion] = field(default_factory=list)

    @property
    def codename(self) -> str:
        return self.system.codename

    @property
    def language_codename(self) -> str:
        return self.system.language.codename

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "system": self.system.to_dict(),
            "versions": [v.to_dict() for v in self.versions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationItem":
        """Create from dictionary representation."""
        return cls(
            system=MigrationItemSystem.from_dict(data["system"]),
            versions=[MigrationItemVersion.from_dict(v) for v in data.get("versions", [])],
        )


@dataclass
class MigrationAssetDescription:
    """Description of an asset in one language."""
    language: MigrationReference
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"language": self.language.to_dict(), "description": self.description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationAssetDescription":
        return cls(
            language=MigrationReference.from_dict(data["language"]),
            description=data.get("description"),
        )


@dataclass
class MigrationAsset:
    """Binary file together with its metadata."""
    codename: str
    filename: str
    title: str = ""
    collection: Optional[MigrationReference] = None
    descriptions: List[MigrationAssetDescription] = field(default_factory=list)
    binary_data: Optional[bytes] = None
    source_url: Optional[str] = None

    @property
    def has_binary_data(self) -> bool:
        return self.binary_data is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (binary data excluded)."""
        return {
            "codename": self.codename,
            "filename": self.filename,
            "title": self.title,
            "collection": self.collection.to_dict() if self.collection else None,
            "descriptions": [d.to_dict() for d in self.descriptions],
            "source_url": self.source_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], binary_data: Optional[bytes] = None) -> "MigrationAsset":
        """Create from dictionary representation."""
        return cls(
            codename=data["codename"],
            filename=data["filename"],
            title=data.get("title") or "",
            collection=_optional_reference(data.get("collection")),
            descriptions=[MigrationAssetDescription.from_dict(d) for d in data.get("descriptions") or []],
            binary_data=binary_data,
            source_url=data.get("source_url"),
        )


@dataclass
class MigrationData:
    """The interchange artifact produced by export and consumed by import."""
    items: List[MigrationItem] = field(default_factory=list)
    assets: List[MigrationAsset] = field(default_factory=list)
