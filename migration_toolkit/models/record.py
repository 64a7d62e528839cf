"""Record models for import and export results."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional
from enum import Enum
from datetime import datetime

from .environment import Asset, ContentItem, LanguageVariant


class ActionType(str, Enum):
    """What happened to a single unit of work."""
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    EXPORTED = "exported"
    FAILED = "failed"


class RecordKind(str, Enum):
    """Kind of object a result refers to."""
    ASSET = "asset"
    CONTENT_ITEM = "content_item"
    LANGUAGE_VARIANT = "language_variant"


@dataclass
class MigrationResult:
    """Result of exporting or importing a single object."""
    kind: RecordKind
    codename: str
    action: ActionType
    target_id: Optional[str] = None
    language: Optional[str] = None
    error: Optional[str] = None
    processed_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def success(self) -> bool:
        return self.action != ActionType.FAILED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "kind": self.kind.value,
            "codename": self.codename,
            "action": self.action.value,
            "target_id": self.target_id,
            "language": self.language,
            "error": self.error,
            "processed_at": self.processed_at.isoformat(),
        }


@dataclass
class ImportedVariant:
    """A language variant written to the target environment."""
    item_codename: str
    language_codename: str
    variant: LanguageVariant


@dataclass(frozen=True)
class ImportedData:
    """
    Objects known to exist in the target environment after each import phase.

    Each phase receives the accumulator produced by the previous one and
    returns an extended copy; the instance passed in is never mutated.
    """
    assets: Dict[str, Asset] = field(default_factory=dict)
    content_items: Dict[str, ContentItem] = field(default_factory=dict)
    language_variants: List[ImportedVariant] = field(default_factory=list)

    def with_assets(self, assets: Dict[str, Asset]) -> "ImportedData":
        return replace(self, assets={**self.assets, **assets})

    def with_content_items(self, items: Dict[str, ContentItem]) -> "ImportedData":
        return replace(self, content_items={**self.content_items, **items})

    def with_language_variants(self, variants: List[ImportedVariant]) -> "ImportedData":
        return replace(self, language_variants=[*self.language_variants, *variants])

    def get_asset(self, codename: str) -> Optional[Asset]:
        return self.assets.get(codename)

    def get_content_item(self, codename: str) -> Optional[ContentItem]:
        return self.content_items.get(codename)
