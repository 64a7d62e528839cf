"""Loaders for target environments."""

from .base import BaseLoader, ImportResult, LoadResult
from .asset_loader import AssetLoader
from .content_item_loader import ContentItemLoader
from .language_variant_loader import LanguageVariantLoader
from .environment_loader import EnvironmentLoader
from .import_context import ImportContext, ImportContextBuilder

__all__ = [
    "BaseLoader",
    "ImportResult",
    "LoadResult",
    "AssetLoader",
    "ContentItemLoader",
    "LanguageVariantLoader",
    "EnvironmentLoader",
    "ImportContext",
    "ImportContextBuilder",
]
