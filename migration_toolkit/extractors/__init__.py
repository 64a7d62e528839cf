"""Exporters for source environments."""

from .base import BaseExtractor, ExtractionResult
from .environment_extractor import EnvironmentExtractor
from .export_context import ExportContext, ExportContextBuilder

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "EnvironmentExtractor",
    "ExportContext",
    "ExportContextBuilder",
]
