"""Service layer for the migration toolkit."""

from .management_client import ManagementClient
from .migration_logger import LogType, MigrationLogger
from .transformer import ElementTransformRegistry
from .rich_text import RichTextProcessor
from .formatter import JsonFormatter

__all__ = [
    "ManagementClient",
    "LogType",
    "MigrationLogger",
    "ElementTransformRegistry",
    "RichTextProcessor",
    "JsonFormatter",
]
