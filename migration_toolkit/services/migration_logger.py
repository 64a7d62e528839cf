"""Event logger injected into export and import components."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional


class LogType(str, Enum):
    """Kinds of events emitted during a migration."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FETCH = "fetch"
    EXTRACT = "extract"
    CREATE = "create"
    UPSERT = "upsert"
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    ARCHIVE = "archive"
    CHANGE_WORKFLOW_STEP = "changeWorkflowStep"
    CREATE_NEW_VERSION = "createNewVersion"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    SKIP = "skip"
    PROCESS = "process"


_LEVELS = {
    LogType.WARNING: logging.WARNING,
    LogType.ERROR: logging.ERROR,
}


@dataclass
class LogEvent:
    """A single logged event."""
    type: LogType
    message: str
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self):
        return {
            "type": self.type.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


class MigrationLogger:
    """
    Records migration events and forwards them to a standard logger.

    Purely observational: logging never changes control flow.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        callback: Optional[Callable[[LogEvent], None]] = None,
    ):
        """
        Initialize the migration logger.

        Args:
            logger: Standard logger receiving the events
            callback: Optional function called with every event
        """
        self._logger = logger or logging.getLogger("migration_toolkit")
        self._callback = callback
        self.events: List[LogEvent] = []

    def log(self, type: LogType, message: str) -> LogEvent:
        event = LogEvent(type=type, message=message)
        self.events.append(event)

        level = _LEVELS.get(type, logging.INFO)
        self._logger.log(level, "%s: %s", type.value, message)

        if self._callback:
            self._callback(event)
        return event

    @property
    def warnings(self) -> List[str]:
        return [e.message for e in self.events if e.type == LogType.WARNING]

    @property
    def errors(self) -> List[str]:
        return [e.message for e in self.events if e.type == LogType.ERROR]

    def events_of(self, type: LogType) -> List[LogEvent]:
        return [e for e in self.events if e.type == type]
