"""Exception hierarchy for export and import runs."""

from typing import Any, Dict, List, Optional


class MigrationError(Exception):
    """Base class for all migration errors."""


class InvalidCodenameError(MigrationError):
    """A codename does not exist in the environment (schema mismatch)."""

    def __init__(self, kind: str, codename: str, valid: Optional[List[str]] = None, context: str = ""):
        self.kind = kind
        self.codename = codename
        self.valid = list(valid or [])

        message = f"Invalid {kind} '{codename}'"
        if context:
            message += f" {context}"
        if valid is not None:
            message += f". Available {kind}s are ({len(self.valid)}): {', '.join(self.valid)}"
        super().__init__(message)


class MissingContentTypeError(MigrationError):
    """A flattened content type could not be found."""


class MissingElementError(MigrationError):
    """An element definition could not be found on a content type."""


class SnippetReferenceError(MigrationError):
    """A content type references a snippet that does not exist."""


class IncompleteTransformRegistryError(MigrationError):
    """An element type has no export or import transform registered."""


class MissingReferenceError(MigrationError):
    """A referenced object could not be resolved."""

    def __init__(self, kind: str, identifier: str, message: Optional[str] = None):
        self.kind = kind
        self.identifier = identifier
        super().__init__(message or f"Missing {kind} with id '{identifier}'")


class ElementTransformError(MigrationError):
    """Mapping the value of a single element failed."""

    UNSERIALIZABLE = "<unserializable value>"

    def __init__(self, element_codename: str, element_type: str, raw_value: str, reason: str):
        self.element_codename = element_codename
        self.element_type = element_type
        self.raw_value = raw_value
        self.reason = reason
        super().__init__(
            f"Failed to map value of element '{element_codename}' of type '{element_type}'. "
            f"Value: {raw_value}. Message: {reason}"
        )


class ExportRequestError(MigrationError):
    """Preparing a requested item for export failed."""

    def __init__(self, item_codename: str, language_codename: str, reason: str):
        self.item_codename = item_codename
        self.language_codename = language_codename
        super().__init__(
            f"Failed to export item '{item_codename}' in language '{language_codename}': {reason}"
        )


class ManagementApiError(MigrationError):
    """Domain error returned by the Management API."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        error_code: Optional[int] = None,
        request_id: Optional[str] = None,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.request_id = request_id
        self.validation_errors = validation_errors or []
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.validation_errors:
            details = "; ".join(str(e.get("message", e)) for e in self.validation_errors)
            return f"{base} ({details})"
        return base


class NotFoundError(ManagementApiError):
    """The requested object does not exist (404)."""
