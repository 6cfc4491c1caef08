"""
Domain exceptions for the category manager.

Services raise these; the API layer converts them to JSON error responses
in one place (see api/main.py). Each exception carries the HTTP status it
maps to and an optional details dictionary.
"""

from typing import Any, Dict, List, Optional


class CategoryManagerError(Exception):
    """Base exception for all category manager errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to an error payload."""
        result: Dict[str, Any] = {'error': self.message}
        if self.details:
            result['details'] = self.details
        return result


class ValidationError(CategoryManagerError):
    """Missing required field, malformed body or invalid value."""

    status_code = 400


class NotFoundError(CategoryManagerError):
    """No record exists for the given identifier."""

    status_code = 404

    @classmethod
    def for_id(cls, resource: str, identifier: str) -> 'NotFoundError':
        """Build the error for a missing record, e.g. 'Category not found'."""
        return cls(f"{resource} not found", details={'id': identifier})


class DuplicateNameError(ValidationError):
    """A category with the same name already exists."""

    status_code = 409

    def __init__(self, names: List[str]):
        if len(names) == 1:
            message = f"Category '{names[0]}' already exists"
        else:
            message = f"Categories already exist: {', '.join(names)}"
        super().__init__(message, details={'names': names})
        self.names = names


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the configured size limit."""

    status_code = 413

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            f"File size ({size_mb:.1f} MB) exceeds maximum allowed ({max_mb} MB)",
            details={'size_mb': round(size_mb, 2), 'max_mb': max_mb}
        )


class UnexpectedError(CategoryManagerError):
    """Store or parsing failure that the caller cannot fix by changing input."""

    status_code = 500
