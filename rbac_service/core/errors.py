"""
Error types raised by the role store and its collaborators.

Every error carries a ProjectErrorCode so the HTTP layer can map it to a
response without inspecting messages.
"""
from enum import Enum
from typing import Any, List, Optional


class ProjectErrorCode(str, Enum):
    """Standard error codes for the application."""
    INVALID_INPUT = "INVALID_INPUT"
    ROLE_NOT_FOUND = "ROLE_NOT_FOUND"
    INVALID_PERMISSION = "INVALID_PERMISSION"
    SERVER_ERROR = "SERVER_ERROR"
    QUERY_ERROR = "QUERY_ERROR"
    DATABASE_NOT_INIT = "DATABASE_NOT_INITIALIZED"
    ERROR_INIT_DATABASE = "ERROR_INITIALIZING_DATABASE"
    CONVERSION_ERROR = "CONVERSION_ERROR_ACTION_ARRAY_TO_OBJECT"


class ProjectError(Exception):
    """
    Base class for all errors raised by this service.

    Args:
        message: Human readable message
        error_code: Code identifying the kind of error
        error_data: Optional structured payload (e.g. missing ids)
    """

    def __init__(
        self,
        message: str,
        error_code: ProjectErrorCode,
        error_data: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.error_data = error_data

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(code={self.error_code.value}, message={self.message!r})>"


class RoleNotFoundError(ProjectError):
    """The target role id is absent from the role table."""

    def __init__(self, role_id: str):
        super().__init__(f"Role with ID {role_id} does not exist", ProjectErrorCode.ROLE_NOT_FOUND)
        self.role_id = role_id


class InvalidPermissionError(ProjectError):
    """One or more desired permission ids are absent from the catalog."""

    def __init__(self, missing_ids: List[str]):
        super().__init__(
            f"Nonexistent permissions found: {', '.join(missing_ids)}",
            ProjectErrorCode.INVALID_PERMISSION,
            {"nonexistent_permissions": list(missing_ids)},
        )
        self.missing_ids = list(missing_ids)


class ConversionError(ProjectError):
    """A persisted action string does not map to a known action namespace."""

    def __init__(self, value: str, reason: str = "unknown action namespace"):
        super().__init__(
            f"Error converting stored actions {value!r}: {reason}",
            ProjectErrorCode.CONVERSION_ERROR,
            {"value": value},
        )
        self.value = value


class QueryError(ProjectError):
    """The underlying engine rejected an operation."""

    def __init__(self, message: str):
        super().__init__(message, ProjectErrorCode.QUERY_ERROR)


class ServerError(ProjectError):
    """An invariant broke after the fact, e.g. a role vanished between commit and reload."""

    def __init__(self, message: str):
        super().__init__(message, ProjectErrorCode.SERVER_ERROR)


class DatabaseNotInitializedError(ProjectError):
    def __init__(self, message: str = "Database client is not initialized. Call initialize() first"):
        super().__init__(message, ProjectErrorCode.DATABASE_NOT_INIT)


class DatabaseInitializationError(ProjectError):
    def __init__(self, message: str):
        super().__init__(message, ProjectErrorCode.ERROR_INIT_DATABASE)
