"""
Custom exceptions for project storage.

All storage implementations should raise these exceptions
for consistent error handling across backends.
"""


class ProjectStorageError(Exception):
    """Base exception for all project storage errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ProjectNotFoundError(ProjectStorageError):
    """Raised when a project is not found."""

    def __init__(self, project_id: str, user_id: str | None = None):
        details = {"project_id": project_id}
        if user_id:
            details["user_id"] = user_id
        super().__init__(f"Project not found: {project_id}", details)
        self.project_id = project_id
        self.user_id = user_id


class ValidationError(ProjectStorageError):
    """Raised when data validation fails."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class StorageIOError(ProjectStorageError):
    """Raised when a storage I/O operation fails."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Storage I/O error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class StorageConnectionError(ProjectStorageError):
    """Raised when connection to remote storage fails.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Connection failed to {endpoint}", details)
        self.endpoint = endpoint
        self.cause = cause


class AuthenticationError(ProjectStorageError):
    """Raised when authentication to remote storage fails."""

    def __init__(self, endpoint: str, reason: str | None = None):
        details = {"endpoint": endpoint}
        if reason:
            details["reason"] = reason
        super().__init__(f"Authentication failed for {endpoint}", details)
        self.endpoint = endpoint
        self.reason = reason


class SyncError(ProjectStorageError):
    """Raised when the cloud copy of a project could not be brought in line with local."""

    def __init__(self, message: str, project_id: str | None = None, cause: Exception | None = None):
        details: dict = {}
        if project_id:
            details["project_id"] = project_id
        if cause:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.project_id = project_id
        self.cause = cause
