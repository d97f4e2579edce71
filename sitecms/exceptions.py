"""Domain exceptions for sitecms.

All exceptions inherit from SiteCmsError and carry a stable error_code plus
keyword context, so the HTTP layer can map them to distinct responses:

- AppNotFoundError: an id-based operation referenced an app missing from the catalog
- AppNotEnabledError: an update was attempted on an app that is not enabled
- ConfigValidationError: advisory check found missing required fields
- StoreUnavailableError: the configuration store could not be read or written
"""
from typing import Any


class SiteCmsError(Exception):
    """Base class for sitecms errors.

    Attributes:
        message: Human-readable description.
        error_code: Stable machine-readable code.
        context: Extra key/value details for logging and responses.
    """

    status_code: int = 500

    def __init__(self, message: str, error_code: str, /, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context


class AppNotFoundError(SiteCmsError):
    """Raised when an app id is not present in the catalog."""

    status_code = 404

    def __init__(self, app_id: str, /) -> None:
        super().__init__("App not found", "NOT_FOUND", app_id=app_id)
        self.app_id = app_id


class AppNotEnabledError(SiteCmsError):
    """Raised by update_config when the app has no enabled configuration."""

    status_code = 400

    def __init__(self, app_id: str, /) -> None:
        super().__init__("App not enabled", "APP_NOT_ENABLED", app_id=app_id)
        self.app_id = app_id


class ConfigValidationError(SiteCmsError):
    """Raised when a configuration test finds missing required fields.

    Advisory only: enabling an app never raises this.
    """

    status_code = 400

    def __init__(self, app_id: str, fields: list[str], /) -> None:
        super().__init__(
            "Missing required fields", "VALIDATION_FAILED", app_id=app_id, fields=fields
        )
        self.app_id = app_id
        self.fields = fields


class StoreUnavailableError(SiteCmsError):
    """Raised when the configuration store cannot be read or written."""

    status_code = 500

    def __init__(self, name: str, cause: str, /, *, operation: str = "write") -> None:
        message = (
            "Failed to save configuration"
            if operation == "write"
            else "Failed to load configuration"
        )
        super().__init__(
            message, "STORE_UNAVAILABLE", name=name, operation=operation
        )
        self.name = name
        self.cause = cause
        self.operation = operation
