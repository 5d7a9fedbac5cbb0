from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class AuthenticationError(AppException):
    """Token missing, expired or rejected by the content API."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class UpstreamError(AppException):
    """Content API unreachable or answered with a non-success status."""

    def __init__(self, collection: str, status: int | None = None):
        message = f"Failed to fetch {collection}"
        if status is not None:
            message = f"Failed to fetch {collection}: HTTP {status}"
        super().__init__(
            message=message,
            status_code=502,
            details={"collection": collection, "upstream_status": status},
        )


class ViewLoadError(AppException):
    """A dashboard view could not be loaded. No partial view is returned."""

    def __init__(self, view: str):
        super().__init__(
            message=f"Failed to load {view} view",
            status_code=502,
            details={"view": view},
        )
