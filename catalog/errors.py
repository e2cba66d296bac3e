"""
Error taxonomy shared by the services and the HTTP layer.

Each kind maps to one stable response: a status code, a machine-readable
code and a generic message. Internal details are only ever logged.
"""

from typing import Optional


class CatalogError(Exception):
    status_code: int = 500
    code: str = "internal"
    message: str = "Internal server error"
    expose_detail: bool = False

    def __init__(self, detail: Optional[str] = None):
        # ``detail`` is only rendered for kinds with expose_detail set
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class Unauthenticated(CatalogError):
    status_code = 401
    code = "unauthenticated"
    message = "Authentication required"


class Forbidden(CatalogError):
    status_code = 403
    code = "forbidden"
    message = "Forbidden"


class NotFound(CatalogError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class InvalidArgument(CatalogError):
    status_code = 400
    code = "invalid_argument"
    message = "Invalid request"
    expose_detail = True


class Transient(CatalogError):
    """Store unavailable or timed out; safe for the caller to retry."""

    status_code = 503
    code = "unavailable"
    message = "Service temporarily unavailable, please retry"


class Internal(CatalogError):
    status_code = 500
    code = "internal"
    message = "Internal server error"
