"""
Domain errors shared by the repositories and the HTTP layer.

Repositories raise these; ``app.main`` maps them to JSON responses using
``http_status``. Anything that is not an ``AppError`` is treated as a bug and
answered with a 500.
"""


class AppError(Exception):
    default_message: str = "Request failed"
    http_status: int = 400

    def __init__(self, message: str | None = None):
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)


class Unauthorized(AppError):
    """No identity, or the credential failed verification."""
    default_message = "Authentication required"
    http_status = 401


class Forbidden(AppError):
    """Authenticated, but not the owner of the resource."""
    default_message = "Not authorized to modify this resource"
    http_status = 403


class NotFound(AppError):
    default_message = "Resource not found"
    http_status = 404


class InvalidInput(AppError):
    default_message = "Invalid input"
    http_status = 400


class StoreFailure(AppError):
    """A write was rejected by the store or affected no rows."""
    default_message = "Storage operation failed"
    http_status = 409
