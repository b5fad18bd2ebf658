"""Error taxonomy for the link shortener.

Every error a caller can observe derives from :class:`ShortLinkError` and
carries the HTTP status and the public message used in the ``{"error": ...}``
response body.

Hierarchy
=========
::
    ShortLinkError
    ├─ InvalidInputError (400)
    │  ├─ InvalidUrlError
    │  └─ InvalidCodeError
    ├─ ConflictError (409)
    │  └─ CodeExistsError
    ├─ NotFoundError (404)
    │  └─ LinkNotFoundError
    └─ InternalError (500)
       ├─ GenerationExhaustedError
       └─ StorageError

    DuplicateCodeError   store-level unique-constraint signal, never rendered
"""

__all__ = [
    "ShortLinkError",
    "InvalidInputError",
    "InvalidUrlError",
    "InvalidCodeError",
    "ConflictError",
    "CodeExistsError",
    "NotFoundError",
    "LinkNotFoundError",
    "InternalError",
    "GenerationExhaustedError",
    "StorageError",
    "DuplicateCodeError",
]


class ShortLinkError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInputError(ShortLinkError):
    status_code = 400
    message = "Invalid input"


class InvalidUrlError(InvalidInputError):
    message = "target_url must be a valid URL with http:// or https://"


class InvalidCodeError(InvalidInputError):
    message = "code must be 6-8 alphanumeric characters (a-z, A-Z, 0-9)"


class ConflictError(ShortLinkError):
    status_code = 409
    message = "conflict"


class CodeExistsError(ConflictError):
    message = "code_exists"


class NotFoundError(ShortLinkError):
    status_code = 404
    message = "Not found"


class LinkNotFoundError(NotFoundError):
    message = "Link not found"


class InternalError(ShortLinkError):
    status_code = 500
    message = "Internal server error"


class GenerationExhaustedError(InternalError):
    message = "Failed to generate unique code"


class StorageError(InternalError):
    """Wraps an unexpected persistence failure; the cause is chained."""


class DuplicateCodeError(Exception):
    """Raised by the store when the unique index on ``code`` rejects an insert."""

    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Code '{code}' already exists")
