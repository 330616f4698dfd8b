"""
Error taxonomy for tinylink.

Every failure the link lifecycle can report is a `LinkError` subclass.
The HTTP layer maps them to responses through `status_code`; the core
never translates or retries them (apart from the bounded code-generation
loop in LinkManager.create_link).
"""


class LinkError(Exception):
    """Base class for all link lifecycle failures."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidInput(LinkError, ValueError):
    """Malformed URL, missing field or bad expiry value."""

    status_code = 400
    default_message = "Invalid input"


class InvalidCode(LinkError, ValueError):
    """Custom code violates the format or reserved-word rules."""

    status_code = 400
    default_message = "Code must be 6-8 alphanumeric characters"


class CodeTaken(LinkError):
    """Requested code already exists (pre-check or storage-enforced)."""

    status_code = 409
    default_message = "Code already exists"


class NotFound(LinkError):
    status_code = 404
    default_message = "Link not found"


class GenerationExhausted(LinkError):
    """No free random code was found within the attempt budget."""

    status_code = 500
    default_message = "Failed to generate unique code"


class StoreError(LinkError):
    """Underlying storage failure; the current operation is aborted."""

    status_code = 500
    default_message = "Storage failure"


class CodeConflict(StoreError):
    """Raised by a store when an insert violates the unique code constraint."""

    status_code = 409
    default_message = "Code already present in store"
