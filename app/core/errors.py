"""Error taxonomy shared by services and the HTTP layer.

Each error carries a stable machine code and the HTTP status the transport maps it to.
"""


class MarketError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "INTERNAL_ERROR"
    http_status = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict[str, str]:
        return {"detail": self.message, "code": self.code}


class UnauthenticatedError(MarketError):
    """No credential, or an invalid one, where authentication is required."""

    code = "UNAUTHENTICATED"
    http_status = 401


class ForbiddenError(MarketError):
    """Authenticated, but the access policy (or a block) denies the operation."""

    code = "FORBIDDEN"
    http_status = 403


class NotFoundError(MarketError):
    code = "NOT_FOUND"
    http_status = 404


class NotAvailableError(MarketError):
    """Transfer target is missing, already owned, or out of stock (indistinguishable)."""

    code = "NOT_AVAILABLE"
    http_status = 409


class ConflictError(MarketError):
    """Duplicate unique field, e.g. an email already registered."""

    code = "CONFLICT"
    http_status = 409


class ValidationFailedError(MarketError):
    code = "VALIDATION_FAILED"
    http_status = 422


class PersistenceFailureError(MarketError):
    """Storage unreachable or rejected the write. Not retried by the service layer."""

    code = "PERSISTENCE_FAILURE"
    http_status = 503
