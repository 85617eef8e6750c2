"""Error taxonomy shared by the workflow, chat and notification services.

Every error carries a stable ``kind`` tag and a human readable message. The
HTTP layer maps kinds to status codes; nothing below it knows about HTTP.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for errors that propagate to the caller of the core."""

    kind = "internal"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "detail": self.message}


class ValidationError(DomainError):
    """Malformed or missing input."""

    kind = "validation"


class NotFoundError(DomainError):
    """Unknown report, thread, category, notification or user id."""

    kind = "not_found"


class ForbiddenError(DomainError):
    """Role or participant mismatch."""

    kind = "forbidden"


class InvalidTransitionError(DomainError):
    """The report's current status does not permit the requested transition."""

    kind = "invalid_transition"


class ConflictError(DomainError):
    """A concurrent write won the race for the same row."""

    kind = "conflict"


class InternalError(DomainError):
    """Unexpected store failure. The message never includes storage detail."""

    kind = "internal"


class UnauthorizedError(DomainError):
    """Missing, invalid or expired credential."""

    kind = "unauthorized"


HTTP_STATUS_BY_KIND = {
    ValidationError.kind: 400,
    UnauthorizedError.kind: 401,
    ForbiddenError.kind: 403,
    NotFoundError.kind: 404,
    InvalidTransitionError.kind: 409,
    ConflictError.kind: 409,
    InternalError.kind: 500,
}
