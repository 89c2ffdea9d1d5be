class ApplicationError(Exception):
    """Base application-layer error, independent from transport concerns."""


class UnauthenticatedError(ApplicationError):
    """Raised when no valid credential identifies an active principal."""


class PermissionDeniedError(ApplicationError):
    """Raised when the row visibility policy rejects an operation.

    Reads never raise it: a denied read is an empty result. Callers that receive
    it from a write, or from a principal lookup with no provisioned record, decide
    whether it becomes an empty result or a demo fallback.
    """


class NotFoundError(ApplicationError):
    """Raised when an entity is absent or outside the caller's scope."""


class ConflictError(ApplicationError):
    """Raised when a uniqueness or state conflict occurs."""


class ForbiddenError(ApplicationError):
    """Raised when the caller's role may not perform the operation."""


class ValidationError(ApplicationError):
    """Raised when application-level validation fails."""


PERMISSION_DENIED_SQLSTATE = "42501"


def is_permission_denied(exc: BaseException) -> bool:
    """Recognize a denial from the application or from Postgres (SQLSTATE 42501)."""
    if isinstance(exc, PermissionDeniedError):
        return True
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == PERMISSION_DENIED_SQLSTATE:
        return True
    message = str(exc).lower()
    return "permission denied" in message or "row-level security" in message
