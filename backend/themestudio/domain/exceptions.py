from typing import Any, Optional


class StudioError(Exception):
    """Base class for every error the composition layer reports to callers."""

    status_code = 400
    kind = "StudioError"

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.kind, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class NotFound(StudioError):
    status_code = 404
    kind = "NotFound"


class Unauthorized(StudioError):
    status_code = 403
    kind = "Unauthorized"


class NestingRejected(StudioError):
    status_code = 422
    kind = "NestingRejected"


class PersistenceConflict(StudioError):
    status_code = 409
    kind = "PersistenceConflict"


class ValidationError(StudioError):
    status_code = 400
    kind = "ValidationError"


class SyncInProgress(StudioError):
    status_code = 409
    kind = "SyncInProgress"


class InvariantViolation(PersistenceConflict):
    """A positional or structural invariant failed right before commit."""

    kind = "InvariantViolation"
