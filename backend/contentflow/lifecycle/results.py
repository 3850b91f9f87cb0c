"""Uniform operation results and the lifecycle error taxonomy."""
import enum
from typing import Any

from pydantic import BaseModel


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    PERMISSION = "permission_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    REMOTE_FAILURE = "remote_failure"
    PARTIAL_DECISION_FAILURE = "partial_decision_failure"
    ALREADY_PROCESSING = "already_processing"
    UNKNOWN = "unknown_error"


class Result(BaseModel):
    """``{success, data | error}`` as handed back by every lifecycle operation."""

    success: bool
    data: Any = None
    error: str | None = None
    kind: ErrorKind | None = None
    status: int | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str, status: int | None = None) -> "Result":
        return cls(success=False, kind=kind, error=error, status=status)

    @classmethod
    def from_error(cls, exc: "LifecycleError") -> "Result":
        return cls.fail(exc.kind, exc.message, exc.status)


class LifecycleError(Exception):
    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ValidationFailed(LifecycleError):
    kind = ErrorKind.VALIDATION


class PermissionDenied(LifecycleError):
    kind = ErrorKind.PERMISSION


class AlreadyProcessing(LifecycleError):
    kind = ErrorKind.ALREADY_PROCESSING


class PartialDecisionFailure(LifecycleError):
    """The approval record was written but the content status was not."""

    kind = ErrorKind.PARTIAL_DECISION_FAILURE


class RemoteFailure(LifecycleError):
    """A Content API call failed. ``kind`` follows the HTTP status when known."""

    def __init__(self, message: str, status: int | None = None, kind: ErrorKind = ErrorKind.REMOTE_FAILURE):
        super().__init__(message, status)
        self.kind = kind

    @classmethod
    def from_result(cls, result: Result) -> "RemoteFailure":
        return cls(result.error or "Remote call failed", result.status, result.kind or ErrorKind.REMOTE_FAILURE)
