"""Caller-visible error taxonomy."""

from dataclasses import dataclass
from enum import StrEnum


class ErrorCategory(StrEnum):
    """Stable categories reported to callers."""

    BAD_REQUEST = "BadRequest"
    NOT_FOUND_OR_UNAUTHORIZED = "NotFoundOrUnauthorized"
    UPSTREAM_UNREACHABLE = "UpstreamUnreachable"
    PORT_CONFLICT = "PortConflict"
    UPSTREAM_ACCESS_DENIED = "UpstreamAccessDenied"
    UPSTREAM_REJECTED_INPUT = "UpstreamRejectedInput"
    UPSTREAM_INTERNAL_ERROR = "UpstreamInternalError"
    UPSTREAM_LOGICAL_FAILURE = "UpstreamLogicalFailure"


@dataclass(frozen=True)
class ClassifiedError:
    """Status, category and message to hand back to the caller."""

    status_code: int
    category: ErrorCategory
    message: str
    details: str | None = None
    solution: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Render the error as a JSON-serializable body."""
        payload: dict[str, object] = {
            "error": self.message,
            "category": self.category.value,
        }
        if self.details is not None:
            payload["details"] = self.details
        if self.solution is not None:
            payload["solution"] = self.solution
        return payload


class GatewayError(Exception):
    """Raised by gateway operations with an already classified error."""

    def __init__(self, error: ClassifiedError) -> None:
        super().__init__(error.message)
        self.error = error


def bad_request(message: str) -> GatewayError:
    """Build a validation error detected before any upstream call."""
    return GatewayError(ClassifiedError(400, ErrorCategory.BAD_REQUEST, message))


def not_found(message: str) -> GatewayError:
    """Build an error for records that are absent or owned by someone else."""
    return GatewayError(
        ClassifiedError(404, ErrorCategory.NOT_FOUND_OR_UNAUTHORIZED, message)
    )
