"""Operation result model shared by the remote client and the flash session."""

from enum import Enum
from typing import Any

from pydantic import Field, model_validator

from flashlink.models.base import FlashLinkBaseModel


class FailureKind(str, Enum):
    """Stable, programmatic reason attached to every failed result."""

    # Transport level
    CONNECTION_FAILED = "connection_failed"
    TIMEOUT = "timeout"
    DNS_FAILURE = "dns_failure"
    MALFORMED_RESPONSE = "malformed_response"

    # Service level
    SERVER_ERROR = "server_error"
    INVALID_RESPONSE = "invalid_response"
    PROTOCOL_ERROR = "protocol_error"

    # Local
    FILE_NOT_FOUND = "file_not_found"
    BUILD_FAILED = "build_failed"
    ABORTED = "aborted"


class OperationResult(FlashLinkBaseModel):
    """Tagged outcome of a remote call or a whole flash session.

    A success carries a message and the decoded payload; a failure carries a
    kind, a display-ready message and optional detail. Partially populated
    results are rejected.
    """

    success: bool
    message: str = ""
    kind: FailureKind | None = None
    data: Any = None
    detail: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_tag_consistency(self) -> "OperationResult":
        """A failure needs a kind and a message; a success must not have a kind."""
        if self.success and self.kind is not None:
            raise ValueError("A successful result cannot carry a failure kind")
        if not self.success:
            if self.kind is None:
                raise ValueError("A failed result must carry a failure kind")
            if not self.message:
                raise ValueError("A failed result must carry a message")
        return self

    @classmethod
    def ok(cls, message: str = "", data: Any = None) -> "OperationResult":
        """Build a successful result."""
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(
        cls,
        kind: FailureKind,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> "OperationResult":
        """Build a failed result."""
        return cls(success=False, kind=kind, message=message, detail=detail or {})

    def is_success(self) -> bool:
        """Check if the operation was successful."""
        return self.success

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the result."""
        summary: dict[str, Any] = {"success": self.success, "message": self.message}
        if not self.success and self.kind is not None:
            summary["kind"] = self.kind.value
        return summary


__all__ = ["FailureKind", "OperationResult"]
