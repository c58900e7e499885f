"""Exception hierarchy for FlashLink.

Transport implementations raise :class:`TransportError`; the remote client
converts every exception it sees into an ``OperationResult`` failure so that
callers above the client never have to catch network errors.
"""

from typing import Any

from flashlink.models.results import FailureKind


class FlashLinkError(Exception):
    """Base exception for all FlashLink errors."""


class ConfigError(FlashLinkError):
    """Raised when configuration is missing or invalid."""


class FlashError(FlashLinkError):
    """Raised when a flash session cannot be started."""


class TransportError(FlashLinkError):
    """A request could not be completed at the transport level.

    Attributes:
        kind: One of the transport failure kinds
        errors: Underlying errors, one per transport that was tried
    """

    def __init__(
        self,
        message: str,
        kind: FailureKind = FailureKind.CONNECTION_FAILED,
        errors: list["TransportError"] | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = FailureKind(kind)
        self.errors = errors or []

    def to_detail(self) -> dict[str, Any]:
        """Describe this error (and any nested errors) as plain data."""
        detail: dict[str, Any] = {"kind": self.kind.value, "error": str(self)}
        if self.errors:
            detail["errors"] = [error.to_detail() for error in self.errors]
        return detail


class ServiceError(FlashLinkError):
    """The remote service answered, but not with what was expected."""

    def __init__(
        self,
        message: str,
        kind: FailureKind = FailureKind.SERVER_ERROR,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.kind = FailureKind(kind)
        self.status_code = status_code
        self.body = body


class LocalError(FlashLinkError):
    """A local precondition failed (missing file, failed build, abort)."""

    def __init__(self, message: str, kind: FailureKind) -> None:
        super().__init__(message)
        self.kind = FailureKind(kind)


__all__ = [
    "ConfigError",
    "FlashError",
    "FlashLinkError",
    "LocalError",
    "ServiceError",
    "TransportError",
]
