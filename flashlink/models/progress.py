"""Progress events produced while a remote flash is running."""

from enum import Enum

from pydantic import ConfigDict

from flashlink.models.base import FlashLinkBaseModel


class ProgressEventType(str, Enum):
    """Event types understood in the remote progress stream."""

    INFO = "info"
    OUTPUT = "output"
    SUCCESS = "success"
    ERROR = "error"

    @classmethod
    def from_wire(cls, value: object) -> "ProgressEventType":
        """Map a stream ``type`` field; anything unknown is plain output."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OUTPUT


class ProgressEvent(FlashLinkBaseModel):
    """One decoded progress record."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=False)

    type: ProgressEventType
    text: str

    @classmethod
    def info(cls, text: str) -> "ProgressEvent":
        return cls(type=ProgressEventType.INFO, text=text)

    @classmethod
    def output(cls, text: str) -> "ProgressEvent":
        return cls(type=ProgressEventType.OUTPUT, text=text)

    @classmethod
    def success(cls, text: str) -> "ProgressEvent":
        return cls(type=ProgressEventType.SUCCESS, text=text)

    @classmethod
    def error(cls, text: str) -> "ProgressEvent":
        return cls(type=ProgressEventType.ERROR, text=text)


__all__ = ["ProgressEvent", "ProgressEventType"]
