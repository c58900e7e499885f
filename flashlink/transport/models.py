"""Models shared by the HTTP transports."""

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from pydantic import ConfigDict, Field, field_validator, model_validator

from flashlink.config.models import RemoteFlasherConfig, TransportConfig
from flashlink.models.base import FlashLinkBaseModel


USER_AGENT = "FlashLink-RemoteFlasher/1.0"
ACCEPT_JSON = "application/json"
ACCEPT_STREAM = "text/plain"


class ServiceEndpoint(FlashLinkBaseModel):
    """Base URL and timeouts of one remote flashing service."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    base_url: str
    connect_timeout: float = Field(default=10.0, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    upload_timeout: float = Field(default=120.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, v: str) -> str:
        v = v.rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    def url_for(self, path: str, query: dict[str, str] | None = None) -> str:
        """Full URL for ``path`` with an optional query string."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    @classmethod
    def from_config(
        cls,
        remote: RemoteFlasherConfig,
        transport: TransportConfig | None = None,
    ) -> "ServiceEndpoint":
        transport = transport or TransportConfig()
        return cls(
            base_url=remote.server_url,
            connect_timeout=transport.connect_timeout,
            request_timeout=transport.request_timeout,
            upload_timeout=transport.upload_timeout,
        )


class MultipartField(FlashLinkBaseModel):
    """A form field (``value``) or a file part (``path``) of a multipart body."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=False)

    name: str
    value: str | None = None
    path: Path | None = None

    @model_validator(mode="after")
    def exactly_one_payload(self) -> "MultipartField":
        if (self.value is None) == (self.path is None):
            raise ValueError("A multipart field needs either a value or a path")
        return self

    @property
    def is_file(self) -> bool:
        return self.path is not None

    @classmethod
    def file(cls, name: str, path: Path) -> "MultipartField":
        return cls(name=name, path=path)

    @classmethod
    def from_params(cls, params: dict[str, str]) -> list["MultipartField"]:
        """One value field per parameter, in insertion order."""
        return [cls(name=name, value=value) for name, value in params.items()]


class RawResponse(FlashLinkBaseModel):
    """An HTTP response as seen by the transport layer."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=False)

    status_code: int
    headers: dict[str, str] = Field(default_factory=dict)
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def payload(self) -> Any:
        """JSON-decoded body, or the raw text when the body is not JSON."""
        try:
            return json.loads(self.text)
        except ValueError:
            return self.text


__all__ = [
    "ACCEPT_JSON",
    "ACCEPT_STREAM",
    "MultipartField",
    "RawResponse",
    "ServiceEndpoint",
    "USER_AGENT",
]
