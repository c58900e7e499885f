"""Shared test helpers: fake stream handles and canned responses."""

import json
from collections.abc import Iterator
from typing import Any

from flashlink.transport.models import RawResponse


SERVER_URL = "http://flasher.local:5000"


class FakeStreamHandle:
    """Stand-in for a streaming child process."""

    def __init__(
        self, chunks: list[bytes], return_code: int = 0, stderr: str = ""
    ) -> None:
        self._chunks = chunks
        self._final_return_code = return_code
        self._stderr = stderr
        self.return_code: int | None = None
        self.close_calls = 0

    @property
    def stderr(self) -> str:
        return self._stderr

    def __iter__(self) -> Iterator[bytes]:
        yield from self._chunks
        self.return_code = self._final_return_code

    def close(self) -> None:
        self.close_calls += 1
        if self.return_code is None:
            self.return_code = self._final_return_code


def json_response(payload: Any, status_code: int = 200) -> RawResponse:
    """A transport response carrying ``payload`` as JSON."""
    return RawResponse(
        status_code=status_code,
        headers={"Content-Type": "application/json"},
        text=json.dumps(payload),
    )


def stream_records(*records: tuple[str, str]) -> bytes:
    """Encode ``(type, message)`` pairs the way the service streams them."""
    return b"".join(
        f"data: {json.dumps({'type': kind, 'message': message})}\n".encode()
        for kind, message in records
    )
