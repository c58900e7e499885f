"""Tests for OperationResult."""

import pytest
from pydantic import ValidationError

from flashlink.models.results import FailureKind, OperationResult


class TestOperationResult:
    """A result is either a full success or a full failure."""

    def test_ok_result(self):
        result = OperationResult.ok("done", data={"version": "1.0"})

        assert result.is_success()
        assert result.kind is None
        assert result.data == {"version": "1.0"}

    def test_fail_result(self):
        result = OperationResult.fail(
            FailureKind.TIMEOUT, "took too long", detail={"seconds": 30}
        )

        assert not result.is_success()
        assert result.kind == FailureKind.TIMEOUT
        assert result.detail == {"seconds": 30}

    def test_failure_without_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            OperationResult(success=False, message="broken")

    def test_failure_without_message_is_rejected(self):
        with pytest.raises(ValidationError):
            OperationResult(success=False, kind=FailureKind.SERVER_ERROR)

    def test_success_with_kind_is_rejected(self):
        with pytest.raises(ValidationError):
            OperationResult(success=True, kind=FailureKind.SERVER_ERROR)

    def test_summary_includes_kind_for_failures(self):
        result = OperationResult.fail(FailureKind.ABORTED, "stopped")

        assert result.get_summary() == {
            "success": False,
            "message": "stopped",
            "kind": "aborted",
        }

    def test_kind_serializes_as_string(self):
        result = OperationResult.fail(FailureKind.FILE_NOT_FOUND, "missing")

        assert result.to_dict()["kind"] == "file_not_found"
