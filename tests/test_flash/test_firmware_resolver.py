"""Tests for firmware path resolution."""

from pathlib import Path

import pytest

from flashlink.core.errors import LocalError
from flashlink.flash.firmware_resolver import FirmwareResolver
from flashlink.models.options import FlashRequest
from flashlink.models.results import FailureKind


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    path = tmp_path / "build"
    path.mkdir()
    return path


def test_override_wins_over_build_output(firmware_file, build_dir):
    produced = build_dir / "produced.hex"
    produced.write_text(":00000001FF\n")
    request = FlashRequest(override_path=firmware_file, firmware_path=produced)

    assert FirmwareResolver(build_dir).resolve(request) == firmware_file


def test_build_output_used_without_override(build_dir):
    produced = build_dir / "produced.hex"
    produced.write_text(":00000001FF\n")

    resolved = FirmwareResolver(build_dir).resolve(FlashRequest(firmware_path=produced))

    assert resolved == produced


def test_missing_explicit_path(build_dir):
    request = FlashRequest(override_path=build_dir / "missing.hex")

    with pytest.raises(LocalError) as exc_info:
        FirmwareResolver(build_dir).resolve(request)

    assert exc_info.value.kind == FailureKind.FILE_NOT_FOUND


def test_discovery_picks_first_by_name(build_dir):
    for name in ("zeta.hex", "alpha.hex", "alpha.elf", "notes.txt"):
        (build_dir / name).write_text("x")

    assert FirmwareResolver(build_dir).resolve(FlashRequest()) == build_dir / "alpha.hex"


def test_extension_without_dot(build_dir):
    (build_dir / "app.bin").write_text("x")

    resolver = FirmwareResolver(build_dir, extension="bin")

    assert resolver.extension == ".bin"
    assert resolver.find_in_build_dir() == build_dir / "app.bin"


def test_empty_build_dir(build_dir):
    with pytest.raises(LocalError, match=r"No \.hex file found"):
        FirmwareResolver(build_dir).resolve(FlashRequest())


def test_missing_build_dir(tmp_path):
    assert FirmwareResolver(tmp_path / "nope").find_in_build_dir() is None
    assert FirmwareResolver(None).find_in_build_dir() is None
