"""Tests for the XDG directory helpers."""

from pathlib import Path

from flashlink.utils.xdg import (
    get_default_build_dir,
    get_xdg_config_dir,
    get_xdg_data_dir,
)


def test_xdg_variables_respected(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    assert get_xdg_config_dir() == tmp_path / "config" / "flashlink"
    assert get_xdg_data_dir() == tmp_path / "data" / "flashlink"
    assert get_default_build_dir() == tmp_path / "data" / "flashlink" / "build"


def test_home_fallback(monkeypatch):
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)

    assert get_xdg_config_dir() == Path.home() / ".config" / "flashlink"
    assert get_xdg_data_dir() == Path.home() / ".local" / "share" / "flashlink"
