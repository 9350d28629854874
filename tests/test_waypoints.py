"""
tests/test_waypoints.py
~~~~~~~~~~~~~~~~~~~~~~~
Reading ``waypoints.json`` from the user config directory. Every failure
mode must end in an empty list, never an exception.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from reradar import waypoints as wp


def test_config_dir_prefers_explicit_override(isolate_user_dirs: Path) -> None:
    assert wp.config_dir() == isolate_user_dirs


def test_config_dir_falls_back_to_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RERADAR_CONFIG_DIR", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert wp.config_dir() == tmp_path / "xdg"


def test_config_dir_defaults_to_home_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RERADAR_CONFIG_DIR", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert wp.config_dir() == tmp_path / ".config"


def test_read_waypoints(isolate_user_dirs: Path) -> None:
    (isolate_user_dirs / "waypoints.json").write_text(
        json.dumps(
            [
                {"name": "Home", "latitude": 33.5, "longitude": -84.5},
                {"name": "Cabin", "latitude": 35, "longitude": -83},
            ]
        )
    )

    assert wp.read_waypoints() == [
        {"name": "Home", "latitude": 33.5, "longitude": -84.5},
        {"name": "Cabin", "latitude": 35.0, "longitude": -83.0},
    ]


def test_missing_file(caplog: pytest.LogCaptureFixture) -> None:
    assert wp.read_waypoints() == []
    assert any("does not exist" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("content", ["{ invalid json }", '{"name": "Home"}', ""])
def test_broken_file(isolate_user_dirs: Path, content: str) -> None:
    (isolate_user_dirs / "waypoints.json").write_text(content)
    assert wp.read_waypoints() == []


def test_malformed_entries_are_skipped(tmp_path: Path) -> None:
    path = tmp_path / "custom.json"
    path.write_text(
        json.dumps(
            [
                {"name": "Good", "latitude": 1.0, "longitude": 2.0},
                {"name": "No lon", "latitude": 1.0},
                {"name": "Text", "latitude": "north", "longitude": 2.0},
                "just a string",
            ]
        )
    )

    assert wp.read_waypoints(path) == [{"name": "Good", "latitude": 1.0, "longitude": 2.0}]
