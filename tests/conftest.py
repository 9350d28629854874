"""
tests/conftest.py
~~~~~~~~~~~~~~~~~
Global pytest fixtures.

* ``isolate_user_dirs`` points the waypoint store at a per-test temporary
  config directory so nothing under the real ``~/.config`` is read.
* ``dataset_dir`` / ``store`` build a tiny on-disk reference dataset and a
  *fresh* :class:`ReferenceDatasetStore` over it for every test.
* ``fake_provider`` stands in for the Flightradar24 client.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from reradar.provider import ProviderError
from reradar.reference_data import ReferenceDatasetStore

CATALOG: list[dict[str, Any]] = [
    {
        "ModelFullName": "Boeing 737-800",
        "Description": "L2J",
        "WTC": "M",
        "WTG": "D",
        "Designator": "B738",
        "ManufacturerCode": "BOEING",
        "ShowInPart3Only": False,
        "AircraftDescription": "LandPlane",
        "EngineCount": "2",
        "EngineType": "Jet",
    },
    {
        "ModelFullName": "Airbus A-320",
        "Description": "L2J",
        "WTC": "M",
        "WTG": None,
        "Designator": "A320",
        "ManufacturerCode": "AIRBUS",
        "ShowInPart3Only": False,
        "AircraftDescription": "LandPlane",
        "EngineCount": "2",
        "EngineType": "Jet",
    },
    # duplicate designator – must never win over the first B738 row
    {"ModelFullName": "Boeing 737-800 (dup)", "Designator": "B738"},
]

AIRLINES_CSV = (
    # empty ICAO, IATA + callsign equal to a real ICAO code
    "Ghost Air,DAL,,DAL,Nowhere,N\n"
    "Delta Air Lines,DL,DAL,DELTA,United States,Y\n"
    "Delta Duplicate,DX,DAL,DELTA2,United States,N\n"
    "Lufthansa,LH,DLH,LUFTHANSA,Germany,Y\n"
    "Short Row Air,SR,SRA\n"
    "Long Row Air,LR,LRA,LONG,Nowhere,Y,extra\n"
)


@pytest.fixture(autouse=True)
def isolate_user_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect the per-user config directory into *tmp_path*."""
    config = tmp_path / "config"
    config.mkdir()
    monkeypatch.setenv("RERADAR_CONFIG_DIR", str(config))
    return config


@pytest.fixture
def dataset_dir(tmp_path: Path) -> Path:
    """Write the miniature catalog + registry and return their directory."""
    root = tmp_path / "datasets"
    root.mkdir()
    (root / "AircraftTypes.json").write_text(json.dumps(CATALOG))
    (root / "airlines.csv").write_text(AIRLINES_CSV)
    return root


@pytest.fixture
def store(dataset_dir: Path) -> ReferenceDatasetStore:
    return ReferenceDatasetStore(dataset_dir)


class FakeProvider:
    """
    Scriptable Flightradar24 stand-in.

    Set ``zone`` / ``board`` / ``detail`` to canned data, or ``error`` to a
    :class:`ProviderError` that every query raises. Calls are recorded.
    """

    def __init__(self) -> None:
        self.zone: dict[str, Any] = {}
        self.board: Any = {}
        self.detail: dict[str, Any] = {}
        self.error: ProviderError | None = None
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error

    def bounds_from_point(self, lat: float, lon: float, radius_m: float) -> str:
        self.calls.append(("bounds", (lat, lon, radius_m)))
        return "north,south,west,east"

    def get_flights_in_zone(self, bounds: str) -> dict[str, Any]:
        self.calls.append(("zone", (bounds,)))
        self._maybe_fail()
        return self.zone

    def get_most_tracked(self) -> Any:
        self.calls.append(("most_tracked", ()))
        self._maybe_fail()
        return self.board

    def get_flight_details(self, flight_id: str) -> dict[str, Any]:
        self.calls.append(("detail", (flight_id,)))
        self._maybe_fail()
        return self.detail


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
