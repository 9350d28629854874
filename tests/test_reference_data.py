"""
tests/test_reference_data.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Load-once behaviour of the reference dataset store:

1. the catalog resource is read at most once, even under concurrent first
   access;
2. a broken catalog is a hard error, a broken registry a soft one;
3. CSV rows without exactly six columns are skipped;
4. lookups keep *first match wins* and never match an empty ICAO code.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from reradar.reference_data import (
    AirlineLoadError,
    CatalogLoadError,
    ReferenceDatasetStore,
)


def _count_reads(store: ReferenceDatasetStore, monkeypatch: pytest.MonkeyPatch, delay: float = 0.0) -> list[str]:
    reads: list[str] = []
    original = store._read_text

    def _counting(name: str) -> str:
        reads.append(name)
        time.sleep(delay)
        return original(name)

    monkeypatch.setattr(store, "_read_text", _counting)
    return reads


# ── aircraft-type catalog ────────────────────────────────────────────────
def test_catalog_parses_all_fields(store: ReferenceDatasetStore) -> None:
    types = store.load_aircraft_types()

    assert len(types) == 3
    b738 = types[0]
    assert b738.designator == "B738"
    assert b738.model_full_name == "Boeing 737-800"
    assert b738.wtc == "M" and b738.wtg == "D"
    assert b738.engine_count == "2"
    assert b738.engine_type == "Jet"
    assert b738.aircraft_description == "LandPlane"
    assert types[1].wtg is None


def test_catalog_is_read_once(store: ReferenceDatasetStore, monkeypatch: pytest.MonkeyPatch) -> None:
    reads = _count_reads(store, monkeypatch)

    first = store.load_aircraft_types()
    for _ in range(5):
        assert store.load_aircraft_types() == first

    assert reads == ["AircraftTypes.json"]


def test_concurrent_first_load_reads_once(
    store: ReferenceDatasetStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    reads = _count_reads(store, monkeypatch, delay=0.05)
    barrier = threading.Barrier(8)
    results: list[tuple] = []
    lock = threading.Lock()

    def worker() -> None:
        barrier.wait()
        types = store.load_aircraft_types()
        with lock:
            results.append(types)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert reads == ["AircraftTypes.json"]
    assert len(results) == 8
    assert all(r is results[0] for r in results)


def test_lookup_first_match_wins(store: ReferenceDatasetStore) -> None:
    assert store.aircraft_type("B738").model_full_name == "Boeing 737-800"
    assert store.aircraft_type("ZZZZ") is None
    assert store.aircraft_type(None) is None


@pytest.mark.parametrize("content", ["{ not json", '{"Designator": "B738"}', "[1, 2]"])
def test_malformed_catalog_is_fatal(dataset_dir: Path, content: str) -> None:
    (dataset_dir / "AircraftTypes.json").write_text(content)
    with pytest.raises(CatalogLoadError):
        ReferenceDatasetStore(dataset_dir).load_aircraft_types()


def test_missing_catalog_is_fatal(tmp_path: Path) -> None:
    store = ReferenceDatasetStore(tmp_path)
    with pytest.raises(CatalogLoadError):
        store.load_aircraft_types()
    assert not store.aircraft_types_loaded


# ── airline registry ─────────────────────────────────────────────────────
def test_airlines_skip_rows_with_wrong_column_count(store: ReferenceDatasetStore) -> None:
    airlines = store.load_airlines()

    names = [a.name for a in airlines]
    assert names == ["Ghost Air", "Delta Air Lines", "Delta Duplicate", "Lufthansa"]
    assert "Short Row Air" not in names and "Long Row Air" not in names


def test_airline_fields_and_active_flag(store: ReferenceDatasetStore) -> None:
    delta = store.airline("DAL")
    assert delta is not None
    assert (delta.name, delta.iata, delta.icao, delta.callsign, delta.country) == (
        "Delta Air Lines",
        "DL",
        "DAL",
        "DELTA",
        "United States",
    )
    assert delta.active is True
    assert store.airline("DLH").active is True
    assert [a.active for a in store.load_airlines()][0] is False


def test_empty_icao_never_matches(store: ReferenceDatasetStore) -> None:
    # "Ghost Air" has IATA and callsign "DAL" but no ICAO code
    assert store.airline("DAL").name == "Delta Air Lines"
    assert store.airline("") is None
    assert store.airline(None) is None


def test_empty_icao_only_registry(dataset_dir: Path) -> None:
    (dataset_dir / "airlines.csv").write_text("Ghost Air,DAL,,DAL,Nowhere,N\n")
    store = ReferenceDatasetStore(dataset_dir)

    assert len(store.load_airlines()) == 1  # kept in the loaded set
    assert store.airline("DAL") is None


def test_airlines_are_read_once(store: ReferenceDatasetStore, monkeypatch: pytest.MonkeyPatch) -> None:
    reads = _count_reads(store, monkeypatch)

    first = store.load_airlines()
    assert store.load_airlines() is first
    assert reads == ["airlines.csv"]


def test_missing_registry_is_recoverable(dataset_dir: Path) -> None:
    (dataset_dir / "airlines.csv").unlink()
    store = ReferenceDatasetStore(dataset_dir)

    with pytest.raises(AirlineLoadError):
        store.load_airlines()
    assert not store.airlines_loaded

    # nothing was cached, so a later call can succeed
    (dataset_dir / "airlines.csv").write_text("Lufthansa,LH,DLH,LUFTHANSA,Germany,Y\n")
    assert store.airline("DLH").name == "Lufthansa"


def test_structurally_broken_csv_raises(dataset_dir: Path) -> None:
    (dataset_dir / "airlines.csv").write_text('Bad Quote Air,BQ,"BQA"x,BQ,Nowhere,Y\n')
    with pytest.raises(AirlineLoadError):
        ReferenceDatasetStore(dataset_dir).load_airlines()


def test_quoted_commas_are_one_column(dataset_dir: Path) -> None:
    (dataset_dir / "airlines.csv").write_text('"Air, Inc.",AI,AIN,AIRINC,Nowhere,Y\n')
    store = ReferenceDatasetStore(dataset_dir)
    assert store.airline("AIN").name == "Air, Inc."


# ── packaged resources ───────────────────────────────────────────────────
def test_bundled_datasets_load(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RERADAR_DATASET_DIR", raising=False)
    store = ReferenceDatasetStore()

    assert store.aircraft_type("B738").model_full_name == "737-800"
    assert store.airline("DAL").name == "Delta Air Lines"


def test_dataset_dir_env_override(dataset_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RERADAR_DATASET_DIR", str(dataset_dir))
    store = ReferenceDatasetStore()

    assert store.aircraft_type("B738").model_full_name == "Boeing 737-800"
