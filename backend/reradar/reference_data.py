"""
reference_data.py
~~~~~~~~~~~~~~~~~
Lazy, load-once store for the two bundled reference datasets:

* ``datasets/AircraftTypes.json`` – ICAO aircraft-type catalog (mandatory).
* ``datasets/airlines.csv`` – airline registry, 6 columns
  ``name,iata,icao,callsign,country,active`` (optional).

Key points
----------
* One :class:`ReferenceDatasetStore` per process, handed to the enrichment
  engine. Tests build a fresh one so nothing leaks between them.
* Each dataset is read **at most once**. The load-and-publish step runs
  under a per-dataset lock, so concurrent first callers never parse twice
  and never see a half-built index.
* A broken catalog raises :class:`CatalogLoadError` (fatal for the
  process). A broken registry raises :class:`AirlineLoadError`, which the
  caller is expected to degrade on.
* Lookups are dict-backed and keep *first match wins* for duplicate keys.

``$RERADAR_DATASET_DIR`` points the store at an on-disk directory instead of
the packaged resources.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import os
import threading
from dataclasses import dataclass
from importlib.resources import files
from pathlib import Path
from typing import Any, Final

LOG = logging.getLogger("reference_data")

AIRCRAFT_TYPES_FILE: Final = "AircraftTypes.json"
AIRLINES_FILE: Final = "airlines.csv"
AIRLINE_COLUMNS: Final[int] = 6


class CatalogLoadError(RuntimeError):
    """The aircraft-type catalog is missing or malformed."""


class AirlineLoadError(RuntimeError):
    """The airline registry could not be opened or parsed."""


@dataclass(frozen=True)
class AircraftType:
    """One ICAO Doc 8643 catalog row."""

    designator: str
    model_full_name: str
    description: str = ""
    wtc: str = ""
    wtg: str | None = None
    manufacturer_code: str = ""
    engine_count: str = ""
    engine_type: str = ""
    show_in_part3_only: bool = False
    aircraft_description: str = ""

    @classmethod
    def from_json(cls, row: dict[str, Any]) -> "AircraftType":
        return cls(
            designator=str(row.get("Designator") or ""),
            model_full_name=str(row.get("ModelFullName") or ""),
            description=str(row.get("Description") or ""),
            wtc=str(row.get("WTC") or ""),
            wtg=row.get("WTG") or None,
            manufacturer_code=str(row.get("ManufacturerCode") or ""),
            engine_count=str(row.get("EngineCount") or ""),
            engine_type=str(row.get("EngineType") or ""),
            show_in_part3_only=bool(row.get("ShowInPart3Only", False)),
            aircraft_description=str(row.get("AircraftDescription") or ""),
        )


@dataclass(frozen=True)
class Airline:
    name: str
    iata: str
    icao: str
    callsign: str
    country: str
    active: bool


def _default_source() -> Any:
    override = os.getenv("RERADAR_DATASET_DIR")
    if override:
        return Path(override).expanduser()
    return files("reradar") / "datasets"


class ReferenceDatasetStore:
    """Load-once cache of aircraft types and airlines."""

    def __init__(self, source: Any = None) -> None:
        self._source = source if source is not None else _default_source()
        self._types_lock = threading.Lock()
        self._airlines_lock = threading.Lock()
        self._aircraft_types: tuple[AircraftType, ...] | None = None
        self._airlines: tuple[Airline, ...] | None = None
        self._by_designator: dict[str, AircraftType] = {}
        self._by_icao: dict[str, Airline] = {}

    # ── state ─────────────────────────────────────────────────────────
    @property
    def aircraft_types_loaded(self) -> bool:
        return self._aircraft_types is not None

    @property
    def airlines_loaded(self) -> bool:
        return self._airlines is not None

    def _read_text(self, name: str) -> str:
        return self._source.joinpath(name).read_text(encoding="utf-8")

    # ── aircraft-type catalog ─────────────────────────────────────────
    def load_aircraft_types(self) -> tuple[AircraftType, ...]:
        """
        Return the catalog, parsing the bundled JSON on first use.

        Raises:
            CatalogLoadError: resource missing, not JSON, or not a list of
                objects. Callers treat this as fatal.
        """
        if self._aircraft_types is not None:
            return self._aircraft_types

        with self._types_lock:
            if self._aircraft_types is not None:
                return self._aircraft_types

            try:
                raw = json.loads(self._read_text(AIRCRAFT_TYPES_FILE))
            except (OSError, ValueError) as exc:
                LOG.critical("[catalog] cannot load %s: %s", AIRCRAFT_TYPES_FILE, exc)
                raise CatalogLoadError(f"cannot load {AIRCRAFT_TYPES_FILE}: {exc}") from exc

            if not isinstance(raw, list) or not all(isinstance(r, dict) for r in raw):
                LOG.critical("[catalog] %s is not a list of objects", AIRCRAFT_TYPES_FILE)
                raise CatalogLoadError(f"{AIRCRAFT_TYPES_FILE} is not a list of objects")

            types = tuple(AircraftType.from_json(row) for row in raw)
            index: dict[str, AircraftType] = {}
            for entry in types:
                index.setdefault(entry.designator, entry)

            self._by_designator = index
            self._aircraft_types = types

        LOG.info("[catalog] loaded %d aircraft types", len(types))
        if types:
            LOG.debug("[catalog] first entry: %s", types[0].model_full_name)
        return types

    def aircraft_type(self, designator: str | None) -> AircraftType | None:
        """First catalog entry whose designator equals *designator*."""
        self.load_aircraft_types()
        return self._by_designator.get(designator or "")

    # ── airline registry ──────────────────────────────────────────────
    def load_airlines(self) -> tuple[Airline, ...]:
        """
        Return the registry, parsing the bundled CSV on first use.

        Rows that do not have exactly six columns are skipped.

        Raises:
            AirlineLoadError: resource missing or structurally broken CSV.
                Nothing is cached, so a later call retries.
        """
        if self._airlines is not None:
            return self._airlines

        with self._airlines_lock:
            if self._airlines is not None:
                return self._airlines

            try:
                text = self._read_text(AIRLINES_FILE)
                rows = list(csv.reader(io.StringIO(text), strict=True))
            except (OSError, UnicodeDecodeError, csv.Error) as exc:
                LOG.warning("[airlines] cannot read %s: %s", AIRLINES_FILE, exc)
                raise AirlineLoadError(f"could not read CSV: {exc}") from exc

            LOG.debug("[airlines] %d CSV records", len(rows))
            airlines: list[Airline] = []
            for row in rows:
                if len(row) != AIRLINE_COLUMNS:
                    LOG.debug("[airlines] skipping row with %d columns: %s", len(row), row)
                    continue
                airlines.append(
                    Airline(
                        name=row[0],
                        iata=row[1],
                        icao=row[2],
                        callsign=row[3],
                        country=row[4],
                        active=row[5] == "Y",
                    )
                )

            index: dict[str, Airline] = {}
            for airline in airlines:
                if airline.icao:
                    index.setdefault(airline.icao, airline)

            self._by_icao = index
            self._airlines = tuple(airlines)

        LOG.info("[airlines] loaded %d airlines", len(airlines))
        return self._airlines

    def airline(self, icao: str | None) -> Airline | None:
        """
        First airline whose ICAO code equals *icao*.

        Rows with an empty ICAO code never match. May raise
        :class:`AirlineLoadError` on first use.
        """
        self.load_airlines()
        if not icao:
            return None
        return self._by_icao.get(icao)


__all__ = [
    "Airline",
    "AirlineLoadError",
    "AircraftType",
    "CatalogLoadError",
    "ReferenceDatasetStore",
]
