"""
enrichment.py
~~~~~~~~~~~~~
Turn raw Flightradar24 telemetry into display records for the front end.

Public helper
-------------
    EnrichmentEngine(store, provider)
        .format_nearest(flights, lat, lon)  -> {"category": "nearest", "aircraft": [...]}
        .format_most_tracked(records)       -> {"category": "mostTracked", "aircraft": [...]}
        .aircraft_info(flight_id)           -> AircraftInfo

Joins go through :class:`~reradar.reference_data.ReferenceDatasetStore`
(aircraft code → catalog, airline ICAO → registry). String fields always
carry a value or a fallback (``N/A`` / ``private owner``); the one
exception is the *nearest* ``model``, which stays empty for an unknown
aircraft code.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Literal, Protocol, TypedDict

from .constants import NOT_AVAILABLE, PRIVATE_OWNER
from .fallback import first_non_empty, format_route
from .geo import haversine_nm
from .provider import FeedFlight, FlightDetail, MostTrackedFlight, ProviderError
from .reference_data import AirlineLoadError, ReferenceDatasetStore

LOG = logging.getLogger("enrichment")


# ── Output shapes (JSON field names) ─────────────────────────────────────
class NearestAircraft(TypedDict):
    model: str
    route: str
    operator: str
    registration: str
    distance: float
    flightId: str


class NearestAircraftResponse(TypedDict):
    category: Literal["nearest"]
    aircraft: list[NearestAircraft]


class MostTrackedAircraft(TypedDict):
    model: str
    route: str
    flight: str
    squawk: str
    callsign: str
    flightId: str


class MostTrackedAircraftResponse(TypedDict):
    category: Literal["mostTracked"]
    aircraft: list[MostTrackedAircraft]


class AircraftInfo(TypedDict):
    aircraftImageUrl: str
    country: str
    model: str
    registration: str
    route: str
    operator: str
    callsign: str
    flightId: str
    departureAirport: str
    arrivalAirport: str


EMPTY_AIRCRAFT_INFO: AircraftInfo = {
    "aircraftImageUrl": "",
    "country": "",
    "model": "",
    "registration": "",
    "route": "",
    "operator": "",
    "callsign": "",
    "flightId": "",
    "departureAirport": "",
    "arrivalAirport": "",
}


class DetailSource(Protocol):
    def get_flight_details(self, flight_id: str) -> FlightDetail: ...


def _dig(data: Any, *keys: str) -> Any:
    """``data[k1][k2]…`` with ``None`` for any missing or non-dict level."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _first_image(images: Any) -> str:
    """First ``src`` of large → medium → thumbnails, else ``""``."""
    for size in ("large", "medium", "thumbnails"):
        entries = _dig(images, size)
        if isinstance(entries, list) and entries:
            return str(_dig(entries[0], "src") or "")
    return ""


class EnrichmentEngine:
    """Joins telemetry against the reference store; stateless otherwise."""

    def __init__(self, store: ReferenceDatasetStore, provider: DetailSource) -> None:
        self.store = store
        self.provider = provider

    # ── a) nearest aircraft ───────────────────────────────────────────
    def format_nearest(
        self, flights: Mapping[str, FeedFlight], lat: float, lon: float
    ) -> NearestAircraftResponse:
        """
        Build nearest-aircraft records for every flight in *flights*.

        Args:
            flights: ``{flight_id: FeedFlight}`` from a zone query.
            lat, lon: Observer position; ``distance`` is measured from here (NM).

        Returns:
            Category ``"nearest"``; an empty list when the airline registry
            cannot be loaded. Record order follows the mapping and carries
            no meaning.
        """
        self.store.load_aircraft_types()
        try:
            self.store.load_airlines()
        except AirlineLoadError as exc:
            LOG.warning("[nearest] airline registry unavailable: %s", exc)
            return {"category": "nearest", "aircraft": []}

        aircraft: list[NearestAircraft] = []
        for flight_id, plane in flights.items():
            kind = self.store.aircraft_type(plane.get("aircraft_code"))
            airline = self.store.airline(plane.get("airline_icao"))
            aircraft.append(
                NearestAircraft(
                    model=kind.model_full_name if kind else "",
                    route=format_route(
                        plane.get("origin_airport_iata"),
                        plane.get("destination_airport_iata"),
                    ),
                    operator=first_non_empty(airline.name if airline else "", PRIVATE_OWNER),
                    registration=first_non_empty(plane.get("registration"), NOT_AVAILABLE),
                    distance=haversine_nm(
                        lat,
                        lon,
                        float(plane.get("latitude", 0.0)),
                        float(plane.get("longitude", 0.0)),
                    ),
                    flightId=flight_id,
                )
            )

        LOG.debug("[nearest] formatted %d aircraft", len(aircraft))
        return {"category": "nearest", "aircraft": aircraft}

    # ── b) most tracked ───────────────────────────────────────────────
    def format_most_tracked(
        self, records: Iterable[MostTrackedFlight]
    ) -> MostTrackedAircraftResponse:
        """Most-tracked records in input order. Model: catalog → code → type → N/A."""
        aircraft: list[MostTrackedAircraft] = []
        for plane in records:
            kind = self.store.aircraft_type(plane.get("model"))
            model = first_non_empty(
                kind.model_full_name if kind else "",
                first_non_empty(
                    plane.get("model"),
                    first_non_empty(plane.get("aircraft_type"), NOT_AVAILABLE),
                ),
            )
            aircraft.append(
                MostTrackedAircraft(
                    model=model,
                    route=format_route(plane.get("from_iata"), plane.get("to_iata")),
                    flight=first_non_empty(plane.get("flight"), PRIVATE_OWNER),
                    squawk=first_non_empty(plane.get("squawk"), NOT_AVAILABLE),
                    callsign=first_non_empty(plane.get("callsign"), NOT_AVAILABLE),
                    flightId=plane.get("flight_id", ""),
                )
            )
        return {"category": "mostTracked", "aircraft": aircraft}

    # ── c) single aircraft ────────────────────────────────────────────
    def aircraft_info(self, flight_id: str) -> AircraftInfo:
        """
        Fetch and flatten the detail of one flight.

        A failed fetch is logged and answered with an all-empty record.
        """
        try:
            detail = self.provider.get_flight_details(flight_id)
        except ProviderError as exc:
            LOG.warning("[info] %s: %s", flight_id, exc)
            return dict(EMPTY_AIRCRAFT_INFO)  # type: ignore[return-value]

        LOG.debug("[info] %s status: %s", flight_id, _dig(detail, "status", "text"))
        origin = _dig(detail, "airport", "origin")
        destination = _dig(detail, "airport", "destination")

        return AircraftInfo(
            aircraftImageUrl=_first_image(_dig(detail, "aircraft", "images")),
            country=str(_dig(detail, "aircraft", "country", "name") or ""),
            model=str(_dig(detail, "aircraft", "model", "text") or ""),
            registration=str(_dig(detail, "aircraft", "registration") or ""),
            route=format_route(
                _dig(origin, "code", "iata"), _dig(destination, "code", "iata")
            ),
            operator=first_non_empty(
                _dig(detail, "airline", "name"),
                first_non_empty(_dig(detail, "owner", "name"), PRIVATE_OWNER),
            ),
            callsign=str(_dig(detail, "identification", "callsign") or ""),
            flightId=str(_dig(detail, "identification", "id") or ""),
            departureAirport=str(_dig(origin, "name") or ""),
            arrivalAirport=str(_dig(destination, "name") or ""),
        )


__all__ = [
    "AircraftInfo",
    "EnrichmentEngine",
    "MostTrackedAircraft",
    "MostTrackedAircraftResponse",
    "NearestAircraft",
    "NearestAircraftResponse",
]
