"""
provider.py
~~~~~~~~~~~
Thin synchronous client for the public **Flightradar24** endpoints the app
needs:

* zone feed        – every aircraft inside a bounding box
* most tracked     – the live "most tracked flights" board
* click handler    – full detail for one flight id

Nothing here is cached or retried. Any transport error, non-2xx status or
undecodable body is raised as :class:`ProviderError`; the caller decides
how to degrade.
"""

from __future__ import annotations

import logging
from typing import Any, Final, TypedDict

import httpx

from .api_logging import logged_request
from .constants import HTTP_TIMEOUT_SEC, USER_AGENT
from .geo import bounds_from_point

LOG = logging.getLogger("provider")

FEED_URL: Final = "https://data-cloud.flightradar24.com/zones/fcgi/feed.js"
MOST_TRACKED_URL: Final = "https://www.flightradar24.com/flights/most-tracked"
DETAILS_URL: Final = "https://data-live.flightradar24.com/clickhandler/"

#: Feed filters sent with every zone query (all sources, ground included).
FEED_PARAMS: Final[dict[str, str]] = {
    "faa": "1",
    "satellite": "1",
    "mlat": "1",
    "flarm": "1",
    "adsb": "1",
    "gnd": "1",
    "air": "1",
    "vehicles": "1",
    "estimated": "1",
    "maxage": "14400",
    "gliders": "1",
    "stats": "1",
    "limit": "5000",
}

HEADERS: Final[dict[str, str]] = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json",
    "Origin": "https://www.flightradar24.com",
    "Referer": "https://www.flightradar24.com/",
}

#: A feed row is a positional list; fewer columns than this is not a flight.
FEED_ROW_LEN: Final[int] = 19


class ProviderError(RuntimeError):
    """Flightradar24 could not be reached or answered garbage."""


class FeedFlight(TypedDict, total=False):
    """One zone-feed row, keyed by name instead of position."""

    flight_id: str
    icao_24bit: str
    latitude: float
    longitude: float
    heading: int
    altitude: int
    ground_speed: int
    squawk: str
    aircraft_code: str
    registration: str
    time: int
    origin_airport_iata: str
    destination_airport_iata: str
    number: str
    on_ground: bool
    vertical_speed: int
    callsign: str
    airline_icao: str


class MostTrackedFlight(TypedDict, total=False):
    flight_id: str
    flight: str
    callsign: str
    squawk: str
    clicks: int
    from_iata: str
    from_city: str
    to_iata: str
    to_city: str
    model: str
    aircraft_type: str


#: Click-handler payload; deeply nested and only read with ``.get`` chains.
FlightDetail = dict[str, Any]


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_feed_row(flight_id: str, row: list[Any]) -> FeedFlight:
    """Map the positional feed columns onto :class:`FeedFlight` keys."""
    return FeedFlight(
        flight_id=flight_id,
        icao_24bit=_str(row[0]),
        latitude=_float(row[1]),
        longitude=_float(row[2]),
        heading=row[3],
        altitude=row[4],
        ground_speed=row[5],
        squawk=_str(row[6]),
        # row[7] is the receiving radar id
        aircraft_code=_str(row[8]),
        registration=_str(row[9]),
        time=row[10],
        origin_airport_iata=_str(row[11]),
        destination_airport_iata=_str(row[12]),
        number=_str(row[13]),
        on_ground=bool(row[14]),
        vertical_speed=row[15],
        callsign=_str(row[16]),
        airline_icao=_str(row[18]),
    )


def parse_most_tracked_item(item: dict[str, Any]) -> MostTrackedFlight:
    return MostTrackedFlight(
        flight_id=_str(item.get("flight_id")),
        flight=_str(item.get("flight")),
        callsign=_str(item.get("callsign")),
        squawk=_str(item.get("squawk")),
        clicks=int(item.get("clicks") or 0),
        from_iata=_str(item.get("from_iata")),
        from_city=_str(item.get("from_city")),
        to_iata=_str(item.get("to_iata")),
        to_city=_str(item.get("to_city")),
        model=_str(item.get("model")),
        aircraft_type=_str(item.get("type")),
    )


class Flightradar24Client:
    """Blocking Flightradar24 client; one short-lived ``httpx.Client`` per call."""

    def __init__(self, timeout: float = HTTP_TIMEOUT_SEC) -> None:
        self.timeout = timeout

    # ── plumbing ──────────────────────────────────────────────────────
    def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        try:
            with httpx.Client(headers=HEADERS, timeout=self.timeout) as cli:
                resp = logged_request(cli, "get", url, params=params)
            return resp.json()
        except httpx.HTTPError as exc:
            raise ProviderError(f"{url}: {exc}") from exc
        except ValueError as exc:  # body is not JSON
            raise ProviderError(f"{url}: bad JSON ({exc})") from exc

    # ── public API ────────────────────────────────────────────────────
    @staticmethod
    def bounds_from_point(lat: float, lon: float, radius_m: float) -> str:
        return bounds_from_point(lat, lon, radius_m)

    def get_flights_in_zone(self, bounds: str) -> dict[str, FeedFlight]:
        """Return ``{flight_id: FeedFlight}`` for every aircraft in *bounds*."""
        data = self._get_json(FEED_URL, params={"bounds": bounds, **FEED_PARAMS})
        if not isinstance(data, dict):
            raise ProviderError("zone feed is not a JSON object")

        flights: dict[str, FeedFlight] = {}
        for key, row in data.items():
            # "full_count", "version", "stats" share the top level with flights
            if not isinstance(row, list) or len(row) < FEED_ROW_LEN:
                continue
            flights[key] = parse_feed_row(key, row)

        LOG.info("[zone] %s → %d flights", bounds, len(flights))
        return flights

    def get_most_tracked(self) -> dict[str, MostTrackedFlight]:
        """
        Return the most-tracked board keyed by board position (``"0"``, ``"1"``, …).

        The endpoint answers ``{"data": [...]}``; older revisions used an
        object keyed by position, both are accepted.
        """
        data = self._get_json(MOST_TRACKED_URL)
        items = data.get("data") if isinstance(data, dict) else None
        if isinstance(items, dict):
            items = list(items.values())
        if not isinstance(items, list):
            raise ProviderError("most-tracked payload has no data list")

        board: dict[str, MostTrackedFlight] = {}
        for pos, item in enumerate(items):
            if not isinstance(item, dict):
                continue
            flight = parse_most_tracked_item(item)
            board[str(pos)] = flight
        return board

    def get_flight_details(self, flight_id: str) -> FlightDetail:
        """Return the raw click-handler detail for *flight_id*."""
        data = self._get_json(DETAILS_URL, params={"flight": flight_id, "version": "1.5"})
        if not isinstance(data, dict):
            raise ProviderError(f"detail for {flight_id} is not a JSON object")
        return data


__all__ = [
    "FeedFlight",
    "FlightDetail",
    "Flightradar24Client",
    "MostTrackedFlight",
    "ProviderError",
]
