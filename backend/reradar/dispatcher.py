"""
dispatcher.py
~~~~~~~~~~~~~
Map one inbound host message to its handler and send the typed reply.

Protocol
--------
=====  ===========================  =====
code   request                      reply
=====  ===========================  =====
1      nearest aircraft             101
2      most-tracked aircraft        101
3      saved waypoints              102
4      single aircraft detail       103
=====  ===========================  =====

* Codes above ``SESSION_INIT_THRESHOLD`` are session-init notices and get an
  immediate ``(200, "Init")`` before anything else happens.
* ``SYSTEM_TERMINATE`` ends the session for good.
* Unknown codes are ignored: no reply, no state change.
* A payload that does not decode, or a result that does not encode, is
  answered on the request's reply code with a readable error string.

:class:`Session` feeds a :class:`Dispatcher` from a FIFO queue on a single
worker thread, so requests never overlap or reorder.
"""

from __future__ import annotations

import enum
import json
import logging
import math
import os
import queue
import threading
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Final, Protocol

from .constants import NM_TO_METERS
from .enrichment import EnrichmentEngine
from .provider import FeedFlight, MostTrackedFlight, ProviderError
from .reference_data import CatalogLoadError
from .waypoints import Waypoint, read_waypoints

LOG = logging.getLogger("dispatcher")


class MessageType(enum.IntEnum):
    NEAREST_AIRCRAFT = 1
    MOST_TRACKED_AIRCRAFT = 2
    WAYPOINTS = 3
    AIRCRAFT_INFO = 4

    NEAREST_AIRCRAFT_RESPONSE = 101
    # Same wire code as the nearest reply; the host tells them apart by
    # the "category" field of the payload.
    MOST_TRACKED_AIRCRAFT_RESPONSE = 101
    WAYPOINTS_RESPONSE = 102
    AIRCRAFT_INFO_RESPONSE = 103

    INIT_ACK = 200


#: Host-reserved "terminate now" code (largest uint32).
SYSTEM_TERMINATE: Final[int] = 0xFFFF_FFFF
SESSION_INIT_THRESHOLD: Final[int] = 1000


class DispatchState(enum.Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Message:
    msg_type: int
    contents: str | bytes = ""


@dataclass(frozen=True)
class Reply:
    msg_type: int
    contents: str


class Replier(Protocol):
    def send(self, msg_type: int, contents: str) -> None: ...


@dataclass
class ReplyCollector:
    """Replier that just remembers what was sent."""

    sent: list[Reply] = field(default_factory=list)

    def send(self, msg_type: int, contents: str) -> None:
        self.sent.append(Reply(int(msg_type), contents))


class LiveProvider(Protocol):
    def bounds_from_point(self, lat: float, lon: float, radius_m: float) -> str: ...

    def get_flights_in_zone(self, bounds: str) -> dict[str, FeedFlight]: ...

    def get_most_tracked(self) -> Any: ...


class RequestError(ValueError):
    """Inbound payload is not valid JSON or misses / mistypes a field."""


# ── Request decoding ─────────────────────────────────────────────────────
def _decode_object(contents: str | bytes) -> dict[str, Any]:
    try:
        body = json.loads(contents)
    except ValueError as exc:
        raise RequestError(str(exc)) from exc
    if not isinstance(body, dict):
        raise RequestError("request body must be a JSON object")
    return body


def _number(body: dict[str, Any], key: str) -> float:
    value = body.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RequestError(f"field {key!r} must be a number")
    try:
        number = float(value)
    except OverflowError as exc:
        raise RequestError(f"field {key!r} is too large") from exc
    if not math.isfinite(number):
        raise RequestError(f"field {key!r} must be finite")
    return number


def decode_nearest_request(contents: str | bytes) -> tuple[float, float, float]:
    """Return ``(latitude, longitude, radius_nm)`` or raise :class:`RequestError`."""
    body = _decode_object(contents)
    lat = _number(body, "latitude")
    lon = _number(body, "longitude")
    radius = _number(body, "radius")
    if not -90.0 <= lat <= 90.0:
        raise RequestError(f"latitude {lat} out of range [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise RequestError(f"longitude {lon} out of range [-180, 180]")
    if radius <= 0:
        raise RequestError(f"radius {radius} must be positive")
    return lat, lon, radius


def decode_aircraft_info_request(contents: str | bytes) -> str:
    body = _decode_object(contents)
    flight_id = body.get("flightId")
    if not isinstance(flight_id, str):
        raise RequestError("field 'flightId' must be a string")
    return flight_id


def flatten(collection: Any) -> list[MostTrackedFlight]:
    """Keyed collection (or plain list) → list, keeping iteration order."""
    if isinstance(collection, dict):
        return list(collection.values())
    return list(collection or [])


def _exit_process() -> None:
    logging.shutdown()
    os._exit(0)


# ── Dispatcher ───────────────────────────────────────────────────────────
class Dispatcher:
    """Single-session message router (see module docstring)."""

    def __init__(
        self,
        engine: EnrichmentEngine,
        provider: LiveProvider,
        waypoint_reader: Callable[[], list[Waypoint]] = read_waypoints,
        on_terminate: Callable[[], None] = _exit_process,
    ) -> None:
        self.engine = engine
        self.provider = provider
        self.waypoint_reader = waypoint_reader
        self.on_terminate = on_terminate
        self.state = DispatchState.IDLE
        self._handlers: dict[int, Callable[[str | bytes, Replier], None]] = {
            MessageType.NEAREST_AIRCRAFT: self._nearest,
            MessageType.MOST_TRACKED_AIRCRAFT: self._most_tracked,
            MessageType.WAYPOINTS: self._waypoints,
            MessageType.AIRCRAFT_INFO: self._aircraft_info,
        }

    def handle(self, message: Message, replier: Replier) -> None:
        """Process one message; replies go through *replier*."""
        LOG.info("[dispatch] type=%d contents=%r", message.msg_type, message.contents)

        if self.state is DispatchState.TERMINATED:
            LOG.warning("[dispatch] session terminated, dropping type=%d", message.msg_type)
            return

        if message.msg_type == SYSTEM_TERMINATE:
            LOG.info("[dispatch] termination requested")
            self.state = DispatchState.TERMINATED
            self.on_terminate()
            return

        if message.msg_type > SESSION_INIT_THRESHOLD:
            replier.send(MessageType.INIT_ACK, "Init")

        handler = self._handlers.get(message.msg_type)
        if handler is None:
            return

        self.state = DispatchState.DISPATCHING
        try:
            handler(message.contents, replier)
        finally:
            self.state = DispatchState.IDLE

    # ── helpers ───────────────────────────────────────────────────────
    @staticmethod
    def _reply(replier: Replier, code: int, payload: Any) -> None:
        try:
            encoded = json.dumps(payload, allow_nan=False)
        except (TypeError, ValueError) as exc:
            LOG.warning("[dispatch] cannot encode reply %d: %s", code, exc)
            replier.send(code, f"Error formatting response: {exc}")
            return
        replier.send(code, encoded)

    # ── handlers ──────────────────────────────────────────────────────
    def _nearest(self, contents: str | bytes, replier: Replier) -> None:
        code = MessageType.NEAREST_AIRCRAFT_RESPONSE
        try:
            lat, lon, radius_nm = decode_nearest_request(contents)
        except RequestError as exc:
            replier.send(code, f"Error parsing request body: {exc}")
            return

        zone = self.provider.bounds_from_point(lat, lon, radius_nm * NM_TO_METERS)
        try:
            flights = self.provider.get_flights_in_zone(zone)
        except ProviderError as exc:
            LOG.warning("[nearest] zone query failed: %s", exc)
            flights = {}

        self._reply(replier, code, self.engine.format_nearest(flights, lat, lon))

    def _most_tracked(self, contents: str | bytes, replier: Replier) -> None:
        code = MessageType.MOST_TRACKED_AIRCRAFT_RESPONSE
        try:
            board = self.provider.get_most_tracked()
        except ProviderError as exc:
            LOG.warning("[most-tracked] query failed: %s", exc)
            board = {}

        self._reply(replier, code, self.engine.format_most_tracked(flatten(board)))

    def _waypoints(self, contents: str | bytes, replier: Replier) -> None:
        self._reply(
            replier,
            MessageType.WAYPOINTS_RESPONSE,
            {"waypoints": self.waypoint_reader()},
        )

    def _aircraft_info(self, contents: str | bytes, replier: Replier) -> None:
        code = MessageType.AIRCRAFT_INFO_RESPONSE
        try:
            flight_id = decode_aircraft_info_request(contents)
        except RequestError as exc:
            replier.send(code, f"Error parsing request body: {exc}")
            return

        LOG.info("[info] flight %s", flight_id)
        self._reply(replier, code, self.engine.aircraft_info(flight_id))


# ── Session: FIFO queue consumer ─────────────────────────────────────────
def _fatal_exit(exc: BaseException) -> None:
    logging.shutdown()
    os._exit(1)


class SessionClosedError(RuntimeError):
    """The session stopped after a fatal error; no more messages run."""


class Session:
    """
    Run a :class:`Dispatcher` on one worker thread fed by a FIFO queue.

    ``submit`` returns a future resolving to the replies of that message.
    A :class:`CatalogLoadError` is fatal: the future fails, the worker stops
    and *on_fatal* is called (default: exit with status 1). Anything queued
    behind it, or submitted later, fails with :class:`SessionClosedError`.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        on_fatal: Callable[[BaseException], None] = _fatal_exit,
    ) -> None:
        self.dispatcher = dispatcher
        self.on_fatal = on_fatal
        self._queue: queue.Queue[tuple[Message, Future] | None] = queue.Queue()
        self._lock = threading.Lock()
        self._dead: BaseException | None = None
        self._worker = threading.Thread(target=self._run, name="dispatch", daemon=True)
        self._worker.start()

    @property
    def state(self) -> DispatchState:
        return self.dispatcher.state

    def submit(self, message: Message) -> "Future[list[Reply]]":
        fut: Future[list[Reply]] = Future()
        with self._lock:
            if self._dead is None:
                self._queue.put((message, fut))
                return fut
        fut.set_exception(SessionClosedError(f"session stopped: {self._dead}"))
        return fut

    def close(self, timeout: float | None = 5.0) -> None:
        self._queue.put(None)
        self._worker.join(timeout)

    def _shut_down(self, exc: BaseException) -> None:
        with self._lock:
            self._dead = exc
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is not None and item[1].set_running_or_notify_cancel():
                item[1].set_exception(SessionClosedError(f"session stopped: {exc}"))

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is None:
                break
            message, fut = item
            if not fut.set_running_or_notify_cancel():
                continue

            replies = ReplyCollector()
            try:
                self.dispatcher.handle(message, replies)
            except CatalogLoadError as exc:
                LOG.critical("[session] aircraft catalog unusable, stopping: %s", exc)
                fut.set_exception(exc)
                self._shut_down(exc)
                self.on_fatal(exc)
                break
            except Exception as exc:
                LOG.error("[session] handler crashed: %s", exc, exc_info=True)
                fut.set_exception(exc)
                continue
            fut.set_result(replies.sent)


__all__ = [
    "DispatchState",
    "Dispatcher",
    "Message",
    "MessageType",
    "Reply",
    "ReplyCollector",
    "RequestError",
    "SESSION_INIT_THRESHOLD",
    "SYSTEM_TERMINATE",
    "Session",
    "SessionClosedError",
]
