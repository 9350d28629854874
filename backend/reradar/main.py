"""
main.py – FastAPI host transport
================================

The front end talks to the backend with typed messages; this module carries
them over HTTP on the loopback interface.

Routes
------
* ``POST /messages``   ``{"msgType": int, "contents": str}`` →
  ``{"replies": [{"msgType": int, "contents": str}, …]}``
* ``GET  /healthz``    plain ``ok``
* ``GET  /status.json`` session state + dataset load flags

Every message goes through one :class:`~reradar.dispatcher.Session`, so
requests are handled strictly one at a time in arrival order. The
terminate message stops the server process.
"""

from __future__ import annotations

# ─── Std-lib / third-party ────────────────────────────────────────────
import asyncio
import datetime as dt
import logging
import os
import signal
import sys
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from dateutil import tz
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

# ─── Project modules ──────────────────────────────────────────────────
from .constants import HOST, LOG_LEVEL, PORT
from .dispatcher import Dispatcher, Message, Session
from .enrichment import EnrichmentEngine
from .provider import Flightradar24Client
from .reference_data import ReferenceDatasetStore
from .waypoints import read_waypoints

# ─── Logging ──────────────────────────────────────────────────────────
LOG = logging.getLogger("reradar")

# Project loggers write to stdout next to uvicorn's own output
_handler = logging.StreamHandler(sys.stdout)
_handler.setFormatter(logging.Formatter("%(levelname)s:     %(name)s - %(message)s"))
for _name in ("reradar", "dispatcher", "enrichment", "provider", "reference_data", "waypoints", "extapi"):
    _logger = logging.getLogger(_name)
    _logger.addHandler(_handler)
    _logger.setLevel(LOG_LEVEL)

# ---------------------------------------------------------------------
# Long-lived collaborators
# ---------------------------------------------------------------------

UTC = tz.UTC
UINT32_MAX = 0xFFFF_FFFF

STORE = ReferenceDatasetStore()
PROVIDER = Flightradar24Client()
ENGINE = EnrichmentEngine(STORE, PROVIDER)


def _terminate() -> None:
    """Host asked us to stop: let uvicorn shut down as on Ctrl-C."""
    LOG.info("[app] terminate message received, stopping server")
    os.kill(os.getpid(), signal.SIGTERM)


# ---------------------------------------------------------------------
# Lifespan – one dispatch session per process
# ---------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):  # noqa: N802 – FastAPI naming style
    """Start the dispatch worker; stop it on shutdown."""
    dispatcher = Dispatcher(
        ENGINE,
        PROVIDER,
        waypoint_reader=read_waypoints,
        on_terminate=_terminate,
    )
    app.state.session = Session(dispatcher)
    app.state.started_at = dt.datetime.now(UTC)
    LOG.info("[app] session started")

    yield  # ⇢ application runs here

    app.state.session.close()
    LOG.info("[app] session closed")


app = FastAPI(title="reRadar backend", lifespan=lifespan)


# Health probe --------------------------------------------------------
@app.get("/healthz", response_class=PlainTextResponse)
async def healthz() -> PlainTextResponse:
    """Return HTTP 200 with body “ok” if the app is up."""
    return PlainTextResponse("ok", status_code=200)


@app.get("/status.json")
async def status() -> dict[str, Any]:
    session: Session = app.state.session
    return {
        "state": session.state.value,
        "started_at": app.state.started_at.isoformat(),
        "datasets": {
            "aircraft_types": STORE.aircraft_types_loaded,
            "airlines": STORE.airlines_loaded,
        },
    }


# ---------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------
@app.post("/messages")
async def post_message(body: dict) -> dict[str, Any]:
    """
    Hand one typed message to the session and return its replies.

    ``msgType`` must be an unsigned 32-bit integer; ``contents`` defaults
    to ``""``. A handler crash is reported as HTTP 500.
    """
    msg_type = body.get("msgType")
    contents = body.get("contents", "")
    if isinstance(msg_type, bool) or not isinstance(msg_type, int) or not 0 <= msg_type <= UINT32_MAX:
        raise HTTPException(status_code=422, detail="msgType must be a uint32")
    if not isinstance(contents, str):
        raise HTTPException(status_code=422, detail="contents must be a string")

    session: Session = app.state.session
    fut = session.submit(Message(msg_type, contents))
    try:
        replies = await asyncio.wrap_future(fut)
    except Exception as exc:  # noqa: BLE001 – surfaced to the host as 500
        LOG.error("[app] message type=%d failed: %s", msg_type, exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return {"replies": [{"msgType": r.msg_type, "contents": r.contents} for r in replies]}


def run() -> None:
    """Console entry point: serve on ``$RERADAR_HOST:$RERADAR_PORT``."""
    uvicorn.run(app, host=HOST, port=PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
