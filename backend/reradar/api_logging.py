"""
api_logging.py
~~~~~~~~~~~~~~
Issue one outbound HTTP request and emit **one concise log line** for it.

Flightradar24 URLs carry long query strings (zone bounds, feed filters);
only the path is logged, the query is reduced to its key names.

Usage example
-------------
>>> from .api_logging import logged_request
>>> with httpx.Client() as cli:
...     resp = logged_request(cli, "get", "https://example.org/feed.js",
...                           params={"bounds": "1,0,0,1"})
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlsplit

LOG = logging.getLogger("extapi")


def _short(url: str, params: dict[str, Any] | None) -> str:
    parts = urlsplit(url)
    keys = sorted(params) if params else []
    if parts.query:
        keys += sorted(kv.split("=", 1)[0] for kv in parts.query.split("&") if kv)
    suffix = f"?{','.join(keys)}" if keys else ""
    return f"{parts.netloc}{parts.path}{suffix}"


def logged_request(
    client: Any,
    method: str,
    url: str,
    *args: Any,
    raise_for_status: bool = True,
    **kwargs: Any,
):
    """
    Send ``client.<method>(url, ...)`` and log verb, target, status, latency.

    Parameters
    ----------
    client:
        ``httpx.Client`` (or anything with the same verb methods).
    raise_for_status:
        *True* ⇒ any 4xx/5xx is re-raised as :class:`httpx.HTTPStatusError`.
        *False* ⇒ the caller inspects the status itself.

    Notes
    -----
    * 2xx/3xx log at *INFO*, 4xx/5xx at *WARNING*.
    * Transport errors log ``FAIL`` at *WARNING* and propagate.
    """
    verb = method.upper()
    target = _short(url, kwargs.get("params"))
    t0 = time.perf_counter()
    try:
        response = getattr(client, method.lower())(url, *args, **kwargs)
    except Exception as exc:  # network error before we get a response
        latency_ms = (time.perf_counter() - t0) * 1000.0
        LOG.warning("FAIL %s %s %.0f ms %s", verb, target, latency_ms, exc)
        raise

    latency_ms = (time.perf_counter() - t0) * 1000.0
    code = response.status_code
    level = logging.WARNING if code >= 400 else logging.INFO
    LOG.log(level, "%s %s → %s (%.0f ms)", verb, target, code, latency_ms)

    if raise_for_status and code >= 400:
        response.raise_for_status()

    return response


__all__ = ["logged_request"]
