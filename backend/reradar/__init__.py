"""
reradar
~~~~~~~
Backend for the reRadar flight-tracking app: typed host messages in,
enriched Flightradar24 telemetry out.
"""

__version__ = "0.4.0"
