"""
tests/integration/
~~~~~~~~~~~~~~~~~~
Integration tests that call the real Flightradar24 endpoints.

These tests are SKIPPED by default. To run them:

    INTEGRATION_TESTS=1 pytest tests/integration/ -v

Flightradar24 throttles and sometimes blocks anonymous clients; keep these
out of CI.
"""
