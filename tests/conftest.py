"""
Shared test configuration and fixtures for dweb-dns tests.

Provides a resolver wired to the fake HTTP session from test_helpers and an
event recorder.
"""

import pytest

from dweb.dns.config import Settings
from dweb.dns.resolver import DWebDNS
from tests.test_helpers import DOH_HOST, FakeSession


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def settings() -> Settings:
    return Settings(dns_host=DOH_HOST, dns_port=443, dns_path="/dns-query")


@pytest.fixture
def resolver(session, settings) -> DWebDNS:
    return DWebDNS(session, settings=settings)


@pytest.fixture
def events(resolver):
    """Records every event emitted by the resolver as (event, payload)."""
    recorded = []
    for event in ("resolved", "failed", "cache-flushed"):
        resolver.on(event, lambda payload, event=event: recorded.append((event, payload)))
    return recorded
