"""
Shared fixtures for the Snowflake ID Service tests.
"""

import pytest
from fastapi.testclient import TestClient

from snowflake_service.core.const import DEFAULT_EPOCH
from snowflake_service.core.snowflake import SnowflakeGenerator


class FakeClock:
    """
    Simulated wall clock returning milliseconds since the Unix epoch.

    `now` stays fixed until changed. When `hold` is set, the clock returns `now`
    for that many reads and then moves forward by 1ms on every later read.
    """

    def __init__(self, now: int, hold: int = None):
        self.now = now
        self.hold = hold
        self.reads = 0

    def __call__(self) -> int:
        self.reads += 1
        if self.hold is not None and self.reads > self.hold:
            return self.now + (self.reads - self.hold)
        return self.now

    def set_offset(self, offset: int, epoch: int = DEFAULT_EPOCH) -> None:
        self.now = epoch + offset


@pytest.fixture
def clock():
    return FakeClock(DEFAULT_EPOCH + 10)


@pytest.fixture
def generator(clock):
    return SnowflakeGenerator(node_id=1, epoch=DEFAULT_EPOCH, clock=clock)


@pytest.fixture
def client(generator):
    from snowflake_service.main import app
    from snowflake_service.core.generator import get_generator

    app.dependency_overrides[get_generator] = lambda: generator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def shared_generator(clock, monkeypatch):
    """Replace the process-wide generator used by both the trace ID middleware and the endpoints."""
    from snowflake_service.core import generator as generator_module

    shared = SnowflakeGenerator(node_id=1, epoch=DEFAULT_EPOCH, clock=clock, wait_timeout=0.01)
    monkeypatch.setattr(generator_module, "snowflake_generator", shared)
    return shared


@pytest.fixture
def shared_client(shared_generator):
    from snowflake_service.main import app

    with TestClient(app) as test_client:
        yield test_client
