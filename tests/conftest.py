from __future__ import annotations

from typing import Any

import pytest

from fakes import SAMPLE_CATALOG, FakeClock, FakeResponse, FakeSession
from iarouter.models.catalog import ModelDiscovery


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_discovery(clock: FakeClock):
    def _make(*responses: Any, ttl: float = 3600) -> ModelDiscovery:
        return ModelDiscovery(
            api_key="sk-test",
            base_url="https://catalog.test/api/v1",
            ttl=ttl,
            timeout=5,
            session=FakeSession(*responses),
            clock=clock,
        )

    return _make


@pytest.fixture
def sample_discovery(make_discovery) -> ModelDiscovery:
    return make_discovery(FakeResponse(200, SAMPLE_CATALOG))
