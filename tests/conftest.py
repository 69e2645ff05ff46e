"""
Pytest configuration and fixtures.

Provides fake cache clocks, recording fetchers and sample API bodies.
"""

import json

import pytest

from api import cache as cache_module
from api.cache import TTLCache


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingFetcher:
    """Fetcher stub returning a fixed (status, body) and recording the params it got."""

    def __init__(self, status_code: int = 200, body: str = "{}") -> None:
        self.status_code = status_code
        self.body = body
        self.calls = []

    def __call__(self, params):
        self.calls.append(params)
        return self.status_code, self.body


@pytest.fixture(autouse=True)
def clear_user_caches():
    """Each test starts with empty module-level user caches."""
    cache_module.clear()
    yield
    cache_module.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ttl_cache(clock) -> TTLCache:
    return TTLCache(clock=clock)


@pytest.fixture
def two_match_body() -> str:
    """Successful response with ranks 2 and 1 listed out of order."""
    return json.dumps(
        {
            "matches": [
                {
                    "rank": 2,
                    "matched_name": "Aluminium sheet",
                    "metric": {"value": 8.6, "unit": "kg CO2e/kg"},
                    "year": "2021",
                    "geography": "EU",
                    "source": "Ecoinvent",
                    "source_link": "https://example.org/al",
                },
                {
                    "rank": 1,
                    "matched_name": "Steel sheet",
                    "metric": {"value": 2.3, "unit": "kg CO2e/kg"},
                    "year": "2022",
                    "geography": "Global",
                    "source": "World Steel",
                    "source_link": "https://example.org/steel",
                    "conversion_info": "Converted from t to kg",
                },
            ],
            "explanation": "Steel sheet is the closest match.",
        }
    )


@pytest.fixture
def recording_fetcher(two_match_body) -> RecordingFetcher:
    return RecordingFetcher(200, two_match_body)


@pytest.fixture
def make_fetcher():
    """Factory for fetcher stubs with a given status and body."""
    return RecordingFetcher
