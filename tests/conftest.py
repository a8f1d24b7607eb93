"""
Pytest configuration and fixtures for the test suite.
"""
import pytest
import os
import sys

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from model_reconciler.cache import TTLCache
from model_reconciler.config import Settings

from tests.fixtures.source_payloads import CONFIG_MODEL_LIST, write_config


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    """TTL cache driven by the fake clock."""
    return TTLCache(clock=clock)


@pytest.fixture
def config_file(tmp_path):
    """Model-list YAML with direct, local, wildcard and catalog-less entries."""
    return write_config(tmp_path / "config.yaml", CONFIG_MODEL_LIST)


@pytest.fixture
def settings(config_file):
    """Settings with short timeouts and the default three leaderboard categories."""
    return Settings(
        config_path=config_file,
        source_timeout=5.0,
        arena_timeout=5.0,
        cache_sweep_interval=0,
    )
