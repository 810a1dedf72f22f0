"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import time
from typing import Callable, Generator

import pytest

from memkv.cache.sharded import ShardedKVStore
from memkv.cache.store import KVStore


def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.005) -> bool:
    """Poll predicate until it is true or timeout seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Polling helper for conditions reached by background threads."""
    return _wait_for


# ============================================================================
# KVStore Fixtures
# ============================================================================

@pytest.fixture
def store() -> Generator[KVStore, None, None]:
    """Create a fresh KVStore with no default TTL and no sweeper."""
    s = KVStore(default_ttl=0, sweep_interval=0)
    yield s
    s.close()


@pytest.fixture
def default_ttl_store() -> Generator[KVStore, None, None]:
    """Create a KVStore whose writes expire after 60 seconds by default."""
    s = KVStore(default_ttl=60, sweep_interval=0)
    yield s
    s.close()


@pytest.fixture
def sweeping_store() -> Generator[KVStore, None, None]:
    """Create a KVStore with a fast (5ms) background sweeper."""
    s = KVStore(default_ttl=0, sweep_interval=0.005)
    yield s
    s.close()


@pytest.fixture
def sharded_store() -> Generator[ShardedKVStore, None, None]:
    """Create a ShardedKVStore with 4 shards and no sweeper."""
    s = ShardedKVStore(num_shards=4, default_ttl=0, sweep_interval=0)
    yield s
    s.close()


@pytest.fixture
def snapshot_path(tmp_path):
    """Path for a snapshot file inside the test's temp directory."""
    return tmp_path / "snapshot.json"


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


pytest_plugins = ['pytest_asyncio']
