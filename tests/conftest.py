"""Shared test fixtures and configuration."""

import copy
import os
from unittest.mock import AsyncMock, patch

import pytest
import redis.asyncio as redis

from geocache.cache.geojson_cache import GeoJSONCache
from geocache.cache.models import CacheConfig
from geocache.cache.store import MemoryFieldStore

SAMPLE_GEOJSON = {
    "type": "FeatureCollection",
    "metadata": {"name": "Test", "description": "Test"},
    "features": [
        {
            "type": "Feature",
            "properties": {"key": "value"},
            "geometry": {"foo": "bar"},
        }
    ],
}


@pytest.fixture
def geojson():
    """A fresh copy of the sample feature collection."""
    return copy.deepcopy(SAMPLE_GEOJSON)


@pytest.fixture
def memory_store():
    """Create an empty in-memory field store."""
    return MemoryFieldStore()


@pytest.fixture
def cache(memory_store):
    """Create a cache backed by the in-memory store."""
    return GeoJSONCache(CacheConfig(), store=memory_store)


@pytest.fixture
def strict_cache(memory_store):
    """Create a cache that inserts with set-if-absent semantics."""
    return GeoJSONCache(CacheConfig(strict_insert=True), store=memory_store)


@pytest.fixture
def redis_mock():
    """Create a mock Redis client covering the hash commands in use."""
    mock = AsyncMock(spec=redis.Redis)
    mock.ping = AsyncMock(return_value=True)
    mock.hset = AsyncMock(return_value=1)
    mock.hsetnx = AsyncMock(return_value=True)
    mock.hget = AsyncMock(return_value=None)
    mock.hexists = AsyncMock(return_value=False)
    mock.hdel = AsyncMock(return_value=1)
    mock.aclose = AsyncMock()
    return mock


# Test markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as requiring a running Redis server"
    )


# Environment setup
@pytest.fixture(autouse=True)
def setup_test_environment():
    """Setup test environment variables."""
    test_env = {"LOG_LEVEL": "DEBUG"}

    with patch.dict(os.environ, test_env):
        yield
