"""Unit tests for the hash-field store accessors."""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
import redis.asyncio as redis

from geocache.cache.store import MemoryFieldStore, RedisFieldStore
from geocache.exceptions import SerializationError


class TestRedisFieldStore:
    """Test the Redis accessor against a mocked client."""

    @pytest.fixture
    def store(self, redis_mock):
        """Create a store with the mock client."""
        return RedisFieldStore(client=redis_mock)

    def test_hash_names(self, redis_mock):
        """Hash names are prefixed only when a namespace is set."""
        assert RedisFieldStore(client=redis_mock).hash_name("features") == "features"
        assert (
            RedisFieldStore(namespace="koop", client=redis_mock).hash_name("metadata")
            == "koop:metadata"
        )

    @pytest.mark.asyncio
    async def test_set_field_serializes_json(self, store, redis_mock):
        """Test that set_field writes JSON text with HSET."""
        value = [{"type": "Feature", "properties": {"name": "서울"}}]

        await store.set_field("features", "key", value)

        redis_mock.hset.assert_awaited_once()
        args = redis_mock.hset.call_args[0]
        assert args[0] == "features"
        assert args[1] == "key"
        assert json.loads(args[2]) == value
        assert "서울" in args[2]  # ensure_ascii=False

    @pytest.mark.asyncio
    async def test_set_field_if_absent(self, store, redis_mock):
        """Test set_field_if_absent through HSETNX."""
        redis_mock.hsetnx.return_value = False

        assert await store.set_field_if_absent("features", "key", []) is False
        redis_mock.hsetnx.assert_awaited_once_with("features", "key", "[]")

    @pytest.mark.asyncio
    async def test_get_field_deserializes(self, store, redis_mock):
        """Test that get_field parses the stored JSON."""
        redis_mock.hget.return_value = '{"name": "Test"}'

        assert await store.get_field("metadata", "key") == {"name": "Test"}
        redis_mock.hget.assert_awaited_once_with("metadata", "key")

    @pytest.mark.asyncio
    async def test_get_missing_field_returns_none(self, store, redis_mock):
        """Test get_field on a missing field."""
        redis_mock.hget.return_value = None

        assert await store.get_field("metadata", "key") is None

    @pytest.mark.asyncio
    async def test_get_malformed_field(self, store, redis_mock):
        """Test get_field on malformed JSON."""
        redis_mock.hget.return_value = "{broken"

        with pytest.raises(SerializationError) as exc_info:
            await store.get_field("metadata", "key")

        assert exc_info.value.data["field"] == "metadata"
        assert exc_info.value.data["resource_key"] == "key"
        assert isinstance(exc_info.value.__cause__, json.JSONDecodeError)

    @pytest.mark.asyncio
    async def test_field_exists(self, store, redis_mock):
        """Test field_exists through HEXISTS."""
        redis_mock.hexists.return_value = True

        assert await store.field_exists("key", "features") is True
        redis_mock.hexists.assert_awaited_once_with("features", "key")

    @pytest.mark.asyncio
    async def test_delete_field(self, store, redis_mock):
        """Test delete_field through HDEL."""
        redis_mock.hdel.return_value = 0

        assert await store.delete_field("key", "metadata") is False
        redis_mock.hdel.assert_awaited_once_with("metadata", "key")

    @pytest.mark.asyncio
    async def test_namespace_applied_to_commands(self, redis_mock):
        """Test that commands use the namespaced hash name."""
        store = RedisFieldStore(namespace="koop", client=redis_mock)

        await store.field_exists("key", "features")

        redis_mock.hexists.assert_awaited_once_with("koop:features", "key")

    @pytest.mark.asyncio
    async def test_connection_error_propagates(self, store, redis_mock):
        """Transport errors are logged and re-raised unchanged."""
        error = redis.ConnectionError("Connection refused")
        redis_mock.hget.side_effect = error

        with pytest.raises(redis.ConnectionError) as exc_info:
            await store.get_field("features", "key")

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_transport_error_logged_with_context(self, store, redis_mock):
        """Test the structured context logged for a transport error."""
        redis_mock.hexists.side_effect = redis.TimeoutError("Timeout reading")
        store.logger = MagicMock()

        with pytest.raises(redis.TimeoutError):
            await store.field_exists("parcels", "features")

        store.logger.error.assert_called_once()
        context = store.logger.error.call_args.kwargs
        assert context["error_type"] == "TimeoutError"
        assert context["operation"] == "HEXISTS"
        assert context["resource_key"] == "parcels"
        assert context["field"] == "features"

    @pytest.mark.asyncio
    async def test_response_error_propagates(self, store, redis_mock):
        """Test that Redis response errors propagate."""
        redis_mock.hset.side_effect = redis.ResponseError("WRONGTYPE")

        with pytest.raises(redis.ResponseError):
            await store.set_field("features", "key", [])

    @pytest.mark.asyncio
    async def test_connect_pings(self, store, redis_mock):
        """Test that connect pings the server."""
        await store.connect()

        redis_mock.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close(self, store, redis_mock):
        """Test closing the client."""
        await store.close()

        redis_mock.aclose.assert_awaited_once()


class TestMemoryFieldStore:
    """Test the in-memory accessor."""

    @pytest.mark.asyncio
    async def test_round_trip_and_missing(self, memory_store):
        """Test set, get and missing lookups."""
        await memory_store.set_field("metadata", "key", {"name": "Test"})

        assert await memory_store.get_field("metadata", "key") == {"name": "Test"}
        assert await memory_store.get_field("metadata", "other") is None
        assert await memory_store.get_field("features", "key") is None

    @pytest.mark.asyncio
    async def test_values_are_stored_as_json_text(self, memory_store):
        """Test that values are stored as JSON text."""
        value = {"nested": {"list": [1, 2]}}
        await memory_store.set_field("metadata", "key", value)

        value["nested"]["list"].append(3)

        assert memory_store._hashes["metadata"]["key"] == '{"nested": {"list": [1, 2]}}'

    @pytest.mark.asyncio
    async def test_exists_and_delete(self, memory_store):
        """Test field_exists and delete_field."""
        await memory_store.set_field("features", "key", [])

        assert await memory_store.field_exists("key", "features") is True
        assert await memory_store.field_exists("key", "metadata") is False
        assert await memory_store.delete_field("key", "features") is True
        assert await memory_store.delete_field("key", "features") is False
        assert await memory_store.field_exists("key", "features") is False

    @pytest.mark.asyncio
    async def test_set_field_if_absent(self, memory_store):
        """Test set_field_if_absent through HSETNX."""
        assert await memory_store.set_field_if_absent("features", "key", [1]) is True
        assert await memory_store.set_field_if_absent("features", "key", [2]) is False
        assert await memory_store.get_field("features", "key") == [1]

    @pytest.mark.asyncio
    async def test_namespace_separates_hashes(self):
        """Test that the namespace prefixes hash names."""
        a = MemoryFieldStore(namespace="a")
        await a.set_field("features", "key", [])

        assert "a:features" in a._hashes
        assert "features" not in a._hashes

    @pytest.mark.asyncio
    async def test_calls_yield_to_event_loop(self, memory_store):
        """Other tasks run between the check and the write."""
        order = []

        async def writer():
            order.append("check")
            await memory_store.field_exists("key", "features")
            order.append("write")

        async def other():
            order.append("other")

        await asyncio.gather(writer(), other())

        assert order == ["check", "other", "write"]

    @pytest.mark.asyncio
    async def test_ping_and_close(self, memory_store):
        """Test ping before and after close."""
        assert await memory_store.ping() is True

        await memory_store.close()

        assert await memory_store.ping() is False
