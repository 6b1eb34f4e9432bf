"""
Tests for storage adapters.
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock

from tokenmanager import TokenManager, StorageRecord
from tokenmanager.storage import (
    CallbackStorageAdapter,
    MemoryStorageAdapter,
    RedisStorageAdapter,
    RedisStorageConfig,
    create_redis_storage,
)
from tokenmanager.storage.distributed import REPLACE_IF_MATCHES_SCRIPT


IDENTIFIER = "user-7|192.168.1.2|443"
REDIRECT_URI = "https://client.example.com/cb"


class TestStorageRecord:
    """Test the stored record type"""

    def test_freshness(self):
        """Fresh strictly before created_at + expires_in"""
        record = StorageRecord(code2="c", created_at=1000, expires_in=60)
        assert record.expires_at == 1060
        assert record.is_fresh(1059)
        assert not record.is_fresh(1060)

    def test_exchange_code_flag(self):
        """Records without code1 are exchange codes"""
        assert StorageRecord(code2="c", created_at=0, expires_in=1).is_exchange_code
        assert not StorageRecord(code1="a", code2="c", created_at=0, expires_in=1).is_exchange_code

    def test_json(self):
        """JSON form round-trips, including user data"""
        record = StorageRecord(code1="a", code2="b", created_at=5, expires_in=10, user_data={"k": [1, 2]})
        assert StorageRecord.from_json(record.to_json()) == record

    def test_camel_case_mapping(self):
        """Records written with camelCase field names are readable"""
        record = StorageRecord.from_dict({
            "code1": None,
            "code2": "b",
            "createdAt": 100,
            "expiresIn": 3600,
            "userData": "ud",
        })
        assert record == StorageRecord(code2="b", created_at=100, expires_in=3600, user_data="ud")


class TestMemoryStorageAdapter:
    """Test in-memory storage"""

    @pytest.mark.asyncio
    async def test_store_and_retrieve(self):
        """Stored records come back; unknown keys give None"""
        storage = MemoryStorageAdapter()
        assert await storage.store("k1", "a", "b", 100, 60, {"x": 1}) is True

        record = await storage.retrieve("k1")
        assert record == StorageRecord(code1="a", code2="b", created_at=100, expires_in=60, user_data={"x": 1})
        assert await storage.retrieve("missing") is None

    @pytest.mark.asyncio
    async def test_store_overwrites(self):
        """Only the latest record per key is kept"""
        storage = MemoryStorageAdapter()
        await storage.store("k1", "a", "b", 100, 60)
        await storage.store("k1", "c", "d", 200, 60)

        assert (await storage.retrieve("k1")).code2 == "d"
        assert await storage.count() == 1

    @pytest.mark.asyncio
    async def test_retrieve_returns_copy(self):
        """Mutating a retrieved record does not change storage"""
        storage = MemoryStorageAdapter()
        await storage.store("k1", "a", "b", 100, 60)

        record = await storage.retrieve("k1")
        record.created_at = 0
        record.code2 = "tampered"

        stored = await storage.retrieve("k1")
        assert stored.created_at == 100
        assert stored.code2 == "b"

    @pytest.mark.asyncio
    async def test_replace_conditional(self):
        """Replace succeeds only against the expected code2"""
        storage = MemoryStorageAdapter()
        await storage.store("k1", "a", "b", 100, 60)

        assert await storage.replace("k1", "wrong", "c", "d", 200, 60) is False
        assert await storage.replace("k1", "b", "c", "d", 200, 60) is True
        assert await storage.replace("k1", "b", "e", "f", 300, 60) is False
        assert await storage.replace("missing", "b", "e", "f", 300, 60) is False
        assert (await storage.retrieve("k1")).code2 == "d"

    @pytest.mark.asyncio
    async def test_concurrent_refresh_single_winner(self):
        """Concurrent refreshes of one token yield exactly one new pair"""
        storage = MemoryStorageAdapter()
        manager = TokenManager.new(storage)
        tokens = await manager.generate_access_token(IDENTIFIER)

        results = await asyncio.gather(*[
            manager.refresh(tokens.refresh_token) for _ in range(5)
        ])
        winners = [result for result in results if result is not None]
        assert len(winners) == 1
        assert (await manager.verify(winners[0].access_token)).valid

    @pytest.mark.asyncio
    async def test_concurrent_exchange_single_winner(self):
        """Concurrent redemptions of one code yield exactly one new pair"""
        storage = MemoryStorageAdapter()
        manager = TokenManager.new(storage)
        code = await manager.generate_exchange_code(IDENTIFIER, REDIRECT_URI)

        results = await asyncio.gather(*[
            manager.exchange(code, REDIRECT_URI) for _ in range(5)
        ])
        assert len([result for result in results if result is not None]) == 1

    @pytest.mark.asyncio
    async def test_cleanup_and_statistics(self):
        """Cleanup drops stale records only"""
        storage = MemoryStorageAdapter()
        await storage.store("fresh", "a", "b", 1000, 60)
        await storage.store("stale", None, "c", 900, 60)

        stats = await storage.get_statistics()
        assert stats["total_records"] == 2
        assert stats["exchange_codes"] == 1

        assert await storage.cleanup(now=1000) == 1
        assert await storage.retrieve("stale") is None
        assert await storage.retrieve("fresh") is not None

        assert await storage.clear() == 1
        assert await storage.count() == 0


class TestCallbackStorageAdapter:
    """Test the adapter over plain callables"""

    @pytest.mark.asyncio
    async def test_async_callbacks_full_flow(self):
        """Async store/retrieve callbacks drive the whole lifecycle"""
        backing = {}

        async def store(key, code1, code2, created_at, expires_in, user_data):
            backing[key] = {
                "code1": code1,
                "code2": code2,
                "createdAt": created_at,
                "expiresIn": expires_in,
                "userData": user_data,
            }
            return True

        async def retrieve(key):
            return backing.get(key)

        manager = TokenManager.from_callbacks(store, retrieve)
        code = await manager.generate_exchange_code(IDENTIFIER, REDIRECT_URI, user_data={"id": 7})
        tokens = await manager.exchange(code, REDIRECT_URI)
        assert tokens is not None

        valid, user_data = await manager.verify(tokens.access_token)
        assert valid is True
        assert user_data == {"id": 7}

        rotated = await manager.refresh(tokens.refresh_token)
        assert rotated is not None
        assert await manager.refresh(tokens.refresh_token) is None

    @pytest.mark.asyncio
    async def test_sync_callbacks(self):
        """Plain functions are accepted as callbacks"""
        backing = {}

        def store(key, *fields):
            backing[key] = StorageRecord(
                code1=fields[0], code2=fields[1], created_at=fields[2],
                expires_in=fields[3], user_data=fields[4],
            )
            return True

        adapter = CallbackStorageAdapter(store, backing.get)
        assert await adapter.store("k", "a", "b", 1, 2, None) is True
        assert (await adapter.retrieve("k")).code1 == "a"
        assert await adapter.retrieve("nope") is None

    @pytest.mark.asyncio
    async def test_replace_callback_used(self):
        """A supplied replace callback takes over rotation"""
        replace = AsyncMock(return_value=False)
        adapter = CallbackStorageAdapter(lambda *a: True, lambda k: None, replace)

        assert await adapter.replace("k", "old", "a", "b", 1, 2, None) is False
        replace.assert_awaited_once_with("k", "old", "a", "b", 1, 2, None)

    @pytest.mark.asyncio
    async def test_from_callbacks_forwards_replace(self):
        """The manager shortcut routes rotation through the replace callback"""
        backing = {}

        def store(key, code1, code2, created_at, expires_in, user_data):
            backing[key] = StorageRecord(
                code1=code1, code2=code2, created_at=created_at,
                expires_in=expires_in, user_data=user_data,
            )
            return True

        replace = AsyncMock(return_value=False)
        manager = TokenManager.from_callbacks(store, backing.get, replace_callback=replace)
        tokens = await manager.generate_access_token(IDENTIFIER)

        assert await manager.refresh(tokens.refresh_token) is None
        replace.assert_awaited_once()
        assert replace.call_args.args[1] == tokens.refresh_token

    @pytest.mark.asyncio
    async def test_bad_record_type(self):
        """Unsupported retrieve results raise TypeError"""
        adapter = CallbackStorageAdapter(lambda *a: True, lambda k: 42)
        with pytest.raises(TypeError):
            await adapter.retrieve("k")

    def test_requires_callables(self):
        """Non-callable callbacks are rejected"""
        with pytest.raises(TypeError):
            CallbackStorageAdapter(None, lambda k: None)


class TestRedisStorageAdapter:
    """Test the Redis adapter against a mocked client"""

    @pytest.fixture
    def client(self):
        client = AsyncMock()
        client.set.return_value = True
        client.get.return_value = None
        client.eval.return_value = 1
        return client

    @pytest.mark.asyncio
    async def test_store_writes_json(self, client):
        """Records are written as JSON under the prefixed key"""
        adapter = RedisStorageAdapter(RedisStorageConfig(key_prefix="t:"), client=client)

        assert await adapter.store("k1", "a", "b", 100, 60, {"x": 1}) is True
        client.set.assert_awaited_once()
        args, kwargs = client.set.call_args
        assert args[0] == "t:k1"
        assert json.loads(args[1]) == {
            "code1": "a", "code2": "b", "created_at": 100, "expires_in": 60, "user_data": {"x": 1},
        }
        assert kwargs == {}

    @pytest.mark.asyncio
    async def test_store_with_grace_ttl(self, client):
        """A grace period sets a physical expiry past logical staleness"""
        adapter = RedisStorageAdapter(RedisStorageConfig(ttl_grace_sec=30), client=client)

        await adapter.store("k1", None, "b", 100, 60)
        assert client.set.call_args.kwargs == {"ex": 90}

    @pytest.mark.asyncio
    async def test_retrieve(self, client):
        """Stored JSON is decoded into a record"""
        record = StorageRecord(code1="a", code2="b", created_at=1, expires_in=2)
        client.get.return_value = record.to_json()
        adapter = RedisStorageAdapter(client=client)

        assert await adapter.retrieve("k1") == record
        client.get.assert_awaited_once_with("tokenmanager:record:k1")

    @pytest.mark.asyncio
    async def test_retrieve_missing(self, client):
        """Missing keys give None"""
        adapter = RedisStorageAdapter(client=client)
        assert await adapter.retrieve("k1") is None

    @pytest.mark.asyncio
    async def test_replace_uses_script(self, client):
        """Replace runs the compare-and-set script atomically"""
        adapter = RedisStorageAdapter(client=client)

        assert await adapter.replace("k1", "old", "a", "b", 100, 60, None) is True
        args = client.eval.call_args.args
        assert args[0] == REPLACE_IF_MATCHES_SCRIPT
        assert args[1:4] == (1, "tokenmanager:record:k1", "old")
        assert json.loads(args[4])["code2"] == "b"
        assert args[5] == 0

        client.eval.return_value = 0
        assert await adapter.replace("k1", "old", "a", "b", 100, 60, None) is False

    @pytest.mark.asyncio
    async def test_errors_propagate(self, client):
        """Client failures are not swallowed"""
        client.get.side_effect = ConnectionError("down")
        adapter = RedisStorageAdapter(client=client)

        with pytest.raises(ConnectionError):
            await adapter.retrieve("k1")

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self, client):
        """close() leaves a caller-owned client alone"""
        adapter = RedisStorageAdapter(client=client)
        await adapter.close()
        client.aclose.assert_not_awaited()

    def test_factory(self):
        """Factory builds the configuration"""
        adapter = create_redis_storage(["redis.internal:6380"], password="pw", db=2, key_prefix="x:")
        assert adapter.config.addresses == ["redis.internal:6380"]
        assert adapter.config.password == "pw"
        assert adapter.config.db == 2
        assert adapter.config.key_prefix == "x:"
