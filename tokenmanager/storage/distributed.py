"""
Distributed storage adapter for the token manager.

This module provides a Redis-backed adapter suitable for deployments with
several manager instances sharing one credential store. Rotation uses a Lua
script so the compare and the overwrite happen as one Redis operation.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as redis

from ..core.types import StorageRecord
from .adapter import StorageAdapter


logger = logging.getLogger(__name__)


# Replace the record at KEYS[1] with ARGV[2] only if its code2 equals ARGV[1].
# ARGV[3] is the physical TTL in seconds, 0 for none.
REPLACE_IF_MATCHES_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if not current then
    return 0
end
local record = cjson.decode(current)
if record['code2'] ~= ARGV[1] then
    return 0
end
local ttl = tonumber(ARGV[3])
if ttl > 0 then
    redis.call('SET', KEYS[1], ARGV[2], 'EX', ttl)
else
    redis.call('SET', KEYS[1], ARGV[2])
end
return 1
"""


class RedisStorageConfig:
    """Configuration for Redis-backed storage."""

    def __init__(self,
                 addresses: List[str] = None,
                 password: Optional[str] = None,
                 db: int = 0,
                 ssl: bool = False,
                 connection_pool_kwargs: Dict[str, Any] = None,
                 key_prefix: str = "tokenmanager:record:",
                 ttl_grace_sec: Optional[int] = None):
        """
        Initialize Redis storage configuration.

        Args:
            addresses: List of Redis addresses (host:port); the first is used
            password: Redis password
            db: Redis database number
            ssl: Enable SSL connection
            connection_pool_kwargs: Additional client arguments
            key_prefix: Prefix for Redis keys
            ttl_grace_sec: When set, records physically expire this many
                seconds after they turn stale. None keeps records until
                overwritten, so refresh of a stale record keeps working.
        """
        self.addresses = addresses or ["localhost:6379"]
        self.password = password
        self.db = db
        self.ssl = ssl
        self.connection_pool_kwargs = connection_pool_kwargs or {}
        self.key_prefix = key_prefix
        self.ttl_grace_sec = ttl_grace_sec


class RedisStorageAdapter(StorageAdapter):
    """
    Redis storage adapter.

    Records are stored as JSON strings under ``key_prefix + lookup_key``.
    """

    def __init__(self, config: Optional[RedisStorageConfig] = None, client: Optional[redis.Redis] = None):
        """
        Initialize Redis storage adapter.

        Args:
            config: Redis storage configuration
            client: Pre-built client; when given no connection is opened here
        """
        self.config = config or RedisStorageConfig()
        self._redis: Optional[redis.Redis] = client
        self._owns_client = client is None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Connect to Redis."""
        async with self._lock:
            if self._redis is not None:
                return

            host, port = self.config.addresses[0].split(":")
            client = redis.Redis(
                host=host,
                port=int(port),
                password=self.config.password,
                db=self.config.db,
                ssl=self.config.ssl,
                decode_responses=True,
                **self.config.connection_pool_kwargs
            )
            try:
                await client.ping()
            except Exception as e:
                logger.error(f"Failed to connect to Redis at {host}:{port}: {e}")
                await client.aclose()
                raise

            self._redis = client
            logger.info(f"Connected to Redis at {host}:{port}")

    async def close(self) -> None:
        """Disconnect from Redis."""
        if self._redis is not None and self._owns_client:
            await self._redis.aclose()
            self._redis = None
            logger.info("Disconnected from Redis")

    def _get_key(self, key: str) -> str:
        """Get Redis key for a lookup key."""
        return f"{self.config.key_prefix}{key}"

    def _physical_ttl(self, expires_in: int) -> int:
        if self.config.ttl_grace_sec is None:
            return 0
        return max(expires_in + self.config.ttl_grace_sec, 1)

    async def _client(self) -> redis.Redis:
        if self._redis is None:
            await self.connect()
        return self._redis

    async def store(self, key, code1, code2, created_at, expires_in, user_data=None) -> bool:
        """Persist a record under a lookup key."""
        client = await self._client()
        record = StorageRecord(
            code1=code1,
            code2=code2,
            created_at=created_at,
            expires_in=expires_in,
            user_data=user_data,
        )
        ttl = self._physical_ttl(expires_in)
        try:
            if ttl:
                result = await client.set(self._get_key(key), record.to_json(), ex=ttl)
            else:
                result = await client.set(self._get_key(key), record.to_json())
        except Exception as e:
            logger.error(f"Failed to store record for key {key}: {e}")
            raise

        logger.debug(f"Stored record for key {key}")
        return bool(result)

    async def retrieve(self, key: str) -> Optional[StorageRecord]:
        """Fetch the current record for a lookup key."""
        client = await self._client()
        try:
            value = await client.get(self._get_key(key))
        except Exception as e:
            logger.error(f"Failed to retrieve record for key {key}: {e}")
            raise

        if value is None:
            return None
        return StorageRecord.from_json(value)

    async def replace(self, key, expected_code2, code1, code2, created_at, expires_in, user_data=None) -> bool:
        """Atomically overwrite a record whose code2 still matches."""
        client = await self._client()
        record = StorageRecord(
            code1=code1,
            code2=code2,
            created_at=created_at,
            expires_in=expires_in,
            user_data=user_data,
        )
        try:
            result = await client.eval(
                REPLACE_IF_MATCHES_SCRIPT,
                1,
                self._get_key(key),
                expected_code2,
                record.to_json(),
                self._physical_ttl(expires_in),
            )
        except Exception as e:
            logger.error(f"Failed to replace record for key {key}: {e}")
            raise

        return int(result) == 1


def create_redis_storage(addresses: List[str] = None,
                         password: Optional[str] = None,
                         db: int = 0,
                         **kwargs) -> RedisStorageAdapter:
    """
    Create a Redis storage adapter.

    Args:
        addresses: List of Redis addresses
        password: Redis password
        db: Redis database number
        **kwargs: Additional configuration options

    Returns:
        RedisStorageAdapter instance
    """
    config = RedisStorageConfig(
        addresses=addresses,
        password=password,
        db=db,
        **kwargs
    )
    return RedisStorageAdapter(config)
