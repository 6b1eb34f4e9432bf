"""
Storage package for the token manager.

This package provides the storage adapter interface along with callback,
in-memory and Redis-backed implementations.
"""

from .adapter import (
    StorageAdapter,
    CallbackStorageAdapter,
)

from .memory import (
    MemoryStorageAdapter,
    create_memory_storage,
)

from .distributed import (
    RedisStorageConfig,
    RedisStorageAdapter,
    create_redis_storage,
)

__all__ = [
    # Interface
    "StorageAdapter",
    "CallbackStorageAdapter",

    # Memory storage
    "MemoryStorageAdapter",
    "create_memory_storage",

    # Redis storage
    "RedisStorageConfig",
    "RedisStorageAdapter",
    "create_redis_storage",
]
