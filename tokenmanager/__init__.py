"""
tokenmanager Python Package

Issues, verifies, exchanges and refreshes short-lived bearer credentials
(access tokens, refresh tokens and one-time exchange codes) over a pluggable
storage adapter.
"""

__version__ = "0.1.0"

from .core.manager import TokenManager
from .core.config import ManagerConfig
from .core.errors import (
    TokenManagerError,
    ConfigurationError,
    MissingStorageError,
    StorageError,
)
from .core.types import StorageRecord, TokenPair, VerifyResult
from .storage import (
    StorageAdapter,
    CallbackStorageAdapter,
    MemoryStorageAdapter,
    RedisStorageAdapter,
    RedisStorageConfig,
)

__all__ = [
    "TokenManager",
    "ManagerConfig",
    "TokenManagerError",
    "ConfigurationError",
    "MissingStorageError",
    "StorageError",
    "StorageRecord",
    "TokenPair",
    "VerifyResult",
    "StorageAdapter",
    "CallbackStorageAdapter",
    "MemoryStorageAdapter",
    "RedisStorageAdapter",
    "RedisStorageConfig",
]
