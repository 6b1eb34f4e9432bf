"""
Core token manager components.
"""

from .errors import (
    TokenManagerError,
    ConfigurationError,
    MissingStorageError,
    StorageError,
)
from .config import ManagerConfig
from .types import StorageRecord, TokenPair, VerifyResult
from .manager import TokenManager, redirect_bound_secret

__all__ = [
    "TokenManagerError",
    "ConfigurationError",
    "MissingStorageError",
    "StorageError",
    "ManagerConfig",
    "StorageRecord",
    "TokenPair",
    "VerifyResult",
    "TokenManager",
    "redirect_bound_secret",
]
