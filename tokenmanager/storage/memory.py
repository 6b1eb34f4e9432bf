"""
In-memory storage adapter for the token manager.

This module provides a coroutine-safe in-memory adapter suitable for
development, tests and single-process deployments.
"""

import asyncio
import logging
import dataclasses
from typing import Any, Dict, Optional

from ..common.utils import constant_time_equals, get_current_timestamp
from ..core.types import StorageRecord
from .adapter import StorageAdapter


logger = logging.getLogger(__name__)


class MemoryStorageAdapter(StorageAdapter):
    """
    In-memory storage adapter.

    Records live in a dictionary guarded by an asyncio lock, which also makes
    ``replace`` atomic with respect to other coroutines on the same loop.
    """

    def __init__(self):
        self._records: Dict[str, StorageRecord] = {}
        self._lock = asyncio.Lock()

    async def store(self, key, code1, code2, created_at, expires_in, user_data=None) -> bool:
        """Persist a record under a lookup key."""
        async with self._lock:
            self._records[key] = StorageRecord(
                code1=code1,
                code2=code2,
                created_at=created_at,
                expires_in=expires_in,
                user_data=user_data,
            )
            logger.debug(f"Stored record for key {key}")
            return True

    async def retrieve(self, key: str) -> Optional[StorageRecord]:
        """Fetch the current record for a lookup key."""
        async with self._lock:
            record = self._records.get(key)
            return dataclasses.replace(record) if record is not None else None

    async def replace(self, key, expected_code2, code1, code2, created_at, expires_in, user_data=None) -> bool:
        """Atomically overwrite a record whose code2 still matches."""
        async with self._lock:
            current = self._records.get(key)
            if current is None or not constant_time_equals(current.code2, expected_code2):
                logger.debug(f"Conditional replace rejected for key {key}")
                return False
            self._records[key] = StorageRecord(
                code1=code1,
                code2=code2,
                created_at=created_at,
                expires_in=expires_in,
                user_data=user_data,
            )
            return True

    async def cleanup(self, now: Optional[int] = None) -> int:
        """
        Remove stale records.

        Args:
            now: Current time in epoch seconds (defaults to the clock)

        Returns:
            Number of records removed
        """
        if now is None:
            now = get_current_timestamp()
        async with self._lock:
            stale_keys = [
                key for key, record in self._records.items()
                if not record.is_fresh(now)
            ]
            for key in stale_keys:
                del self._records[key]

            if stale_keys:
                logger.info(f"Cleaned up {len(stale_keys)} stale records")

            return len(stale_keys)

    async def count(self) -> int:
        """Number of records held."""
        async with self._lock:
            return len(self._records)

    async def clear(self) -> int:
        """
        Remove all records.

        Returns:
            Number of records cleared
        """
        async with self._lock:
            count = len(self._records)
            self._records.clear()
            logger.info(f"Cleared {count} records from memory storage")
            return count

    async def get_statistics(self) -> Dict[str, Any]:
        """Counts of fresh and stale records, split by kind."""
        now = get_current_timestamp()
        async with self._lock:
            stats = {
                "total_records": len(self._records),
                "fresh_records": 0,
                "stale_records": 0,
                "exchange_codes": 0,
            }
            for record in self._records.values():
                if record.is_fresh(now):
                    stats["fresh_records"] += 1
                else:
                    stats["stale_records"] += 1
                if record.is_exchange_code:
                    stats["exchange_codes"] += 1
            return stats


def create_memory_storage() -> MemoryStorageAdapter:
    """Create an in-memory storage adapter."""
    return MemoryStorageAdapter()
