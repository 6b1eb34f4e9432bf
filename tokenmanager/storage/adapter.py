"""
Storage adapter interface for the token manager.

The manager never persists anything itself. It talks to storage through a
StorageAdapter, passed to it at construction, so several managers with
independent storage can live in one process.
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from ..common.utils import constant_time_equals
from ..core.types import StorageRecord


logger = logging.getLogger(__name__)


class StorageAdapter(ABC):
    """
    Abstract base class for credential storage.

    One record per lookup key; ``store`` overwrites whatever was there.
    """

    @abstractmethod
    async def store(self,
                    key: str,
                    code1: Optional[str],
                    code2: str,
                    created_at: int,
                    expires_in: int,
                    user_data: Optional[Any] = None) -> bool:
        """
        Persist a record under a lookup key, replacing any prior record.

        Args:
            key: Lookup key
            code1: Access-token digest, or None for exchange codes
            code2: Refresh-token or exchange-code digest
            created_at: Issue time in epoch seconds
            expires_in: Validity in seconds
            user_data: Opaque caller data

        Returns:
            True on success
        """
        pass

    @abstractmethod
    async def retrieve(self, key: str) -> Optional[StorageRecord]:
        """
        Fetch the current record for a lookup key.

        Args:
            key: Lookup key

        Returns:
            StorageRecord if found, None otherwise
        """
        pass

    async def replace(self,
                      key: str,
                      expected_code2: str,
                      code1: Optional[str],
                      code2: str,
                      created_at: int,
                      expires_in: int,
                      user_data: Optional[Any] = None) -> bool:
        """
        Overwrite a record only if its ``code2`` still equals ``expected_code2``.

        Used when rotating credentials so that a code or refresh token can be
        redeemed once. This default is a plain read-compare-write and is not
        atomic; adapters backed by shared storage should override it.

        Returns:
            True if the record was replaced, False if it changed or vanished
        """
        current = await self.retrieve(key)
        if current is None or not constant_time_equals(current.code2, expected_code2):
            return False
        return await self.store(key, code1, code2, created_at, expires_in, user_data)

    async def close(self) -> None:
        """Release adapter resources."""
        pass


StoreCallback = Callable[..., Union[bool, Awaitable[bool]]]
RetrieveCallback = Callable[[str], Any]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class CallbackStorageAdapter(StorageAdapter):
    """
    Adapter built from plain store/retrieve callables.

    Callbacks may be sync or async. ``retrieve_callback`` may return a
    StorageRecord, a mapping with the record fields, or None. Without a
    ``replace_callback`` rotations use the non-atomic default.
    """

    def __init__(self,
                 store_callback: StoreCallback,
                 retrieve_callback: RetrieveCallback,
                 replace_callback: Optional[StoreCallback] = None):
        if not callable(store_callback) or not callable(retrieve_callback):
            raise TypeError("store_callback and retrieve_callback must be callable")
        self._store_callback = store_callback
        self._retrieve_callback = retrieve_callback
        self._replace_callback = replace_callback

    async def store(self, key, code1, code2, created_at, expires_in, user_data=None) -> bool:
        result = await _resolve(
            self._store_callback(key, code1, code2, created_at, expires_in, user_data)
        )
        return bool(result)

    async def retrieve(self, key: str) -> Optional[StorageRecord]:
        result = await _resolve(self._retrieve_callback(key))
        if result is None or isinstance(result, StorageRecord):
            return result
        if isinstance(result, Mapping):
            return StorageRecord.from_dict(result)
        raise TypeError(f"Unsupported record type from retrieve callback: {type(result).__name__}")

    async def replace(self, key, expected_code2, code1, code2, created_at, expires_in, user_data=None) -> bool:
        if self._replace_callback is None:
            return await super().replace(
                key, expected_code2, code1, code2, created_at, expires_in, user_data
            )
        result = await _resolve(
            self._replace_callback(key, expected_code2, code1, code2, created_at, expires_in, user_data)
        )
        return bool(result)
