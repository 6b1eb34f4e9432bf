"""
Token manager: issues, verifies, exchanges and refreshes bearer credentials.

Access tokens, refresh tokens and exchange codes all start with the lookup
key of the identifier they were issued for, so a presented string finds its
own storage record. Storage holds one record per lookup key and every
rotation overwrites it.

Rejected credentials are reported as negative results (``VerifyResult`` with
``valid=False`` or ``None``); only wiring faults raise.
"""

import logging
from typing import Any, Optional

from ..common.utils import constant_time_equals, get_current_timestamp, mask_token
from ..credentials.generator import compute_digest, issue_credential
from ..credentials.keys import bind_key, extract_key
from ..storage.adapter import CallbackStorageAdapter, StorageAdapter
from .config import ManagerConfig
from .errors import MissingStorageError, StorageError
from .types import StorageRecord, TokenPair, VerifyResult


logger = logging.getLogger(__name__)


def redirect_bound_secret(redirect_uri: str, secret: Optional[str] = None) -> str:
    """Secret used for exchange codes; folds the redirect URI in."""
    return f"{secret}|{redirect_uri}" if secret else redirect_uri


class TokenManager:
    """
    Credential lifecycle manager.

    Use ``TokenManager.new()`` to build a validated instance. The storage
    adapter may also be registered later with :meth:`register_storage`;
    every operation raises :class:`MissingStorageError` until one is set.
    """

    def __init__(self,
                 storage: Optional[StorageAdapter] = None,
                 config: Optional[ManagerConfig] = None):
        """
        Initialize the manager.

        Args:
            storage: Storage adapter used for all reads and writes
            config: Policy settings (defaults to ManagerConfig())
        """
        self.storage = storage
        self.config = config or ManagerConfig()

    @classmethod
    def new(cls,
            storage: Optional[StorageAdapter] = None,
            config: Optional[ManagerConfig] = None) -> "TokenManager":
        """
        Create a manager after validating its configuration.

        Raises:
            ConfigurationError: If configuration is invalid

        Example:
            manager = TokenManager.new(MemoryStorageAdapter())
        """
        config = config or ManagerConfig()
        config.validate()
        return cls(storage, config)

    @classmethod
    def from_callbacks(cls, store_callback, retrieve_callback,
                       config: Optional[ManagerConfig] = None,
                       replace_callback=None) -> "TokenManager":
        """
        Create a manager over plain store/retrieve callables.

        Pass ``replace_callback`` to make rotations atomic in the host storage.
        """
        adapter = CallbackStorageAdapter(store_callback, retrieve_callback, replace_callback)
        return cls.new(adapter, config)

    def register_storage(self, storage: StorageAdapter) -> None:
        """Set or swap the storage adapter."""
        self.storage = storage

    @property
    def access_token_exp_time_sec(self) -> int:
        return self.config.access_token_exp_time_sec

    @property
    def exchange_code_exp_time_sec(self) -> int:
        return self.config.exchange_code_exp_time_sec

    def _require_storage(self) -> StorageAdapter:
        if self.storage is None:
            raise MissingStorageError()
        return self.storage

    def _bind(self, identifier: str, secret: Optional[str]) -> str:
        return bind_key(
            identifier,
            secret,
            algorithm=self.config.hash_algorithm,
            key_length=self.config.key_length,
            default_secret=self.config.default_key_secret,
        )

    def _issue(self, key: str, secret: Optional[str]):
        return issue_credential(key, secret, self.config.hash_algorithm)

    def _digest(self, credential: str, secret: Optional[str]) -> str:
        return compute_digest(credential, secret, self.config.hash_algorithm)

    def _is_well_formed(self, credential: Any) -> bool:
        return isinstance(credential, str) and len(credential) == self.config.token_length

    async def generate_access_token(self,
                                    identifier: str,
                                    user_data: Optional[Any] = None,
                                    secret: Optional[str] = None) -> TokenPair:
        """
        Issue an access/refresh token pair for an identifier.

        Args:
            identifier: Caller identifier, hashed into the lookup key
            user_data: Data stored with the pair and returned by verify
            secret: Optional secret binding the tokens to the caller

        Returns:
            TokenPair with the issued strings

        Raises:
            MissingStorageError: If no storage adapter is registered
            StorageError: If the adapter reports a failed store
        """
        storage = self._require_storage()
        key = self._bind(identifier, secret)
        now = get_current_timestamp()
        access = self._issue(key, secret)
        refresh = self._issue(key, secret)

        stored = await storage.store(
            key, access.to_store, refresh.to_store, now, self.access_token_exp_time_sec, user_data
        )
        if not stored:
            raise StorageError("Failed to store access token", details={"key": key})

        logger.info(f"Issued access token {mask_token(access.to_issue, len(key))}")
        return TokenPair(access_token=access.to_issue, refresh_token=refresh.to_issue)

    async def generate_exchange_code(self,
                                     identifier: str,
                                     redirect_uri: str,
                                     user_data: Optional[Any] = None,
                                     secret: Optional[str] = None) -> str:
        """
        Issue a one-time exchange code bound to a redirect URI.

        Args:
            identifier: Caller identifier, hashed into the lookup key
            redirect_uri: Redirect target the code may be redeemed for
            user_data: Data carried over to the token pair on exchange
            secret: Optional secret that must be presented again on exchange

        Returns:
            Exchange code string

        Raises:
            MissingStorageError: If no storage adapter is registered
            StorageError: If the adapter reports a failed store
        """
        storage = self._require_storage()
        bound_secret = redirect_bound_secret(redirect_uri, secret)
        key = self._bind(identifier, bound_secret)
        now = get_current_timestamp()
        code = self._issue(key, bound_secret)

        stored = await storage.store(
            key, None, code.to_store, now, self.exchange_code_exp_time_sec, user_data
        )
        if not stored:
            raise StorageError("Failed to store exchange code", details={"key": key})

        logger.info(f"Issued exchange code {mask_token(code.to_issue, len(key))}")
        return code.to_issue

    async def verify(self, token: str, secret: Optional[str] = None) -> VerifyResult:
        """
        Check an access token against storage.

        The token is valid when its digest matches the stored access-token
        digest and the record is still fresh.

        Args:
            token: Access token to check
            secret: Secret the token was issued with, if any

        Returns:
            VerifyResult; ``user_data`` is set whenever an access/refresh
            record was found. Exchange-code records never expose their
            user data here.

        Raises:
            MissingStorageError: If no storage adapter is registered
        """
        storage = self._require_storage()
        if not self._is_well_formed(token):
            logger.debug("Rejected malformed access token")
            return VerifyResult(False)

        key = extract_key(token, self.config.key_length)
        record = await storage.retrieve(key)
        if record is None or record.is_exchange_code:
            logger.debug(f"No token record for access token {mask_token(token, len(key))}")
            return VerifyResult(False)

        now = get_current_timestamp()
        matches = constant_time_equals(self._digest(token, secret), record.code1)
        valid = matches and record.is_fresh(now)
        if not valid:
            reason = "stale record" if matches else "digest mismatch"
            logger.debug(f"Rejected access token {mask_token(token, len(key))}: {reason}")
        return VerifyResult(valid, record.user_data)

    async def exchange(self,
                       code: str,
                       redirect_uri: str,
                       secret: Optional[str] = None) -> Optional[TokenPair]:
        """
        Redeem an exchange code for an access/refresh token pair.

        A wrong redirect URI or secret changes the digest, so both fail the
        digest check. On success the record is replaced, which consumes the
        code.

        Args:
            code: Exchange code from generate_exchange_code
            redirect_uri: Redirect URI the code was issued for
            secret: Secret the code was issued with, if any

        Returns:
            New TokenPair, or None if the code is rejected or already redeemed

        Raises:
            MissingStorageError: If no storage adapter is registered
        """
        storage = self._require_storage()
        if not self._is_well_formed(code):
            logger.debug("Rejected malformed exchange code")
            return None

        key = extract_key(code, self.config.key_length)
        record = await storage.retrieve(key)
        if record is None or not record.is_exchange_code:
            logger.debug(f"No exchange code record for {mask_token(code, len(key))}")
            return None

        expected = self._digest(code, redirect_bound_secret(redirect_uri, secret))
        if not constant_time_equals(expected, record.code2):
            logger.debug(f"Rejected exchange code {mask_token(code, len(key))}: digest mismatch")
            return None

        now = get_current_timestamp()
        if not record.is_fresh(now):
            logger.debug(f"Rejected exchange code {mask_token(code, len(key))}: stale record")
            return None

        return await self._rotate(storage, key, record, now, secret, "exchange code")

    async def refresh(self,
                      refresh_token: str,
                      secret: Optional[str] = None) -> Optional[TokenPair]:
        """
        Rotate an access/refresh pair using its refresh token.

        The old record does not need to be fresh; the new pair gets a new
        creation time and the access-token TTL.

        Args:
            refresh_token: Refresh token issued with the current pair
            secret: Secret the pair was issued with, if any

        Returns:
            New TokenPair, or None if the token is rejected or already used

        Raises:
            MissingStorageError: If no storage adapter is registered
        """
        storage = self._require_storage()
        if not self._is_well_formed(refresh_token):
            logger.debug("Rejected malformed refresh token")
            return None

        key = extract_key(refresh_token, self.config.key_length)
        record = await storage.retrieve(key)
        if record is None or record.is_exchange_code:
            logger.debug(f"No token record for refresh token {mask_token(refresh_token, len(key))}")
            return None

        if not constant_time_equals(self._digest(refresh_token, secret), record.code2):
            logger.debug(f"Rejected refresh token {mask_token(refresh_token, len(key))}: digest mismatch")
            return None

        now = get_current_timestamp()
        return await self._rotate(storage, key, record, now, secret, "refresh token")

    async def _rotate(self,
                      storage: StorageAdapter,
                      key: str,
                      record: StorageRecord,
                      now: int,
                      secret: Optional[str],
                      consumed: str) -> Optional[TokenPair]:
        access = self._issue(key, secret)
        refresh = self._issue(key, secret)

        replaced = await storage.replace(
            key,
            record.code2,
            access.to_store,
            refresh.to_store,
            now,
            self.access_token_exp_time_sec,
            record.user_data,
        )
        if not replaced:
            logger.warning(f"Lost rotation race for key {key}; {consumed} already redeemed")
            return None

        logger.info(f"Rotated credentials for key {key} using {consumed}")
        return TokenPair(access_token=access.to_issue, refresh_token=refresh.to_issue)
