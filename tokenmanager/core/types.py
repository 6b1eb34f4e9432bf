"""
Core data types for the token manager.

This module provides the stored record layout shared with storage adapters
and the result objects returned by the manager's public operations.
"""

import json
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterator, Mapping, Optional

from ..common.utils import get_current_timestamp


@dataclass
class StorageRecord:
    """
    Record persisted for one lookup key.

    ``code1`` holds the access-token digest (None for exchange codes) and
    ``code2`` the refresh-token or exchange-code digest. Only the current
    generation is kept; every rotation overwrites the record.
    """

    code2: str
    created_at: int
    expires_in: int
    code1: Optional[str] = None
    user_data: Optional[Any] = None

    @property
    def expires_at(self) -> int:
        """Epoch second at which the record turns stale."""
        return self.created_at + self.expires_in

    def is_fresh(self, now: Optional[int] = None) -> bool:
        """
        Check if the record is still inside its validity window.

        Args:
            now: Current time in epoch seconds (defaults to the clock)

        Returns:
            True if ``now < created_at + expires_in``
        """
        if now is None:
            now = get_current_timestamp()
        return now < self.expires_at

    @property
    def is_exchange_code(self) -> bool:
        """Exchange-code records carry no access-token digest."""
        return self.code1 is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StorageRecord":
        """
        Create a StorageRecord from a mapping.

        Both snake_case and camelCase field names are accepted so records
        written by other clients of the same storage can be read back.

        Args:
            data: Mapping with code1, code2, created_at/createdAt,
                  expires_in/expiresIn and user_data/userData

        Returns:
            StorageRecord instance
        """
        def pick(*names, default=None):
            for name in names:
                if name in data:
                    return data[name]
            return default

        return cls(
            code1=pick("code1"),
            code2=pick("code2"),
            created_at=int(pick("created_at", "createdAt", default=0)),
            expires_in=int(pick("expires_in", "expiresIn", default=0)),
            user_data=pick("user_data", "userData"),
        )

    def to_json(self) -> str:
        """Convert record to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "StorageRecord":
        """Create a StorageRecord from a JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token issued together under one lookup key."""

    access_token: str
    refresh_token: str

    def to_dict(self) -> Dict[str, str]:
        """Wire representation for transport layers."""
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
        }


@dataclass(frozen=True)
class VerifyResult:
    """
    Outcome of verifying an access token.

    Unpacks as ``valid, user_data = result`` and is truthy only when valid.
    """

    valid: bool
    user_data: Optional[Any] = None

    def __iter__(self) -> Iterator[Any]:
        yield self.valid
        yield self.user_data

    def __bool__(self) -> bool:
        return self.valid
