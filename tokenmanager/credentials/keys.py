"""
Lookup key derivation.

A lookup key is a short keyed hash of a caller identifier. The same
identifier and secret always bind to the same key, so repeated issuances for
one caller share a single storage slot.
"""

from typing import Optional

from ..common.utils import hmac_string
from ..core.config import DEFAULT_HASH_ALGORITHM, DEFAULT_KEY_LENGTH, DEFAULT_KEY_SECRET


def bind_key(identifier: str,
             secret: Optional[str] = None,
             algorithm: str = DEFAULT_HASH_ALGORITHM,
             key_length: int = DEFAULT_KEY_LENGTH,
             default_secret: str = DEFAULT_KEY_SECRET) -> str:
    """
    Derive the lookup key for an identifier.

    Args:
        identifier: Caller identifier, e.g. "[userId]|[IP]|[TCP port]"
        secret: Optional shared secret; ``default_secret`` is used when empty
        algorithm: hashlib algorithm name for the HMAC
        key_length: Number of hex characters kept

    Returns:
        Fixed-length hex string
    """
    return hmac_string(secret or default_secret, identifier, algorithm)[:key_length]


def extract_key(credential: str, key_length: int = DEFAULT_KEY_LENGTH) -> str:
    """Lookup key embedded as the prefix of an issued credential."""
    return credential[:key_length]
