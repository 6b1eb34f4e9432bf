"""
Common utilities and helper functions for the token manager.
"""

import hashlib
import hmac
import time
from typing import Optional


def get_current_timestamp() -> int:
    """Get current timestamp in whole seconds since epoch (rounded)."""
    return int(round(time.time()))


def is_supported_algorithm(algorithm: str) -> bool:
    """Check whether hashlib can build a digest for the given algorithm name."""
    try:
        hashlib.new(algorithm)
    except (ValueError, TypeError):
        return False
    return True


def hash_string(data: str, algorithm: str = "sha1") -> str:
    """
    Hash a string using the specified algorithm.

    Args:
        data: String to hash
        algorithm: Any algorithm name known to hashlib

    Returns:
        Hexadecimal hash string
    """
    return hashlib.new(algorithm, data.encode("utf-8")).hexdigest()


def hmac_string(key: str, data: str, algorithm: str = "sha1") -> str:
    """
    Compute a keyed hash (HMAC) of a string.

    Args:
        key: HMAC key
        data: String to authenticate
        algorithm: Any algorithm name known to hashlib

    Returns:
        Hexadecimal HMAC string
    """
    return hmac.new(key.encode("utf-8"), data.encode("utf-8"), algorithm).hexdigest()


def digest_length(algorithm: str) -> int:
    """Length of the hexadecimal digest produced by an algorithm."""
    return hashlib.new(algorithm).digest_size * 2


def constant_time_equals(left: Optional[str], right: Optional[str]) -> bool:
    """Compare two strings without leaking timing; None never matches."""
    if left is None or right is None:
        return False
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


def mask_token(token: Optional[str], visible_chars: int = 8, mask_char: str = "*") -> str:
    """
    Mask a credential for logging, keeping only its leading characters.

    Args:
        token: Credential to mask
        visible_chars: Number of leading characters to keep
        mask_char: Character to use for masking

    Returns:
        Masked string
    """
    if not token:
        return ""
    if len(token) <= visible_chars:
        return mask_char * len(token)
    return token[:visible_chars] + mask_char * (len(token) - visible_chars)
