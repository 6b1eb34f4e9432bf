"""
Common package providing shared helpers for the token manager.

This package includes:
- Clock access in epoch seconds
- Hashing and keyed-hashing helpers
- Constant-time comparison and token masking
"""

from .utils import (
    # Time operations
    get_current_timestamp,

    # Hashing and security
    is_supported_algorithm, hash_string, hmac_string, digest_length,
    constant_time_equals, mask_token,
)

__all__ = [
    'get_current_timestamp',
    'is_supported_algorithm', 'hash_string', 'hmac_string', 'digest_length',
    'constant_time_equals', 'mask_token',
]
