"""
Credentials package.

Lookup key derivation and generation of unguessable credential material.
"""

from .keys import bind_key, extract_key
from .generator import IssuedCredential, compute_digest, issue_credential

__all__ = [
    "bind_key",
    "extract_key",
    "IssuedCredential",
    "compute_digest",
    "issue_credential",
]
