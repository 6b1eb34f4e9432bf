"""
Credential material generation.

Every access token, refresh token and exchange code is the lookup key
followed by the tail of a hash over a random salt. What gets persisted is
the digest of that string: its HMAC when a secret is supplied, the string
itself otherwise.
"""

import secrets
from dataclasses import dataclass
from typing import Optional

from ..common.utils import hash_string, hmac_string
from ..core.config import DEFAULT_HASH_ALGORITHM


SALT_BYTES = 32


@dataclass(frozen=True)
class IssuedCredential:
    """Credential string handed to the caller and the digest kept in storage."""

    to_issue: str
    to_store: str


def compute_digest(credential: str,
                   secret: Optional[str] = None,
                   algorithm: str = DEFAULT_HASH_ALGORITHM) -> str:
    """
    Compute the storable digest of a credential.

    Args:
        credential: Issued credential string
        secret: Optional secret; when empty the credential is stored as is
        algorithm: hashlib algorithm name for the HMAC

    Returns:
        Digest to persist or compare against storage
    """
    if secret:
        return hmac_string(secret, credential, algorithm)
    return credential


def issue_credential(lookup_key: str,
                     secret: Optional[str] = None,
                     algorithm: str = DEFAULT_HASH_ALGORITHM) -> IssuedCredential:
    """
    Generate fresh credential material bound to a lookup key.

    The result has the same length as the algorithm's hex digest, with
    ``lookup_key`` as its prefix. No storage write happens here.

    Args:
        lookup_key: Key produced by :func:`bind_key`
        secret: Optional secret used for the stored digest
        algorithm: hashlib algorithm name

    Returns:
        IssuedCredential
    """
    salt = secrets.token_hex(SALT_BYTES)
    code = hash_string(salt, algorithm)
    to_issue = lookup_key + code[len(lookup_key):]
    return IssuedCredential(
        to_issue=to_issue,
        to_store=compute_digest(to_issue, secret, algorithm),
    )
