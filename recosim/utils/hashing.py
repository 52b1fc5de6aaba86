"""Hashing utilities for deterministic content and feature hashing."""

import hashlib


def compute_sha256(content: bytes) -> str:
    """Compute SHA-256 hash of content.

    Args:
        content: Bytes to hash

    Returns:
        Hexadecimal hash string
    """
    return hashlib.sha256(content).hexdigest()


def salted_digest64(value: str, salt: str) -> int:
    """Return a 64-bit unsigned integer digest of ``value`` mixed with ``salt``.

    BLAKE2b is keyed by the salt so that two salts yield unrelated bucketings
    of the same feature string. The result is stable across processes and
    platforms (unlike the builtin ``hash``).
    """
    key = salt.encode("utf-8")[:64]
    digest = hashlib.blake2b(value.encode("utf-8"), digest_size=8, key=key).digest()
    return int.from_bytes(digest, "big")
