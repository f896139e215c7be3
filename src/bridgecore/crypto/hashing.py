"""Keccak-256, the hash every leaf, merkle node and rotation message uses."""

from __future__ import annotations

from Crypto.Hash import keccak


def keccak256(*parts: bytes) -> bytes:
    """Keccak-256 (Ethereum-style, not NIST SHA3) over the concatenated parts."""
    k = keccak.new(digest_bits=256)
    for part in parts:
        k.update(part)
    return k.digest()
