"""
Derived Addresses

Every record the bridge owns lives at an address computed from fixed seeds
and the owning program id. The derivation is deterministic and
collision-free within a program, which is what gives each logical record
(admin, per-origin withdraw, wrapped mint) an exclusive storage slot.
"""

from __future__ import annotations

import hashlib
from typing import Protocol, Sequence

from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import ConfigError

MAX_SEEDS = 16
MAX_SEED_LEN = 32
PDA_MARKER = b"ProgramDerivedAddress"


class AddressDeriver(Protocol):
    """Capability mapping (seeds, program id) to a 32-byte address."""

    def derive(self, seeds: Sequence[bytes], program_id: bytes) -> bytes:
        ...


class ProgramAddressDeriver:
    """
    Program-derived addresses: sha256(seed_0 || ... || seed_n || program_id || marker).

    Seed limits match the host platform: at most 16 seeds of at most 32 bytes.
    """

    def derive(self, seeds: Sequence[bytes], program_id: bytes) -> bytes:
        if len(seeds) > MAX_SEEDS:
            raise ConfigError(
                f"At most {MAX_SEEDS} seeds allowed, got {len(seeds)}",
                ErrorCode.MAX_SEED_LENGTH_EXCEEDED,
            )
        hasher = hashlib.sha256()
        for seed in seeds:
            if len(seed) > MAX_SEED_LEN:
                raise ConfigError(
                    f"Seed exceeds {MAX_SEED_LEN} bytes",
                    ErrorCode.MAX_SEED_LENGTH_EXCEEDED,
                )
            hasher.update(seed)
        hasher.update(program_id)
        hasher.update(PDA_MARKER)
        return hasher.digest()
