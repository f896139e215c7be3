"""
External capabilities consumed by the bridge core.

Value movement, token accounts and metadata records belong to the host
ledger. The core only calls these interfaces; it never implements balances
itself. Implementations raise the bridge error taxonomy (ResourceError for
insufficient funds, AuthError for a wrong authority).
"""

from __future__ import annotations

from typing import Optional, Protocol

from bridgecore.protocol.models import TokenMetadata, UnitOperation


class UnitParticipant(Protocol):
    """Anything whose effects must commit or roll back with the execution unit."""

    def begin(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class Ledger(UnitParticipant, Protocol):
    # Native currency
    def native_balance(self, address: bytes) -> int:
        ...

    def transfer_native(self, source: bytes, destination: bytes, amount: int) -> None:
        ...

    # Mints
    def mint_exists(self, mint: bytes) -> bool:
        ...

    def create_mint(self, mint: bytes, authority: bytes, decimals: int) -> None:
        ...

    def mint_decimals(self, mint: bytes) -> int:
        ...

    def mint_asset(self, mint: bytes, to: bytes, authority: bytes, amount: int) -> None:
        ...

    def burn_asset(self, source: bytes, mint: bytes, authority: bytes, amount: int) -> None:
        ...

    # Token accounts
    def associated_address(self, owner: bytes, mint: bytes) -> bytes:
        ...

    def has_account(self, address: bytes) -> bool:
        ...

    def create_associated_account(self, owner: bytes, mint: bytes) -> bytes:
        ...

    def asset_balance(self, address: bytes) -> int:
        ...

    def transfer_asset(self, source: bytes, destination: bytes, authority: bytes, amount: int) -> None:
        ...

    # Metadata
    def create_metadata_record(
        self,
        mint: bytes,
        name: str,
        symbol: str,
        uri: str,
        collection: Optional[bytes] = None,
    ) -> None:
        ...

    def read_metadata(self, mint: bytes) -> Optional[TokenMetadata]:
        ...


class CoTransactionInspector(Protocol):
    """Introspection of the atomic unit a request executes in."""

    def preceding_operation(self) -> Optional[UnitOperation]:
        """The operation immediately before the current one, or None."""
        ...
