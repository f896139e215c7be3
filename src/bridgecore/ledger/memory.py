"""
In-memory ledger.

Reference implementation of the Ledger capability for tests, local
simulation and relayer dry-runs. Balances are plain integers; a snapshot is
taken at begin() and restored on rollback() so failed units leave no trace.
Units are serialized by a lock held from begin() until commit() or rollback().
"""

from __future__ import annotations

import copy
import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional

from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import AuthError, ConfigError, ResourceError, StateError
from bridgecore.protocol.models import TokenMetadata
from bridgecore.state.addresses import AddressDeriver, ProgramAddressDeriver

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = hashlib.sha256(b"bridgecore.token-program").digest()
ASSOCIATED_PROGRAM_ID = hashlib.sha256(b"bridgecore.associated-token-program").digest()


@dataclass
class MintState:
    authority: bytes
    decimals: int
    supply: int = 0


@dataclass
class TokenAccount:
    owner: bytes
    mint: bytes
    amount: int = 0


class InMemoryLedger:
    def __init__(self, deriver: Optional[AddressDeriver] = None) -> None:
        self._deriver = deriver or ProgramAddressDeriver()
        self._native: Dict[bytes, int] = {}
        self._mints: Dict[bytes, MintState] = {}
        self._accounts: Dict[bytes, TokenAccount] = {}
        self._metadata: Dict[bytes, TokenMetadata] = {}
        self._snapshot = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Unit participation
    # ------------------------------------------------------------------

    def begin(self) -> None:
        self._lock.acquire()
        self._snapshot = copy.deepcopy((self._native, self._mints, self._accounts, self._metadata))

    def commit(self) -> None:
        if self._snapshot is None:
            raise RuntimeError("No open unit to commit")
        self._snapshot = None
        self._lock.release()

    def rollback(self) -> None:
        if self._snapshot is None:
            raise RuntimeError("No open unit to roll back")
        self._native, self._mints, self._accounts, self._metadata = self._snapshot
        self._snapshot = None
        self._lock.release()

    # ------------------------------------------------------------------
    # Native currency
    # ------------------------------------------------------------------

    def fund_native(self, address: bytes, amount: int) -> None:
        self._native[address] = self._native.get(address, 0) + amount

    def native_balance(self, address: bytes) -> int:
        return self._native.get(address, 0)

    def transfer_native(self, source: bytes, destination: bytes, amount: int) -> None:
        balance = self.native_balance(source)
        if balance < amount:
            raise ResourceError(
                f"Native balance {balance} below {amount}", ErrorCode.INSUFFICIENT_BALANCE
            )
        self._native[source] = balance - amount
        self.fund_native(destination, amount)

    # ------------------------------------------------------------------
    # Mints
    # ------------------------------------------------------------------

    def mint_exists(self, mint: bytes) -> bool:
        return mint in self._mints

    def create_mint(self, mint: bytes, authority: bytes, decimals: int) -> None:
        if mint in self._mints:
            raise StateError(f"Mint {mint.hex()} already exists", ErrorCode.ALREADY_IN_USE)
        self._mints[mint] = MintState(authority=authority, decimals=decimals)

    def mint_decimals(self, mint: bytes) -> int:
        state = self._mints.get(mint)
        if state is None:
            raise StateError(f"Mint {mint.hex()} does not exist", ErrorCode.NOT_INITIALIZED)
        return state.decimals

    def mint_asset(self, mint: bytes, to: bytes, authority: bytes, amount: int) -> None:
        state = self._mints.get(mint)
        if state is None:
            raise StateError(f"Mint {mint.hex()} does not exist", ErrorCode.NOT_INITIALIZED)
        if state.authority != authority:
            raise AuthError("Wrong mint authority", ErrorCode.WRONG_AUTHORITY)
        account = self._token_account(to, mint)
        account.amount += amount
        state.supply += amount

    def burn_asset(self, source: bytes, mint: bytes, authority: bytes, amount: int) -> None:
        account = self._token_account(source, mint)
        if account.owner != authority:
            raise AuthError("Wrong token account owner", ErrorCode.WRONG_AUTHORITY)
        if account.amount < amount:
            raise ResourceError(
                f"Token balance {account.amount} below {amount}", ErrorCode.INSUFFICIENT_BALANCE
            )
        account.amount -= amount
        self._mints[mint].supply -= amount

    # ------------------------------------------------------------------
    # Token accounts
    # ------------------------------------------------------------------

    def associated_address(self, owner: bytes, mint: bytes) -> bytes:
        return self._deriver.derive((owner, TOKEN_PROGRAM_ID, mint), ASSOCIATED_PROGRAM_ID)

    def has_account(self, address: bytes) -> bool:
        return address in self._accounts

    def create_associated_account(self, owner: bytes, mint: bytes) -> bytes:
        address = self.associated_address(owner, mint)
        if address in self._accounts:
            raise StateError(f"Token account {address.hex()} already exists", ErrorCode.ALREADY_IN_USE)
        self._accounts[address] = TokenAccount(owner=owner, mint=mint)
        return address

    def asset_balance(self, address: bytes) -> int:
        account = self._accounts.get(address)
        return account.amount if account is not None else 0

    def transfer_asset(self, source: bytes, destination: bytes, authority: bytes, amount: int) -> None:
        src = self._accounts.get(source)
        dst = self._accounts.get(destination)
        if src is None or dst is None or src.mint != dst.mint:
            raise ConfigError("Token accounts do not match", ErrorCode.WRONG_TOKEN_ACCOUNT)
        if src.owner != authority:
            raise AuthError("Wrong token account owner", ErrorCode.WRONG_AUTHORITY)
        if src.amount < amount:
            raise ResourceError(
                f"Token balance {src.amount} below {amount}", ErrorCode.INSUFFICIENT_BALANCE
            )
        src.amount -= amount
        dst.amount += amount

    def _token_account(self, address: bytes, mint: bytes) -> TokenAccount:
        account = self._accounts.get(address)
        if account is None or account.mint != mint:
            raise ConfigError(f"No token account {address.hex()} for mint", ErrorCode.WRONG_TOKEN_ACCOUNT)
        return account

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def create_metadata_record(
        self,
        mint: bytes,
        name: str,
        symbol: str,
        uri: str,
        collection: Optional[bytes] = None,
    ) -> None:
        if mint in self._metadata:
            raise StateError(f"Metadata for {mint.hex()} already exists", ErrorCode.ALREADY_IN_USE)
        self._metadata[mint] = TokenMetadata(name=name, symbol=symbol, uri=uri, collection=collection)

    def read_metadata(self, mint: bytes) -> Optional[TokenMetadata]:
        return self._metadata.get(mint)
