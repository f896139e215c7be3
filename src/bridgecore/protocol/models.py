"""
Bridge data models.

Persisted records:
- AdminRecord: the deployment's trusted authority key and commission program
- WithdrawRecord: one redeemed cross-chain event

Transfer payloads (sum type, one variant per TokenKind):
- NativePayload
- FungiblePayload
- NonFungiblePayload

Requests and receipts for every BridgeProcessor operation.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .enums import ErrorCode, TokenKind
from .errors import DataError


ADDRESS_LEN = 32
PUBLIC_KEY_LEN = 64
SIGNATURE_LEN = 64
U64_MAX = 2**64 - 1

ZERO_ADDRESS = bytes(ADDRESS_LEN)


def _check_len(name: str, value: bytes, size: int) -> None:
    if not isinstance(value, (bytes, bytearray)) or len(value) != size:
        raise DataError(f"{name} must be {size} bytes", ErrorCode.MALFORMED_PAYLOAD)


def _check_u64(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= U64_MAX:
        raise DataError(f"{name} must be an unsigned 64-bit integer", ErrorCode.MALFORMED_PAYLOAD)


# ===========================================================================
# Persisted Records
# ===========================================================================


@dataclass
class AdminRecord:
    """
    Singleton record holding the bridge's root of trust.

    Layout (97 bytes):
        u8 initialized | [64] authority_key | [32] commission_program
    """

    initialized: bool = False
    authority_key: bytes = bytes(PUBLIC_KEY_LEN)
    commission_program: bytes = ZERO_ADDRESS

    _FORMAT = struct.Struct("<?64s32s")
    SIZE = _FORMAT.size

    def to_bytes(self) -> bytes:
        _check_len("authority_key", self.authority_key, PUBLIC_KEY_LEN)
        _check_len("commission_program", self.commission_program, ADDRESS_LEN)
        return self._FORMAT.pack(self.initialized, bytes(self.authority_key), bytes(self.commission_program))

    @classmethod
    def from_bytes(cls, data: bytes) -> AdminRecord:
        if len(data) != cls.SIZE:
            raise DataError(
                f"Admin record must be {cls.SIZE} bytes, got {len(data)}",
                ErrorCode.WRONG_DATA_LEN,
            )
        initialized, key, program = cls._FORMAT.unpack(data)
        return cls(initialized=initialized, authority_key=key, commission_program=program)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initialized": self.initialized,
            "authorityKey": self.authority_key.hex(),
            "commissionProgram": self.commission_program.hex(),
        }


@dataclass
class WithdrawRecord:
    """
    Proof that a cross-chain event (origin) has been redeemed.

    Layout (107 bytes):
        u8 initialized | u8 token_kind | [32] origin |
        u8 mint_present | [32] mint-or-zero | u64 LE amount | [32] receiver
    """

    initialized: bool = False
    token_kind: TokenKind = TokenKind.NATIVE
    origin: bytes = ZERO_ADDRESS
    mint: Optional[bytes] = None
    amount: int = 0
    receiver: bytes = ZERO_ADDRESS

    _FORMAT = struct.Struct("<?B32s?32sQ32s")
    SIZE = _FORMAT.size

    def to_bytes(self) -> bytes:
        _check_len("origin", self.origin, ADDRESS_LEN)
        _check_len("receiver", self.receiver, ADDRESS_LEN)
        if self.mint is not None:
            _check_len("mint", self.mint, ADDRESS_LEN)
        _check_u64("amount", self.amount)
        return self._FORMAT.pack(
            self.initialized,
            int(self.token_kind),
            bytes(self.origin),
            self.mint is not None,
            bytes(self.mint) if self.mint is not None else ZERO_ADDRESS,
            self.amount,
            bytes(self.receiver),
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> WithdrawRecord:
        if len(data) != cls.SIZE:
            raise DataError(
                f"Withdraw record must be {cls.SIZE} bytes, got {len(data)}",
                ErrorCode.WRONG_DATA_LEN,
            )
        initialized, kind, origin, has_mint, mint, amount, receiver = cls._FORMAT.unpack(data)
        try:
            token_kind = TokenKind(kind)
        except ValueError:
            raise DataError(f"Unknown token kind {kind}", ErrorCode.MALFORMED_PAYLOAD) from None
        return cls(
            initialized=initialized,
            token_kind=token_kind,
            origin=origin,
            mint=mint if has_mint else None,
            amount=amount,
            receiver=receiver,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initialized": self.initialized,
            "tokenKind": self.token_kind.name,
            "origin": self.origin.hex(),
            "mint": self.mint.hex() if self.mint is not None else None,
            "amount": self.amount,
            "receiver": self.receiver.hex(),
        }


# ===========================================================================
# Transfer Payloads
# ===========================================================================


@dataclass(frozen=True)
class NativePayload:
    amount: int

    token_kind = TokenKind.NATIVE

    def __post_init__(self) -> None:
        _check_u64("amount", self.amount)


@dataclass(frozen=True)
class FungiblePayload:
    """Fungible token transfer. ``decimals`` is carried but never hashed."""

    mint: bytes
    amount: int
    name: str = ""
    symbol: str = ""
    uri: str = ""
    decimals: int = 0

    token_kind = TokenKind.FUNGIBLE

    def __post_init__(self) -> None:
        _check_len("mint", self.mint, ADDRESS_LEN)
        _check_u64("amount", self.amount)
        if not 0 <= self.decimals <= 255:
            raise DataError("decimals must fit in a u8", ErrorCode.MALFORMED_PAYLOAD)


@dataclass(frozen=True)
class NonFungiblePayload:
    """Non-fungible transfer. The amount is always 1."""

    mint: bytes
    collection: Optional[bytes] = None
    name: str = ""
    symbol: str = ""
    uri: str = ""

    token_kind = TokenKind.NON_FUNGIBLE
    amount = 1

    def __post_init__(self) -> None:
        _check_len("mint", self.mint, ADDRESS_LEN)
        if self.collection is not None:
            _check_len("collection", self.collection, ADDRESS_LEN)


TransferPayload = Union[NativePayload, FungiblePayload, NonFungiblePayload]


@dataclass(frozen=True)
class ContentLeaf:
    """Transfer intent authenticated by the merkle tree. Never persisted."""

    origin: bytes
    receiver: bytes
    destination_program: bytes
    payload: TransferPayload

    def __post_init__(self) -> None:
        _check_len("origin", self.origin, ADDRESS_LEN)
        _check_len("receiver", self.receiver, ADDRESS_LEN)
        _check_len("destination_program", self.destination_program, ADDRESS_LEN)


# ===========================================================================
# Token Metadata
# ===========================================================================


@dataclass(frozen=True)
class TokenMetadata:
    """Metadata fields the core consumes. Strings may carry NUL padding."""

    name: str
    symbol: str
    uri: str
    collection: Optional[bytes] = None


@dataclass(frozen=True)
class SignedMetadata:
    """Metadata used to create a wrapped mint on first withdrawal."""

    name: str
    symbol: str
    uri: str
    decimals: int = 0


# ===========================================================================
# Co-transaction Operations
# ===========================================================================


@dataclass(frozen=True)
class UnitOperation:
    """One operation bundled in an atomic execution unit."""

    program_id: bytes
    accounts: Tuple[bytes, ...] = ()
    data: bytes = b""


# ===========================================================================
# Requests
# ===========================================================================


@dataclass
class InitializeAdminRequest:
    seeds: bytes
    authority_key: bytes
    commission_program: bytes


@dataclass
class RotateKeyRequest:
    seeds: bytes
    new_key: bytes
    signature: bytes
    recovery_id: int


@dataclass
class DepositNativeRequest:
    seeds: bytes
    owner: bytes
    network_to: str
    receiver_address: str
    amount: int


@dataclass
class DepositFungibleRequest:
    seeds: bytes
    owner: bytes
    mint: bytes
    network_to: str
    receiver_address: str
    amount: int
    token_seed: Optional[bytes] = None


@dataclass
class DepositNonFungibleRequest:
    seeds: bytes
    owner: bytes
    mint: bytes
    network_to: str
    receiver_address: str
    token_seed: Optional[bytes] = None


@dataclass
class WithdrawNativeRequest:
    seeds: bytes
    receiver: bytes
    origin: bytes
    amount: int
    path: List[bytes]
    signature: bytes
    recovery_id: int
    withdraw_address: Optional[bytes] = None


@dataclass
class WithdrawFungibleRequest:
    seeds: bytes
    receiver: bytes
    origin: bytes
    mint: bytes
    amount: int
    path: List[bytes]
    signature: bytes
    recovery_id: int
    token_seed: Optional[bytes] = None
    signed_metadata: Optional[SignedMetadata] = None
    withdraw_address: Optional[bytes] = None


@dataclass
class WithdrawNonFungibleRequest:
    seeds: bytes
    receiver: bytes
    origin: bytes
    mint: bytes
    path: List[bytes]
    signature: bytes
    recovery_id: int
    token_seed: Optional[bytes] = None
    signed_metadata: Optional[SignedMetadata] = None
    withdraw_address: Optional[bytes] = None


@dataclass
class MintCollectionRequest:
    seeds: bytes
    payer: bytes
    token_seed: bytes
    metadata: SignedMetadata
    mint: Optional[bytes] = None


# ===========================================================================
# Receipts
# ===========================================================================


@dataclass
class DepositReceipt:
    token_kind: TokenKind
    owner: bytes
    amount: int
    network_to: str
    receiver_address: str
    mint: Optional[bytes] = None
    burned: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tokenKind": self.token_kind.name,
            "owner": self.owner.hex(),
            "amount": self.amount,
            "networkTo": self.network_to,
            "receiverAddress": self.receiver_address,
            "mint": self.mint.hex() if self.mint is not None else None,
            "burned": self.burned,
        }


@dataclass
class WithdrawReceipt:
    withdraw_address: bytes
    record: WithdrawRecord
    root: bytes
    minted: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "withdrawAddress": self.withdraw_address.hex(),
            "record": self.record.to_dict(),
            "root": self.root.hex(),
            "minted": self.minted,
        }


@dataclass
class CollectionReceipt:
    mint: bytes
    custody_account: bytes
    metadata: Optional[SignedMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mint": self.mint.hex(),
            "custodyAccount": self.custody_account.hex(),
            "name": self.metadata.name if self.metadata else None,
        }
