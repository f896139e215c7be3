"""
Content Leaf Encoding

Builds the canonical preimage of a transfer intent and hashes it:

    origin(32) || network_tag || receiver(32) || destination_program(32) || payload

Payload bytes per variant:

    Native       zero(32) || amount(32, BE)
    Fungible     mint(32) || amount(32, BE) || name || symbol || uri
    NonFungible  mint(32) || collection-or-zero(32) || 1(32, BE) || name || symbol || uri

Strings are raw UTF-8 without length prefixes. This layout is shared with the
off-chain relayers that build the merkle batches; it must not change.
"""

from __future__ import annotations

from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import DataError
from bridgecore.protocol.models import (
    ZERO_ADDRESS,
    ContentLeaf,
    FungiblePayload,
    NativePayload,
    NonFungiblePayload,
    TransferPayload,
)

from .hashing import keccak256

DEFAULT_NETWORK_TAG = "Solana"
AMOUNT_WIDTH = 32


def amount_bytes(amount: int) -> bytes:
    """u64 amount as a 32-byte big-endian word."""
    return amount.to_bytes(AMOUNT_WIDTH, "big")


def strip_padding(value: str) -> str:
    """Remove the trailing NUL padding metadata records store strings with."""
    return value.rstrip("\x00")


def _strings(name: str, symbol: str, uri: str) -> bytes:
    return name.encode("utf-8") + symbol.encode("utf-8") + uri.encode("utf-8")


def encode_payload(payload: TransferPayload) -> bytes:
    if isinstance(payload, NativePayload):
        return ZERO_ADDRESS + amount_bytes(payload.amount)
    if isinstance(payload, FungiblePayload):
        return (
            bytes(payload.mint)
            + amount_bytes(payload.amount)
            + _strings(payload.name, payload.symbol, payload.uri)
        )
    if isinstance(payload, NonFungiblePayload):
        collection = payload.collection if payload.collection is not None else ZERO_ADDRESS
        return (
            bytes(payload.mint)
            + bytes(collection)
            + amount_bytes(1)
            + _strings(payload.name, payload.symbol, payload.uri)
        )
    raise DataError(
        f"Unsupported transfer payload: {type(payload).__name__}",
        ErrorCode.MALFORMED_PAYLOAD,
    )


class ContentLeafEncoder:
    """
    Encodes and hashes content leaves for one destination network.

    Usage:
        encoder = ContentLeafEncoder()
        leaf_hash = encoder.hash(ContentLeaf(origin, receiver, program_id, payload))
    """

    def __init__(self, network_tag: str = DEFAULT_NETWORK_TAG) -> None:
        try:
            self._tag = network_tag.encode("ascii")
        except UnicodeEncodeError:
            raise ValueError(f"Network tag must be ASCII: {network_tag!r}") from None
        self.network_tag = network_tag

    def encode(self, leaf: ContentLeaf) -> bytes:
        """Canonical preimage of the leaf."""
        return (
            bytes(leaf.origin)
            + self._tag
            + bytes(leaf.receiver)
            + bytes(leaf.destination_program)
            + encode_payload(leaf.payload)
        )

    def hash(self, leaf: ContentLeaf) -> bytes:
        return keccak256(self.encode(leaf))
