"""
Tests for content leaf encoding
"""

import pytest

from bridgecore.crypto.hashing import keccak256
from bridgecore.crypto.leaf import ContentLeafEncoder, amount_bytes, encode_payload, strip_padding
from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import DataError
from bridgecore.protocol.models import (
    ContentLeaf,
    FungiblePayload,
    NativePayload,
    NonFungiblePayload,
)

ORIGIN = b"\x01" * 32
RECEIVER = b"\x02" * 32
PROGRAM = b"\x03" * 32
MINT = b"\x04" * 32
COLLECTION = b"\x05" * 32


@pytest.fixture
def encoder():
    return ContentLeafEncoder()


class TestPayloadEncoding:
    """Tests for per-variant payload bytes."""

    def test_amount_is_32_byte_big_endian(self):
        """Amounts are left-padded big-endian words."""
        encoded = amount_bytes(258)
        assert len(encoded) == 32
        assert encoded[-2:] == b"\x01\x02"
        assert encoded[:30] == bytes(30)

    def test_native_payload(self):
        """Native payload is a zero address followed by the amount."""
        assert encode_payload(NativePayload(amount=100)) == bytes(32) + amount_bytes(100)

    def test_fungible_payload_appends_raw_strings(self):
        """Fungible strings follow the amount without length prefixes."""
        payload = FungiblePayload(mint=MINT, amount=5, name="Token", symbol="TKN", uri="ipfs://x")
        assert encode_payload(payload) == MINT + amount_bytes(5) + b"TokenTKNipfs://x"

    def test_non_fungible_without_collection_uses_zero(self):
        """A missing collection encodes as 32 zero bytes and the amount is 1."""
        payload = NonFungiblePayload(mint=MINT, name="A", symbol="B", uri="C")
        assert encode_payload(payload) == MINT + bytes(32) + amount_bytes(1) + b"ABC"

    def test_non_fungible_with_collection(self):
        """A collection id is encoded in place of the zero bytes."""
        payload = NonFungiblePayload(mint=MINT, collection=COLLECTION, name="A", symbol="B", uri="C")
        assert encode_payload(payload)[32:64] == COLLECTION

    def test_unsupported_payload_rejected(self):
        """Anything outside the payload sum type is malformed."""
        with pytest.raises(DataError) as exc:
            encode_payload("not a payload")
        assert exc.value.code == ErrorCode.MALFORMED_PAYLOAD

    def test_amount_out_of_range_rejected(self):
        """Amounts must fit in an unsigned 64-bit integer."""
        with pytest.raises(DataError):
            NativePayload(amount=2**64)
        with pytest.raises(DataError):
            NativePayload(amount=-1)

    def test_strip_padding(self):
        """Trailing NUL padding is removed, inner characters are kept."""
        assert strip_padding("Token\x00\x00\x00") == "Token"
        assert strip_padding("A B") == "A B"


class TestContentLeafEncoder:
    """Tests for ContentLeafEncoder."""

    def test_preimage_layout(self, encoder):
        """origin || tag || receiver || program || payload."""
        leaf = ContentLeaf(ORIGIN, RECEIVER, PROGRAM, NativePayload(amount=7))
        expected = ORIGIN + b"Solana" + RECEIVER + PROGRAM + bytes(32) + amount_bytes(7)
        assert encoder.encode(leaf) == expected
        assert encoder.hash(leaf) == keccak256(expected)

    def test_hash_is_deterministic(self, encoder):
        """Equal leaves hash equally."""
        a = ContentLeaf(ORIGIN, RECEIVER, PROGRAM, NativePayload(amount=7))
        b = ContentLeaf(ORIGIN, RECEIVER, PROGRAM, NativePayload(amount=7))
        assert encoder.hash(a) == encoder.hash(b)

    def test_any_field_changes_hash(self, encoder):
        """Receiver and amount are both bound by the hash."""
        base = encoder.hash(ContentLeaf(ORIGIN, RECEIVER, PROGRAM, NativePayload(amount=7)))
        assert encoder.hash(ContentLeaf(ORIGIN, PROGRAM, PROGRAM, NativePayload(amount=7))) != base
        assert encoder.hash(ContentLeaf(ORIGIN, RECEIVER, PROGRAM, NativePayload(amount=8))) != base

    def test_decimals_not_hashed(self, encoder):
        """Fungible decimals are carried but never part of the leaf."""
        six = FungiblePayload(mint=MINT, amount=1, name="T", decimals=6)
        nine = FungiblePayload(mint=MINT, amount=1, name="T", decimals=9)
        assert encoder.hash(ContentLeaf(ORIGIN, RECEIVER, PROGRAM, six)) == encoder.hash(
            ContentLeaf(ORIGIN, RECEIVER, PROGRAM, nine)
        )

    def test_network_tag_is_bound(self):
        """A different destination network yields a different leaf."""
        leaf = ContentLeaf(ORIGIN, RECEIVER, PROGRAM, NativePayload(amount=7))
        assert ContentLeafEncoder("Solana").hash(leaf) != ContentLeafEncoder("Devnet").hash(leaf)

    def test_non_ascii_tag_rejected(self):
        with pytest.raises(ValueError):
            ContentLeafEncoder("Sölana")

    def test_short_origin_rejected(self):
        """Leaf addresses must be exactly 32 bytes."""
        with pytest.raises(DataError):
            ContentLeaf(b"\x01" * 31, RECEIVER, PROGRAM, NativePayload(amount=1))
