"""
Commission program messages.

Layout:
    u8 tag | u8 token_kind | u64 LE amount

Only ChargeCommission (tag 1) is meaningful to the bridge; any other tag
decodes to a plain CommissionInstruction that never satisfies a deposit.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from bridgecore.protocol.enums import ErrorCode, TokenKind
from bridgecore.protocol.errors import DataError

CHARGE_COMMISSION_TAG = 1

_LAYOUT = struct.Struct("<BBQ")


@dataclass(frozen=True)
class CommissionInstruction:
    token_kind: TokenKind
    amount: int
    tag: int = 0


@dataclass(frozen=True)
class ChargeCommission(CommissionInstruction):
    tag: int = CHARGE_COMMISSION_TAG


def charge_commission(token_kind: TokenKind, amount: int) -> ChargeCommission:
    return ChargeCommission(token_kind=token_kind, amount=amount)


def encode_instruction(instruction: CommissionInstruction) -> bytes:
    return _LAYOUT.pack(instruction.tag, int(instruction.token_kind), instruction.amount)


def decode_instruction(data: bytes) -> CommissionInstruction:
    """
    Raises:
        DataError: MALFORMED_PAYLOAD on wrong length or unknown token kind
    """
    if len(data) != _LAYOUT.size:
        raise DataError(
            f"Commission instruction must be {_LAYOUT.size} bytes, got {len(data)}",
            ErrorCode.MALFORMED_PAYLOAD,
        )
    tag, kind, amount = _LAYOUT.unpack(data)
    try:
        token_kind = TokenKind(kind)
    except ValueError:
        raise DataError(f"Unknown token kind {kind}", ErrorCode.MALFORMED_PAYLOAD) from None
    if tag == CHARGE_COMMISSION_TAG:
        return ChargeCommission(token_kind=token_kind, amount=amount)
    return CommissionInstruction(tag=tag, token_kind=token_kind, amount=amount)
