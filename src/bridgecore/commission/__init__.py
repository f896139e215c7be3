from .instruction import (
    CHARGE_COMMISSION_TAG,
    ChargeCommission,
    CommissionInstruction,
    charge_commission,
    decode_instruction,
    encode_instruction,
)
from .inspector import TransactionBatch
from .checker import CommissionChecker

__all__ = [
    "CHARGE_COMMISSION_TAG",
    "ChargeCommission",
    "CommissionInstruction",
    "charge_commission",
    "decode_instruction",
    "encode_instruction",
    "TransactionBatch",
    "CommissionChecker",
]
