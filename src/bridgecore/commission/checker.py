"""
Commission Checker

The bridge never charges the deposit fee itself. It asserts that the
operation immediately before the deposit, in the same atomic unit, is a
ChargeCommission call to the configured commission program, addressed to
the commission-admin account derived for this bridge, and carrying exactly
the deposit's (token kind, amount).

Every mismatch fails closed with an AuthError:
- MISSING_COMMISSION: no preceding operation
- WRONG_COMMISSION_PROGRAM: preceding operation targets another program
- WRONG_COMMISSION_ACCOUNT: first account is not the derived commission admin
- WRONG_COMMISSION_ARGUMENTS: payload is not a matching ChargeCommission
"""

from __future__ import annotations

import logging

from bridgecore.ledger.capabilities import CoTransactionInspector
from bridgecore.protocol.enums import ErrorCode, TokenKind
from bridgecore.protocol.errors import AuthError, DataError
from bridgecore.protocol.models import AdminRecord
from bridgecore.state.addresses import AddressDeriver

from .instruction import ChargeCommission, decode_instruction

logger = logging.getLogger(__name__)

DEFAULT_COMMISSION_ADMIN_SEED = b"commission-admin"


class CommissionChecker:
    def __init__(
        self,
        deriver: AddressDeriver,
        admin_seed: bytes = DEFAULT_COMMISSION_ADMIN_SEED,
    ) -> None:
        self._deriver = deriver
        self._admin_seed = admin_seed

    def commission_account(self, bridge_admin: bytes, commission_program: bytes) -> bytes:
        """Address of the commission-admin account for this bridge."""
        return self._deriver.derive((self._admin_seed, bridge_admin), commission_program)

    def verify(
        self,
        inspector: CoTransactionInspector,
        bridge_admin: bytes,
        admin: AdminRecord,
        token_kind: TokenKind,
        amount: int,
    ) -> ChargeCommission:
        """
        Assert the deposit was preceded by a matching commission charge.

        Returns the decoded charge.

        Raises:
            AuthError: see module docstring
        """
        operation = inspector.preceding_operation() if inspector is not None else None
        if operation is None:
            raise AuthError("Deposit is not preceded by a commission charge", ErrorCode.MISSING_COMMISSION)

        if operation.program_id != admin.commission_program:
            raise AuthError(
                "Preceding operation does not call the commission program",
                ErrorCode.WRONG_COMMISSION_PROGRAM,
            )

        expected = self.commission_account(bridge_admin, admin.commission_program)
        if not operation.accounts or operation.accounts[0] != expected:
            raise AuthError(
                "Commission charge targets the wrong account",
                ErrorCode.WRONG_COMMISSION_ACCOUNT,
            )

        try:
            instruction = decode_instruction(operation.data)
        except DataError as e:
            raise AuthError(f"Undecodable commission instruction: {e}", ErrorCode.WRONG_COMMISSION_ARGUMENTS) from None

        if (
            isinstance(instruction, ChargeCommission)
            and instruction.token_kind == token_kind
            and instruction.amount == amount
        ):
            logger.debug("Commission charged for %s x%d", token_kind.name, amount)
            return instruction

        raise AuthError(
            f"Commission charge does not match deposit ({token_kind.name}, {amount})",
            ErrorCode.WRONG_COMMISSION_ARGUMENTS,
        )
