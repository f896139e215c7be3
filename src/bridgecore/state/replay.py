"""
Replay Guard

Binds each cross-chain event (origin) to exactly one WithdrawRecord. The
record lives at an address derived from (withdraw domain seed, origin), and
claiming an origin means creating that record. Creation is exclusive, so a
second claim of the same origin fails with StateError(ALREADY_IN_USE).

The initialized flag inside a freshly created record is checked as well; a
record that exists but was never finalized is still treated as in use.
"""

from __future__ import annotations

import logging
from typing import Optional

from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import ConfigError, DataError, StateError
from bridgecore.protocol.models import ADDRESS_LEN, WithdrawRecord

from .addresses import AddressDeriver
from .store import AccountStore

logger = logging.getLogger(__name__)

DEFAULT_WITHDRAW_SEED = b"withdraw"


class ReplayGuard:
    def __init__(
        self,
        store: AccountStore,
        deriver: AddressDeriver,
        program_id: bytes,
        domain_seed: bytes = DEFAULT_WITHDRAW_SEED,
    ) -> None:
        self._store = store
        self._deriver = deriver
        self._program_id = program_id
        self._domain_seed = domain_seed

    def address_for(self, origin: bytes) -> bytes:
        if len(origin) != ADDRESS_LEN:
            raise DataError(f"Origin must be {ADDRESS_LEN} bytes", ErrorCode.MALFORMED_PAYLOAD)
        return self._deriver.derive((self._domain_seed, bytes(origin)), self._program_id)

    def load(self, origin: bytes) -> Optional[WithdrawRecord]:
        account = self._store.get(self.address_for(origin))
        if account is None:
            return None
        return WithdrawRecord.from_bytes(account.data)

    def is_redeemed(self, origin: bytes) -> bool:
        return self._store.get(self.address_for(origin)) is not None

    def claim(self, origin: bytes, expected_address: Optional[bytes] = None) -> bytes:
        """
        Create the withdraw record slot for origin.

        Returns the record address.

        Raises:
            ConfigError: WRONG_NONCE if expected_address is not the derived address
            StateError: ALREADY_IN_USE if origin was already claimed
        """
        address = self.address_for(origin)
        if expected_address is not None and bytes(expected_address) != address:
            raise ConfigError("Withdraw address does not match origin", ErrorCode.WRONG_NONCE)

        self._store.create(address, WithdrawRecord.SIZE, self._program_id)

        record = WithdrawRecord.from_bytes(self._store.get(address).data)
        if record.initialized:
            raise StateError("Withdraw record already initialized", ErrorCode.ALREADY_IN_USE)

        logger.debug("Claimed origin %s at %s", origin.hex(), address.hex())
        return address

    def finalize(self, address: bytes, record: WithdrawRecord) -> WithdrawRecord:
        """Persist the record's final fields. The record becomes immutable."""
        record.initialized = True
        self._store.write(address, record.to_bytes())
        return record
