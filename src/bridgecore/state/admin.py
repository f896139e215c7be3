"""
Admin Key Store

State machine for the bridge's single root of trust:

    Uninitialized --initialize--> Initialized(authority_key, commission_program)
    Initialized   --rotate_key--> Initialized(new_key, commission_program)

Rotation is self-certified: the message is keccak256(new_key) and it must be
signed by the key currently stored, never by the candidate key.
"""

from __future__ import annotations

import logging
from typing import Optional

from bridgecore.crypto.hashing import keccak256
from bridgecore.crypto.signature import SignatureVerifier
from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import DataError, StateError
from bridgecore.protocol.models import ADDRESS_LEN, PUBLIC_KEY_LEN, AdminRecord

from .store import AccountStore

logger = logging.getLogger(__name__)


class AdminKeyStore:
    """
    Reads and mutates the AdminRecord at its derived address.

    Mutating methods must run inside an open execution unit.
    """

    def __init__(
        self,
        store: AccountStore,
        address: bytes,
        program_id: bytes,
        verifier: Optional[SignatureVerifier] = None,
    ) -> None:
        self._store = store
        self.address = address
        self._program_id = program_id
        self._verifier = verifier or SignatureVerifier()

    def _read(self) -> Optional[AdminRecord]:
        account = self._store.get(self.address)
        if account is None:
            return None
        return AdminRecord.from_bytes(account.data)

    def is_initialized(self) -> bool:
        record = self._read()
        return record is not None and record.initialized

    def load(self) -> AdminRecord:
        """
        Raises:
            StateError: NOT_INITIALIZED if the record is absent or not finalized
        """
        record = self._read()
        if record is None or not record.initialized:
            raise StateError("Bridge admin is not initialized", ErrorCode.NOT_INITIALIZED)
        return record

    def initialize(self, authority_key: bytes, commission_program: bytes) -> AdminRecord:
        """
        One-shot initialization.

        Raises:
            StateError: ALREADY_IN_USE if the admin record already exists
            DataError: MALFORMED_PAYLOAD on wrong key or program id width
        """
        if len(authority_key) != PUBLIC_KEY_LEN:
            raise DataError(f"Authority key must be {PUBLIC_KEY_LEN} bytes", ErrorCode.MALFORMED_PAYLOAD)
        if len(commission_program) != ADDRESS_LEN:
            raise DataError(f"Commission program must be {ADDRESS_LEN} bytes", ErrorCode.MALFORMED_PAYLOAD)

        self._store.create(self.address, AdminRecord.SIZE, self._program_id)

        record = AdminRecord.from_bytes(self._store.get(self.address).data)
        if record.initialized:
            raise StateError("Bridge admin already initialized", ErrorCode.ALREADY_IN_USE)

        record.initialized = True
        record.authority_key = bytes(authority_key)
        record.commission_program = bytes(commission_program)
        self._store.write(self.address, record.to_bytes())
        logger.info("Bridge admin initialized at %s", self.address.hex())
        return record

    def rotate_key(self, new_key: bytes, signature: bytes, recovery_id: int) -> AdminRecord:
        """
        Replace the authority key with new_key.

        Raises:
            StateError: NOT_INITIALIZED
            AuthError: INVALID_SIGNATURE / WRONG_SIGNATURE unless the current key
                       signed keccak256(new_key)
        """
        record = self.load()
        if len(new_key) != PUBLIC_KEY_LEN:
            raise DataError(f"Authority key must be {PUBLIC_KEY_LEN} bytes", ErrorCode.MALFORMED_PAYLOAD)

        self._verifier.verify(keccak256(new_key), signature, recovery_id, record.authority_key)

        record.authority_key = bytes(new_key)
        self._store.write(self.address, record.to_bytes())
        logger.info("Bridge authority key rotated")
        return record
