"""
Tests for the admin key store and key rotation
"""

import pytest

from bridgecore.core.unit import ExecutionUnit
from bridgecore.crypto.hashing import keccak256
from bridgecore.crypto.signature import Secp256k1Signer
from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import AuthError, DataError, StateError
from bridgecore.protocol.models import AdminRecord
from bridgecore.state.admin import AdminKeyStore
from bridgecore.state.store import InMemoryAccountStore

PROGRAM_ID = b"\x10" * 32
ADMIN_ADDRESS = b"\x20" * 32
COMMISSION = b"\xcc" * 32


@pytest.fixture
def store():
    return InMemoryAccountStore()


@pytest.fixture
def admin(store):
    return AdminKeyStore(store, ADMIN_ADDRESS, PROGRAM_ID)


@pytest.fixture
def k1():
    return Secp256k1Signer.from_private_bytes(b"\x01" * 32)


@pytest.fixture
def k2():
    return Secp256k1Signer.from_private_bytes(b"\x02" * 32)


@pytest.fixture
def initialized(store, admin, k1):
    with ExecutionUnit(store):
        admin.initialize(k1.public_key, COMMISSION)
    return admin


class TestAdminRecord:
    """Tests for the persisted admin layout."""

    def test_fixed_size(self):
        record = AdminRecord(initialized=True, authority_key=b"\x01" * 64, commission_program=COMMISSION)
        data = record.to_bytes()
        assert len(data) == AdminRecord.SIZE == 97
        assert AdminRecord.from_bytes(data) == record

    def test_wrong_length(self):
        with pytest.raises(DataError) as exc:
            AdminRecord.from_bytes(b"\x00" * 96)
        assert exc.value.code == ErrorCode.WRONG_DATA_LEN


class TestInitialize:
    """Tests for one-shot initialization."""

    def test_initialize(self, initialized, k1):
        record = initialized.load()
        assert record.initialized
        assert record.authority_key == k1.public_key
        assert record.commission_program == COMMISSION

    def test_load_before_initialize(self, admin):
        assert not admin.is_initialized()
        with pytest.raises(StateError) as exc:
            admin.load()
        assert exc.value.code == ErrorCode.NOT_INITIALIZED

    def test_second_initialize_fails(self, store, initialized, k2):
        """The admin record can be created only once."""
        with pytest.raises(StateError) as exc:
            with ExecutionUnit(store):
                initialized.initialize(k2.public_key, COMMISSION)
        assert exc.value.code == ErrorCode.ALREADY_IN_USE

    def test_bad_key_length(self, store, admin):
        with pytest.raises(DataError):
            with ExecutionUnit(store):
                admin.initialize(b"\x01" * 33, COMMISSION)
        assert not admin.is_initialized()


class TestRotateKey:
    """Tests for self-certified key rotation."""

    def test_current_key_rotates(self, store, initialized, k1, k2):
        signature, recovery_id = k1.sign(keccak256(k2.public_key))
        with ExecutionUnit(store):
            initialized.rotate_key(k2.public_key, signature, recovery_id)
        assert initialized.load().authority_key == k2.public_key

    def test_candidate_cannot_self_sign(self, store, initialized, k1, k2):
        """The new key signing its own rotation is rejected."""
        signature, recovery_id = k2.sign(keccak256(k2.public_key))
        with pytest.raises(AuthError) as exc:
            with ExecutionUnit(store):
                initialized.rotate_key(k2.public_key, signature, recovery_id)
        assert exc.value.code == ErrorCode.WRONG_SIGNATURE
        assert initialized.load().authority_key == k1.public_key

    def test_old_key_loses_authority(self, store, initialized, k1, k2):
        """After rotation only the new key can rotate again."""
        signature, recovery_id = k1.sign(keccak256(k2.public_key))
        with ExecutionUnit(store):
            initialized.rotate_key(k2.public_key, signature, recovery_id)

        k3 = Secp256k1Signer.from_private_bytes(b"\x03" * 32)
        stale, stale_id = k1.sign(keccak256(k3.public_key))
        with pytest.raises(AuthError):
            with ExecutionUnit(store):
                initialized.rotate_key(k3.public_key, stale, stale_id)

        fresh, fresh_id = k2.sign(keccak256(k3.public_key))
        with ExecutionUnit(store):
            initialized.rotate_key(k3.public_key, fresh, fresh_id)
        assert initialized.load().authority_key == k3.public_key

    def test_signature_binds_new_key(self, store, initialized, k1, k2):
        """A signature over one candidate cannot install another."""
        k3 = Secp256k1Signer.from_private_bytes(b"\x03" * 32)
        signature, recovery_id = k1.sign(keccak256(k2.public_key))
        with pytest.raises(AuthError):
            with ExecutionUnit(store):
                initialized.rotate_key(k3.public_key, signature, recovery_id)

    def test_rotate_uninitialized(self, store, admin, k1, k2):
        signature, recovery_id = k1.sign(keccak256(k2.public_key))
        with pytest.raises(StateError):
            with ExecutionUnit(store):
                admin.rotate_key(k2.public_key, signature, recovery_id)
