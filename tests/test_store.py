"""
Tests for account stores and execution units
"""

import sqlite3
import threading

import pytest

from bridgecore.core.unit import ExecutionUnit
from bridgecore.ledger.memory import InMemoryLedger
from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import ConfigError, DataError, StateError
from bridgecore.state.addresses import ProgramAddressDeriver
from bridgecore.state.store import InMemoryAccountStore, SqliteAccountStore

OWNER = b"\xaa" * 32
ADDR = b"\x01" * 32


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryAccountStore()
    else:
        s = SqliteAccountStore(str(tmp_path / "accounts.db"))
        yield s
        s.close()


class TestAccountStore:
    """Behaviour shared by every AccountStore."""

    def test_create_zero_fills(self, store):
        with ExecutionUnit(store):
            account = store.create(ADDR, 8, OWNER)
        assert account.data == bytes(8)
        assert store.get(ADDR).owner == OWNER
        assert len(store) == 1

    def test_create_is_exclusive(self, store):
        with ExecutionUnit(store):
            store.create(ADDR, 8, OWNER)

        with pytest.raises(StateError) as exc:
            with ExecutionUnit(store):
                store.create(ADDR, 8, OWNER)
        assert exc.value.code == ErrorCode.ALREADY_IN_USE

    def test_create_twice_in_one_unit(self, store):
        with pytest.raises(StateError):
            with ExecutionUnit(store):
                store.create(ADDR, 8, OWNER)
                store.create(ADDR, 8, OWNER)
        assert store.get(ADDR) is None

    def test_rollback_discards_writes(self, store):
        with pytest.raises(RuntimeError):
            with ExecutionUnit(store):
                store.create(ADDR, 4, OWNER)
                store.write(ADDR, b"\x01\x02\x03\x04")
                raise RuntimeError("abort")
        assert store.get(ADDR) is None
        assert len(store) == 0

    def test_write_visible_after_commit(self, store):
        with ExecutionUnit(store):
            store.create(ADDR, 4, OWNER)
            store.write(ADDR, b"\x01\x02\x03\x04")
        assert store.get(ADDR).data == b"\x01\x02\x03\x04"

    def test_write_size_fixed(self, store):
        with ExecutionUnit(store):
            store.create(ADDR, 4, OWNER)

        with pytest.raises(DataError) as exc:
            with ExecutionUnit(store):
                store.write(ADDR, b"\x01")
        assert exc.value.code == ErrorCode.WRONG_DATA_LEN

    def test_write_missing_account(self, store):
        with pytest.raises(StateError) as exc:
            with ExecutionUnit(store):
                store.write(ADDR, b"\x01")
        assert exc.value.code == ErrorCode.NOT_INITIALIZED

    def test_mutation_requires_unit(self, store):
        with pytest.raises(RuntimeError):
            store.create(ADDR, 4, OWNER)

    def test_store_usable_after_failed_unit(self, store):
        """A rolled-back unit releases the store."""
        with pytest.raises(StateError):
            with ExecutionUnit(store):
                store.write(ADDR, b"\x01")
        with ExecutionUnit(store):
            store.create(ADDR, 1, OWNER)
        assert store.get(ADDR) is not None

    def test_other_threads_read_committed_state(self, store):
        """Pending writes are visible only to the thread that opened the unit."""
        seen = []
        store.begin()
        store.create(ADDR, 8, OWNER)
        assert store.get(ADDR) is not None

        reader = threading.Thread(target=lambda: seen.append(store.get(ADDR)))
        reader.start()
        reader.join(0.2)
        store.rollback()
        reader.join(5)

        assert seen == [None]
        assert store.get(ADDR) is None


class TestSqliteAccountStore:
    """SQLite-specific behaviour."""

    def test_exclusive_across_connections(self, tmp_path):
        """Two stores over one database cannot both create an address."""
        path = str(tmp_path / "shared.db")
        first = SqliteAccountStore(path)
        second = SqliteAccountStore(path)
        try:
            with ExecutionUnit(first):
                first.create(ADDR, 8, OWNER)

            with pytest.raises(StateError) as exc:
                with ExecutionUnit(second):
                    second.create(ADDR, 8, OWNER)
            assert exc.value.code == ErrorCode.ALREADY_IN_USE
            assert second.get(ADDR).owner == OWNER
        finally:
            first.close()
            second.close()

    def test_persists_across_reopen(self, tmp_path):
        path = str(tmp_path / "persist.db")
        store = SqliteAccountStore(path)
        with ExecutionUnit(store):
            store.create(ADDR, 2, OWNER)
            store.write(ADDR, b"\x05\x06")
        store.close()

        reopened = SqliteAccountStore(path)
        try:
            assert reopened.get(ADDR).data == b"\x05\x06"
        finally:
            reopened.close()

    def test_busy_commit_rolls_back_and_releases(self, tmp_path):
        """A COMMIT blocked by a reader surfaces the database error and leaves the store usable."""
        path = str(tmp_path / "busy.db")
        store = SqliteAccountStore(path, timeout=0.2)
        reader = sqlite3.connect(path, isolation_level=None)
        try:
            reader.execute("BEGIN")
            reader.execute("SELECT * FROM accounts").fetchall()

            with pytest.raises(sqlite3.OperationalError):
                with ExecutionUnit(store):
                    store.create(ADDR, 8, OWNER)
            assert not store.in_unit

            reader.execute("ROLLBACK")
            assert store.get(ADDR) is None

            with ExecutionUnit(store):
                store.create(ADDR, 8, OWNER)
            assert store.get(ADDR).owner == OWNER
        finally:
            reader.close()
            store.close()


class _Recorder:
    def __init__(self, name, events, fail_on=None):
        self.name = name
        self.events = events
        self.fail_on = fail_on

    def _record(self, action):
        self.events.append((self.name, action))
        if action == self.fail_on:
            raise RuntimeError(f"{self.name} {action} failed")

    def begin(self):
        self._record("begin")

    def commit(self):
        self._record("commit")

    def rollback(self):
        self._record("rollback")


class TestExecutionUnit:
    """Tests for ExecutionUnit."""

    def test_commits_all_in_order(self):
        events = []
        with ExecutionUnit(_Recorder("a", events), _Recorder("b", events)):
            pass
        assert events == [("a", "begin"), ("b", "begin"), ("a", "commit"), ("b", "commit")]

    def test_rolls_back_all_and_reraises(self):
        events = []
        with pytest.raises(ValueError):
            with ExecutionUnit(_Recorder("a", events), _Recorder("b", events)):
                raise ValueError("boom")
        assert events[-2:] == [("b", "rollback"), ("a", "rollback")]

    def test_failed_begin_rolls_back_opened(self):
        events = []
        with pytest.raises(RuntimeError):
            with ExecutionUnit(_Recorder("a", events), _Recorder("b", events, fail_on="begin")):
                pass
        assert events == [("a", "begin"), ("b", "begin"), ("a", "rollback")]

    def test_failed_commit_rolls_back_remaining(self):
        events = []
        with pytest.raises(RuntimeError):
            with ExecutionUnit(_Recorder("a", events), _Recorder("b", events, fail_on="commit")):
                pass
        assert events[-1] == ("b", "rollback")
        assert ("a", "rollback") not in events

    def test_interleaved_units_stay_atomic(self):
        """A unit starting while another commits cannot lose its ledger rollback."""
        store = InMemoryAccountStore()
        ledger = InMemoryLedger()
        source, destination = b"\x0a" * 32, b"\x0b" * 32
        ledger.fund_native(source, 100)

        committing = threading.Event()
        resume = threading.Event()
        ledger_commit = ledger.commit
        calls = []

        def slow_commit():
            if not calls:
                calls.append(1)
                committing.set()
                resume.wait(5)
            ledger_commit()

        ledger.commit = slow_commit
        errors = []

        def first():
            with ExecutionUnit(store, ledger):
                store.create(ADDR, 8, OWNER)
                ledger.transfer_native(source, destination, 10)

        def second():
            try:
                with ExecutionUnit(store, ledger):
                    ledger.transfer_native(source, destination, 60)
                    raise ValueError("abort")
            except Exception as e:
                errors.append(e)

        first_thread = threading.Thread(target=first)
        first_thread.start()
        assert committing.wait(5)

        second_thread = threading.Thread(target=second)
        second_thread.start()
        second_thread.join(0.2)
        resume.set()
        first_thread.join(5)
        second_thread.join(5)

        assert len(errors) == 1
        assert isinstance(errors[0], ValueError)
        assert ledger.native_balance(source) == 90
        assert ledger.native_balance(destination) == 10
        assert store.get(ADDR) is not None


class TestProgramAddressDeriver:
    """Tests for ProgramAddressDeriver."""

    def test_deterministic(self):
        deriver = ProgramAddressDeriver()
        assert deriver.derive((b"seed",), OWNER) == deriver.derive((b"seed",), OWNER)
        assert len(deriver.derive((b"seed",), OWNER)) == 32

    def test_program_and_seeds_bound(self):
        deriver = ProgramAddressDeriver()
        base = deriver.derive((b"seed",), OWNER)
        assert deriver.derive((b"seed2",), OWNER) != base
        assert deriver.derive((b"seed",), ADDR) != base

    def test_seed_limits(self):
        deriver = ProgramAddressDeriver()
        with pytest.raises(ConfigError) as exc:
            deriver.derive((b"x" * 33,), OWNER)
        assert exc.value.code == ErrorCode.MAX_SEED_LENGTH_EXCEEDED
        with pytest.raises(ConfigError):
            deriver.derive([b"x"] * 17, OWNER)
