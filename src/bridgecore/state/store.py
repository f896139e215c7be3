"""
Account Stores

Fixed-size binary records keyed by derived address. A store is a unit
participant: writes made between begin() and commit() become visible
together, and rollback() discards them.

Exclusivity:
- create() fails with StateError(ALREADY_IN_USE) if the address is occupied
- units are serialized, so two units racing to create the same address
  cannot both succeed
- get() from the thread that opened the unit sees its pending writes; any
  other thread sees committed state only

Implementations:
- InMemoryAccountStore: process-local, lock-serialized
- SqliteAccountStore: BEGIN IMMEDIATE transactions, primary-key exclusivity
  across connections and processes
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from bridgecore.protocol.enums import ErrorCode
from bridgecore.protocol.errors import DataError, StateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Account:
    address: bytes
    owner: bytes
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class AccountStore(Protocol):
    def begin(self) -> None:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def get(self, address: bytes) -> Optional[Account]:
        ...

    def create(self, address: bytes, size: int, owner: bytes) -> Account:
        """Allocate a zero-filled account. Fails if the address is occupied."""
        ...

    def write(self, address: bytes, data: bytes) -> None:
        """Overwrite an existing account's data. Size must not change."""
        ...


def _occupied(address: bytes) -> StateError:
    return StateError(f"Account {address.hex()} already in use", ErrorCode.ALREADY_IN_USE)


def _missing(address: bytes) -> StateError:
    return StateError(f"Account {address.hex()} does not exist", ErrorCode.NOT_INITIALIZED)


def _wrong_len(address: bytes, expected: int, got: int) -> DataError:
    return DataError(
        f"Account {address.hex()} holds {expected} bytes, write has {got}",
        ErrorCode.WRONG_DATA_LEN,
    )


# ===========================================================================
# In-Memory Store
# ===========================================================================


class InMemoryAccountStore:
    """
    Process-local account store.

    Thread-safe: begin() takes the store lock and holds it until commit()
    or rollback(), so units execute one at a time.
    """

    def __init__(self) -> None:
        self._accounts: Dict[bytes, Account] = {}
        self._pending: Optional[Dict[bytes, Account]] = None
        self._owner: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def in_unit(self) -> bool:
        return self._pending is not None

    def begin(self) -> None:
        self._lock.acquire()
        self._owner = threading.get_ident()
        self._pending = {}

    def commit(self) -> None:
        if self._pending is None:
            raise RuntimeError("No open unit to commit")
        self._accounts.update(self._pending)
        self._end_unit()

    def rollback(self) -> None:
        if self._pending is None:
            raise RuntimeError("No open unit to roll back")
        self._end_unit()

    def _end_unit(self) -> None:
        self._pending = None
        self._owner = None
        self._lock.release()

    def _require_unit(self) -> Dict[bytes, Account]:
        if self._pending is None:
            raise RuntimeError("Store writes require an open execution unit")
        return self._pending

    def get(self, address: bytes) -> Optional[Account]:
        pending = self._pending
        if pending is not None and self._owner == threading.get_ident() and address in pending:
            return pending[address]
        return self._accounts.get(address)

    def create(self, address: bytes, size: int, owner: bytes) -> Account:
        pending = self._require_unit()
        if self.get(address) is not None:
            raise _occupied(address)
        account = Account(address=address, owner=owner, data=bytes(size))
        pending[address] = account
        return account

    def write(self, address: bytes, data: bytes) -> None:
        pending = self._require_unit()
        current = self.get(address)
        if current is None:
            raise _missing(address)
        if len(data) != current.size:
            raise _wrong_len(address, current.size, len(data))
        pending[address] = Account(address=address, owner=current.owner, data=bytes(data))

    def __len__(self) -> int:
        return len(self._accounts)


# ===========================================================================
# SQLite Store
# ===========================================================================


class SqliteAccountStore:
    """
    SQLite-backed account store.

    Schema:
        accounts(
            address BLOB PRIMARY KEY,
            owner BLOB NOT NULL,
            data BLOB NOT NULL
        )

    Each unit is one BEGIN IMMEDIATE transaction, which takes the database
    write lock up front; a competing writer waits up to ``timeout`` seconds.
    Exclusive creation is the primary-key constraint.
    """

    def __init__(self, db_path: str = "bridgecore.db", timeout: float = 5.0) -> None:
        self.db_path = db_path
        self._conn = sqlite3.connect(
            db_path,
            timeout=timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        self._lock = threading.Lock()
        self._in_unit = False
        self._owner: Optional[int] = None
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS accounts (
                address BLOB PRIMARY KEY,
                owner BLOB NOT NULL,
                data BLOB NOT NULL
            );
            """
        )

    @property
    def in_unit(self) -> bool:
        return self._in_unit

    def begin(self) -> None:
        self._lock.acquire()
        try:
            self._conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error:
            self._lock.release()
            raise
        self._owner = threading.get_ident()
        self._in_unit = True

    def commit(self) -> None:
        if not self._in_unit:
            raise RuntimeError("No open unit to commit")
        # A failed COMMIT (e.g. SQLITE_BUSY) leaves the unit open for rollback().
        self._conn.execute("COMMIT")
        self._end_unit()

    def rollback(self) -> None:
        if not self._in_unit:
            raise RuntimeError("No open unit to roll back")
        try:
            self._conn.execute("ROLLBACK")
        finally:
            self._end_unit()

    def _end_unit(self) -> None:
        self._in_unit = False
        self._owner = None
        self._lock.release()

    def _require_unit(self) -> None:
        if not self._in_unit:
            raise RuntimeError("Store writes require an open execution unit")

    def get(self, address: bytes) -> Optional[Account]:
        if self._in_unit and self._owner == threading.get_ident():
            return self._select(address)
        # Other threads wait for the open unit so they never read its writes.
        with self._lock:
            return self._select(address)

    def _select(self, address: bytes) -> Optional[Account]:
        row = self._conn.execute(
            "SELECT owner, data FROM accounts WHERE address = ?",
            (address,),
        ).fetchone()
        if row is None:
            return None
        return Account(address=address, owner=bytes(row[0]), data=bytes(row[1]))

    def create(self, address: bytes, size: int, owner: bytes) -> Account:
        self._require_unit()
        try:
            self._conn.execute(
                "INSERT INTO accounts (address, owner, data) VALUES (?, ?, ?)",
                (address, owner, bytes(size)),
            )
        except sqlite3.IntegrityError:
            raise _occupied(address) from None
        return Account(address=address, owner=owner, data=bytes(size))

    def write(self, address: bytes, data: bytes) -> None:
        self._require_unit()
        current = self.get(address)
        if current is None:
            raise _missing(address)
        if len(data) != current.size:
            raise _wrong_len(address, current.size, len(data))
        self._conn.execute(
            "UPDATE accounts SET data = ? WHERE address = ?",
            (bytes(data), address),
        )

    def close(self) -> None:
        self._conn.close()

    def __len__(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM accounts").fetchone()[0]
