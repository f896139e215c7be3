from .addresses import AddressDeriver, ProgramAddressDeriver
from .store import Account, AccountStore, InMemoryAccountStore, SqliteAccountStore
from .admin import AdminKeyStore
from .replay import ReplayGuard

__all__ = [
    "AddressDeriver",
    "ProgramAddressDeriver",
    "Account",
    "AccountStore",
    "InMemoryAccountStore",
    "SqliteAccountStore",
    "AdminKeyStore",
    "ReplayGuard",
]
