from .capabilities import CoTransactionInspector, Ledger, UnitParticipant
from .memory import InMemoryLedger

__all__ = [
    "CoTransactionInspector",
    "Ledger",
    "UnitParticipant",
    "InMemoryLedger",
]
