from .processor.bridge import BridgeProcessor
from .core.settings import BridgeSettings, get_settings, build_store
from .core.unit import ExecutionUnit
from .commission import CommissionChecker, TransactionBatch, charge_commission
from .crypto import ContentLeafEncoder, MerkleProofVerifier, SignatureVerifier, Secp256k1Signer
from .ledger import InMemoryLedger
from .state import AdminKeyStore, ReplayGuard, InMemoryAccountStore, SqliteAccountStore, ProgramAddressDeriver
from .protocol import BridgeError, ErrorCode, TokenKind

__all__ = [
    "BridgeProcessor",
    "BridgeSettings",
    "get_settings",
    "build_store",
    "ExecutionUnit",
    "CommissionChecker",
    "TransactionBatch",
    "charge_commission",
    "ContentLeafEncoder",
    "MerkleProofVerifier",
    "SignatureVerifier",
    "Secp256k1Signer",
    "InMemoryLedger",
    "AdminKeyStore",
    "ReplayGuard",
    "InMemoryAccountStore",
    "SqliteAccountStore",
    "ProgramAddressDeriver",
    "BridgeError",
    "ErrorCode",
    "TokenKind",
]
